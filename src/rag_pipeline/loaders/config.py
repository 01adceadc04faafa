"""
Loader configuration - a closed tagged union, one variant per source kind.

Variants are resolved once (see registry.get_loader) into a concrete loader,
so nothing downstream inspects loosely-typed config objects.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from rag_pipeline.core.errors import UnsupportedFormat


class WebLoaderConfig(BaseModel):
    """Fetch a URL and keep the text of elements matching a CSS selector."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["web"] = "web"
    url: str
    selector: str = "p"
    timeout: float = 30.0


class FileLoaderConfig(BaseModel):
    """Read a local file of a declared format.

    `format` is a plain string on purpose: an unknown format is reported as
    UnsupportedFormat when the loader is resolved, not as a schema error.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["file"] = "file"
    path: str
    format: str = "txt"


class TextLoaderConfig(BaseModel):
    """Wrap a literal string as a single document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    content: str


LoaderConfig = Annotated[
    Union[WebLoaderConfig, FileLoaderConfig, TextLoaderConfig],
    Field(discriminator="kind"),
]

LOADER_KINDS = ("web", "file", "text")

_adapter: TypeAdapter = TypeAdapter(LoaderConfig)


def parse_loader_config(data: dict[str, Any]) -> WebLoaderConfig | FileLoaderConfig | TextLoaderConfig:
    """
    Build a LoaderConfig variant from a plain mapping.

    Raises:
        UnsupportedFormat: if `kind` is missing or not a known loader kind
        pydantic.ValidationError: if the variant's own fields are invalid
    """
    kind = data.get("kind")
    if kind not in LOADER_KINDS:
        raise UnsupportedFormat(str(kind), field="kind")
    return _adapter.validate_python(data)
