"""
Loader registry - resolves a LoaderConfig into a DocumentLoader.

Pattern: Config variant -> concrete loader -> Documents

- web:  httpx fetch + BeautifulSoup CSS selection
- file: pypdf (one Document per page) or plain UTF-8 text
- text: literal content, cannot fail

This is the only core component that performs source I/O; blocking file
reads run in a worker thread so every load is an await point.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import httpx
from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from rag_pipeline.core.errors import NotFound, SourceUnavailable, UnsupportedFormat
from rag_pipeline.core.protocols import DocumentLoader
from rag_pipeline.loaders.config import (
    FileLoaderConfig,
    LoaderConfig,
    TextLoaderConfig,
    WebLoaderConfig,
)
from rag_pipeline.retrieval.document import Document

logger = logging.getLogger(__name__)

TEXT_SOURCE = "text-input"


# ---------------------------------------------------------------------------
# LOADERS
# ---------------------------------------------------------------------------


class WebLoader:
    """Loads the text of a web page, restricted to a CSS selector."""

    def __init__(
        self,
        url: str,
        selector: str = "p",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.selector = selector
        self.timeout = timeout
        self._transport = transport

    async def load(self) -> list[Document]:
        try:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(self.url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Fetch failed for %s: HTTP %s", self.url, e.response.status_code)
            raise SourceUnavailable(
                self.url,
                reason=f"HTTP {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            logger.error("Fetch failed for %s: %s", self.url, e)
            raise SourceUnavailable(self.url, reason=str(e) or type(e).__name__) from e

        soup = BeautifulSoup(response.text, "html.parser")
        text = "\n".join(
            element.get_text(" ", strip=True)
            for element in soup.select(self.selector)
        )

        logger.info("Loaded %d characters from %s", len(text), self.url)
        return [Document(content=text, metadata={"source": self.url})]


class TextFileLoader:
    """Loads a UTF-8 text file as a single Document."""

    def __init__(self, path: Path):
        self.path = path

    async def load(self) -> list[Document]:
        _require_exists(self.path)
        content = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        logger.info("Loaded text file %s (%d characters)", self.path, len(content))
        return [Document(content=content, metadata={"source": str(self.path)})]


class PDFLoader:
    """Loads a PDF as one Document per page."""

    def __init__(self, path: Path):
        self.path = path

    def _read_pages(self) -> list[Document]:
        try:
            reader = PdfReader(str(self.path))
        except PdfReadError as e:
            raise UnsupportedFormat("pdf", details={"path": str(self.path), "reason": str(e)}) from e

        total = len(reader.pages)
        return [
            Document(
                content=page.extract_text() or "",
                metadata={"source": str(self.path), "page": number, "total_pages": total},
            )
            for number, page in enumerate(reader.pages, start=1)
        ]

    async def load(self) -> list[Document]:
        _require_exists(self.path)
        docs = await asyncio.to_thread(self._read_pages)
        logger.info("Loaded %d pages from %s", len(docs), self.path)
        return docs


class TextLoader:
    """Wraps a literal string; never fails."""

    def __init__(self, content: str):
        self.content = content

    async def load(self) -> list[Document]:
        return [Document(content=self.content, metadata={"source": TEXT_SOURCE})]


# ---------------------------------------------------------------------------
# REGISTRY
# ---------------------------------------------------------------------------


_FILE_LOADERS = {
    "pdf": PDFLoader,
    "txt": TextFileLoader,
}


def _require_exists(path: Path) -> None:
    if not path.exists():
        raise NotFound(str(path))


def get_loader(config: LoaderConfig) -> DocumentLoader:
    """
    Resolve a loader configuration into a concrete loader.

    File sources are checked here, before any read: a missing path raises
    NotFound, then an unknown format raises UnsupportedFormat.
    """
    if isinstance(config, WebLoaderConfig):
        return WebLoader(config.url, selector=config.selector, timeout=config.timeout)

    if isinstance(config, FileLoaderConfig):
        path = Path(config.path)
        _require_exists(path)
        loader_cls = _FILE_LOADERS.get(config.format.lower())
        if loader_cls is None:
            raise UnsupportedFormat(config.format, details={"path": config.path})
        return loader_cls(path)

    if isinstance(config, TextLoaderConfig):
        return TextLoader(config.content)

    raise UnsupportedFormat(str(getattr(config, "kind", config)), field="kind")


async def load_documents(config: LoaderConfig) -> list[Document]:
    """Resolve and run a loader (convenience function)."""
    loader = get_loader(config)
    return await loader.load()
