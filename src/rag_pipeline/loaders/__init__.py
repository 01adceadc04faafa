"""
Loaders module - turn configured sources into Documents.

1. LoaderConfig tagged union (web | file | text)
2. Concrete loaders (WebLoader, PDFLoader, TextFileLoader, TextLoader)
3. Registry function get_loader() resolving config -> loader
"""

from rag_pipeline.loaders.config import (
    LoaderConfig,
    WebLoaderConfig,
    FileLoaderConfig,
    TextLoaderConfig,
    parse_loader_config,
)
from rag_pipeline.loaders.registry import (
    WebLoader,
    PDFLoader,
    TextFileLoader,
    TextLoader,
    get_loader,
    load_documents,
)

__all__ = [
    # Config
    "LoaderConfig",
    "WebLoaderConfig",
    "FileLoaderConfig",
    "TextLoaderConfig",
    "parse_loader_config",
    # Loaders
    "WebLoader",
    "PDFLoader",
    "TextFileLoader",
    "TextLoader",
    # Registry
    "get_loader",
    "load_documents",
]
