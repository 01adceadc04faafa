"""
rag_pipeline - load, chunk, embed and index documents, then answer questions
over them with a retrieve -> generate pipeline.

from rag_pipeline.pipeline import RAGPipeline
from rag_pipeline.loaders import TextLoaderConfig
"""

__version__ = "0.1.0"
