"""
Repository layer for document store access.

Usage:
    from bookgraph.repositories import PostgresDocumentRepository

    repo = PostgresDocumentRepository.from_settings(db, settings)
    metadata = await repo.get_metadata("B1")
"""

from .base import DocumentRepository
from .postgres import PostgresDocumentRepository, parse_vector, to_vector_literal

__all__ = [
    "DocumentRepository",
    "PostgresDocumentRepository",
    "parse_vector",
    "to_vector_literal",
]
