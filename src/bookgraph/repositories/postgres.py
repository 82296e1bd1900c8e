"""
PostgreSQL (pgvector) implementation of the document repository.

Table and function names come from settings and are quoted with
psycopg.sql so they can point at Supabase-managed objects.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import psycopg
from psycopg import sql

from ..core.config import Settings
from ..core.exceptions import BookNotFoundError, StoreQueryError
from ..core.models import BookMetadata, SimilarityMatch
from ..pg_async import AsyncPostgresDB
from .base import DocumentRepository

logger = logging.getLogger(__name__)


def to_vector_literal(embedding: list[float]) -> str:
    """Format a vector as pgvector text input, e.g. ``[0.1,0.2]``."""
    return "[" + ",".join(str(float(x)) for x in embedding) + "]"


def parse_vector(value: Any) -> list[float]:
    """Parse a pgvector value (text form or already-decoded sequence)."""
    if isinstance(value, str):
        value = json.loads(value)
    return [float(x) for x in value]


def _decode_json(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


class PostgresDocumentRepository(DocumentRepository):
    """
    Reads books from a `documents` table with JSONB `metadata`
    and pgvector `embedding` columns.
    """

    def __init__(
        self,
        db: AsyncPostgresDB,
        *,
        embeddings_table: str = "documents",
        metadata_table: str = "books",
        similarity_function: str = "get_similar_books",
    ):
        self.db = db
        self._embeddings_table = sql.Identifier(embeddings_table)
        self._metadata_table = sql.Identifier(metadata_table)
        self._similarity_function = sql.Identifier(similarity_function)

    @classmethod
    def from_settings(cls, db: AsyncPostgresDB, settings: Settings) -> "PostgresDocumentRepository":
        return cls(
            db,
            embeddings_table=settings.embeddings_table,
            metadata_table=settings.metadata_table,
            similarity_function=settings.similarity_function,
        )

    async def get_metadata(self, book_id: str) -> BookMetadata:
        query = sql.SQL(
            "SELECT metadata FROM {table} WHERE metadata->>'book_id' = %s LIMIT 2"
        ).format(table=self._metadata_table)

        try:
            rows = await self.db.fetchall(query, (book_id,))
        except psycopg.Error as e:
            raise StoreQueryError(
                f"Error fetching metadata for book ID {book_id}: {e}"
            ) from e

        if not rows:
            raise BookNotFoundError(book_id)
        if len(rows) > 1:
            raise BookNotFoundError(
                book_id, f"Multiple metadata records for book ID {book_id}"
            )

        return BookMetadata.from_record(book_id, _decode_json(rows[0]["metadata"]))

    async def get_embeddings(self, book_id: str) -> list[list[float]]:
        if not book_id or not book_id.strip():
            raise ValueError("book_id is required")

        query = sql.SQL(
            "SELECT embedding::text AS embedding FROM {table} "
            "WHERE metadata->>'book_id' = %s AND embedding IS NOT NULL"
        ).format(table=self._embeddings_table)

        try:
            rows = await self.db.fetchall(query, (book_id,))
        except psycopg.Error as e:
            raise StoreQueryError(
                f"Error fetching embeddings for book ID {book_id}: {e}"
            ) from e

        return [parse_vector(row["embedding"]) for row in rows]

    async def find_similar(
        self,
        embedding: list[float],
        match_threshold: float,
        match_count: int,
        book_id: str,
    ) -> list[SimilarityMatch]:
        if match_count <= 0:
            return []

        # The function's `similarity` column holds cosine distance (0 = identical)
        query = sql.SQL(
            "SELECT metadata, similarity FROM {fn}("
            "query_embedding => %s::vector, match_threshold => %s, "
            "match_count => %s, book_id => %s)"
        ).format(fn=self._similarity_function)

        try:
            rows = await self.db.fetchall(
                query,
                (to_vector_literal(embedding), match_threshold, match_count, book_id),
            )
        except psycopg.Error as e:
            raise StoreQueryError(f"Get similar books: {e}") from e

        matches = []
        for row in rows:
            metadata = _decode_json(row.get("metadata")) or {}
            related_id = metadata.get("book_id") if isinstance(metadata, dict) else None
            if related_id in (None, ""):
                logger.warning("Similarity row without book_id skipped")
                continue
            matches.append(
                SimilarityMatch(
                    book_id=str(related_id),
                    distance=float(row["similarity"]),
                    metadata=metadata,
                )
            )
        return matches

    async def ping(self) -> bool:
        try:
            return await self.db.ping()
        except psycopg.Error as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def count_documents(self) -> dict[str, int]:
        """Count fragments and distinct books in the embeddings table."""
        query = sql.SQL(
            "SELECT count(*) AS fragments, "
            "count(DISTINCT metadata->>'book_id') AS books FROM {table}"
        ).format(table=self._embeddings_table)

        try:
            row = await self.db.fetchone(query)
        except psycopg.Error as e:
            raise StoreQueryError(f"Error counting documents: {e}") from e

        if not row:
            return {"fragments": 0, "books": 0}
        return {"fragments": row["fragments"], "books": row["books"]}
