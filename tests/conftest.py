"""
Pytest configuration for bookgraph tests.

Most tests run against `FakeDocumentRepository`, an in-memory store that
behaves like the pgvector similarity function. Tests marked
`integration` need DATABASE_URL and are skipped otherwise.
"""

from __future__ import annotations

import asyncio
import os

import pytest

from bookgraph.core.config import Settings
from bookgraph.core.exceptions import BookNotFoundError
from bookgraph.core.models import BookMetadata, SimilarityMatch
from bookgraph.repositories.base import DocumentRepository


def pytest_configure(config):
    """Configure pytest with database URL if available."""
    # Try to load from .env file if environment variables not already set
    env_file = os.path.join(os.path.dirname(__file__), "..", ".env")
    if os.path.exists(env_file):
        with open(env_file) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    key = key.strip()
                    value = value.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = value


class FakeDocumentRepository(DocumentRepository):
    """
    In-memory document store.

    `books` maps book ID to its raw metadata record, `embeddings` maps book
    ID to its fragment vectors, and `neighbors` maps a fragment (as a
    tuple) to the candidates the similarity function would return, in
    ascending distance order. Like the SQL function, candidates are
    filtered by threshold and capped by count; unlike it, self matches are
    left in so callers' own filtering is exercised.
    """

    def __init__(self):
        self.books: dict[str, dict] = {}
        self.embeddings: dict[str, list[list[float]]] = {}
        self.neighbors: dict[tuple[float, ...], list[SimilarityMatch]] = {}
        self.fail_metadata: dict[str, Exception] = {}
        self.fail_similar: Exception | None = None
        self.similar_delay: float = 0.0
        self.similar_calls: list[tuple[tuple[float, ...], float, int, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add_book(
        self,
        book_id: str,
        title: str,
        locc: str | None = "PR",
        fragments: list[list[float]] | None = None,
        **extra,
    ) -> None:
        record = {"book_id": book_id, "title": title, **extra}
        if locc is not None:
            record["locc"] = locc
        self.books[book_id] = record
        self.embeddings[book_id] = fragments or []

    def add_neighbors(self, fragment: list[float], *matches: tuple[str, float]) -> None:
        self.neighbors[tuple(fragment)] = [
            SimilarityMatch(
                book_id=book_id,
                distance=distance,
                metadata=self.books.get(book_id, {"book_id": book_id}),
            )
            for book_id, distance in matches
        ]

    async def get_metadata(self, book_id: str) -> BookMetadata:
        if book_id in self.fail_metadata:
            raise self.fail_metadata[book_id]
        if book_id not in self.books:
            raise BookNotFoundError(book_id)
        return BookMetadata.from_record(book_id, self.books[book_id])

    async def get_embeddings(self, book_id: str) -> list[list[float]]:
        return [list(e) for e in self.embeddings.get(book_id, [])]

    async def find_similar(
        self,
        embedding: list[float],
        match_threshold: float,
        match_count: int,
        book_id: str,
    ) -> list[SimilarityMatch]:
        key = tuple(embedding)
        self.similar_calls.append((key, match_threshold, match_count, book_id))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.similar_delay)
            if self.fail_similar is not None:
                raise self.fail_similar
            if match_count <= 0:
                return []
            candidates = [
                m for m in self.neighbors.get(key, []) if m.similarity >= match_threshold
            ]
            return candidates[:match_count]
        finally:
            self.in_flight -= 1


@pytest.fixture
def repository() -> FakeDocumentRepository:
    return FakeDocumentRepository()


@pytest.fixture
def scenario_repository(repository: FakeDocumentRepository) -> FakeDocumentRepository:
    """
    B1 has two fragments. Fragment 1 matches B2 (0.2) and B3 (0.5);
    fragment 2 matches B2 (0.1). Expected scores: B2 = 1.7, B3 = 0.5.
    """
    repository.add_book("B1", "Pride and Prejudice", "PR; PZ", fragments=[[1.0, 0.0], [0.0, 1.0]])
    repository.add_book("B2", "Emma", "PR", fragments=[[0.9, 0.1]])
    repository.add_book("B3", "Moby Dick", "PS", fragments=[[0.5, 0.5]])
    repository.add_neighbors([1.0, 0.0], ("B2", 0.2), ("B3", 0.5))
    repository.add_neighbors([0.0, 1.0], ("B2", 0.1))
    return repository


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any DATABASE_URL in the environment."""
    return Settings(
        _env_file=None,
        database_url=None,
        supabase_db_url=None,
        request_timeout=5.0,
    )


@pytest.fixture(scope="session")
def database_url():
    """Get the PostgreSQL database URL."""
    url = os.environ.get("DATABASE_URL") or os.environ.get("SUPABASE_DB_URL")
    if not url:
        pytest.skip("DATABASE_URL not set")
    return url
