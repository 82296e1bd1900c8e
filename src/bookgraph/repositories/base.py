"""
Base repository protocols.

Defines the abstract interface for document store access,
enabling database-agnostic graph computation and in-memory test doubles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.models import BookMetadata, SimilarityMatch


class DocumentRepository(ABC):
    """
    Abstract interface for reading books and their embeddings.

    A book is stored as one or more embedded fragments (chunks), each
    row carrying the book's metadata alongside the fragment's vector.
    """

    @abstractmethod
    async def get_metadata(self, book_id: str) -> "BookMetadata":
        """
        Fetch the metadata record for a book.

        Args:
            book_id: Book identifier

        Returns:
            Validated metadata

        Raises:
            BookNotFoundError: If zero or more than one record matches
            MetadataValidationError: If the record lacks title/locc
            StoreQueryError: If the store read fails
        """
        ...

    @abstractmethod
    async def get_embeddings(self, book_id: str) -> list[list[float]]:
        """
        Fetch every embedding fragment belonging to a book.

        Args:
            book_id: Book identifier (non-empty)

        Returns:
            List of vectors, possibly empty

        Raises:
            StoreQueryError: If the store read fails
        """
        ...

    @abstractmethod
    async def find_similar(
        self,
        embedding: list[float],
        match_threshold: float,
        match_count: int,
        book_id: str,
    ) -> list["SimilarityMatch"]:
        """
        Run the nearest-neighbor operator for one query vector.

        Args:
            embedding: Query vector
            match_threshold: Minimum similarity (0..1) a candidate must reach
            match_count: Maximum candidates to return
            book_id: Book to exclude from candidates

        Returns:
            Candidates ordered by ascending distance

        Raises:
            StoreQueryError: If the similarity call fails
        """
        ...

    async def ping(self) -> bool:
        """Check that the store is reachable."""
        return True
