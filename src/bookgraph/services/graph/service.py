"""
Graph Service implementation.

Runs the full pipeline for one selected book: metadata lookup,
similarity aggregation and graph building.
"""

import logging
from typing import TYPE_CHECKING

from ...core.config import Settings
from ...core.models import GraphData
from ..similarity import BookSimilarityService
from .builder import GraphBuilder

if TYPE_CHECKING:
    from ...repositories.base import DocumentRepository

logger = logging.getLogger(__name__)


class BookGraphService:
    """
    Similarity graph computation for a selected book.

    One instance may serve many requests; it holds no per-request state.
    """

    def __init__(
        self,
        repository: "DocumentRepository",
        similarity: BookSimilarityService | None = None,
    ):
        """
        Initialize graph service.

        Args:
            repository: Document store access
            similarity: Aggregator to use (defaults to one over `repository`)
        """
        self._repository = repository
        self._similarity = similarity or BookSimilarityService(repository)

    @classmethod
    def from_settings(cls, repository: "DocumentRepository", settings: Settings) -> "BookGraphService":
        return cls(
            repository,
            BookSimilarityService(
                repository,
                related_limit=settings.related_books_limit,
                max_concurrency=settings.max_concurrent_queries,
            ),
        )

    async def build_graph(
        self,
        book_id: str,
        match_threshold: float,
        top_n: int,
    ) -> GraphData:
        """
        Compute the similarity graph for a book.

        Args:
            book_id: Selected book
            match_threshold: Similarity cutoff for the nearest-neighbor search
            top_n: Candidate cap per embedding fragment

        Returns:
            GraphData with the selected book first

        Raises:
            BookNotFoundError: If the selected book has no metadata record
            MetadataValidationError: If the selected book cannot be graphed
            StoreQueryError: If any store read fails
        """
        metadata = await self._repository.get_metadata(book_id)
        related = await self._similarity.aggregate_similar_books(
            book_id, match_threshold, top_n
        )

        graph = GraphBuilder().build(book_id, metadata, related)
        logger.info(
            f"Built graph for book {book_id}: "
            f"{len(graph.nodes)} nodes, {len(graph.links)} links"
        )
        return graph
