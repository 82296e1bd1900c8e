"""
Similarity Service implementation.

Aggregates nearest-neighbor matches across every embedded fragment of a
book into one score per related book, then resolves metadata for the
highest scoring ones.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Iterable, TypeVar

from ...core.exceptions import BookGraphError
from ...core.models import RelatedBook, SimilarityMatch

if TYPE_CHECKING:
    from ...repositories.base import DocumentRepository

logger = logging.getLogger(__name__)

DEFAULT_RELATED_LIMIT = 20

T = TypeVar("T")


def accumulate_matches(
    book_id: str,
    matches: Iterable[SimilarityMatch],
    scores: dict[str, float],
) -> dict[str, float]:
    """
    Add each match's similarity (1 - distance) to its book's running total.

    Matches for `book_id` itself are ignored. `scores` is updated in place
    and returned.
    """
    for match in matches:
        if match.book_id == book_id:
            continue
        scores[match.book_id] = scores.get(match.book_id, 0.0) + match.similarity
    return scores


def rank_scores(scores: dict[str, float], limit: int) -> list[tuple[str, float]]:
    """
    Order books by aggregate score, highest first.

    Equal scores are ordered by book ID ascending so the ranking never
    depends on the order matches arrived in.
    """
    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return ranked[: max(limit, 0)]


async def gather_or_cancel(coros: Iterable[Awaitable[T]]) -> list[T]:
    """
    Run awaitables concurrently, returning results in input order.

    If any of them raises, the others are cancelled and awaited before
    the exception propagates, so no store query outlives the call.
    """
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BookSimilarityService:
    """
    Embedding-based book similarity.

    Features:
    - Concurrent nearest-neighbor queries, one per fragment
    - Additive similarity-sum ranking with deterministic tie-break
    - Per-book metadata resolution; books whose metadata cannot be
      resolved are dropped instead of failing the request
    """

    def __init__(
        self,
        repository: "DocumentRepository",
        related_limit: int = DEFAULT_RELATED_LIMIT,
        max_concurrency: int = 8,
    ):
        """
        Initialize similarity service.

        Args:
            repository: Document store access
            related_limit: Maximum related books returned
            max_concurrency: Maximum store queries in flight per call
        """
        self._repository = repository
        self._related_limit = related_limit
        self._max_concurrency = max(1, max_concurrency)

    async def aggregate_scores(
        self,
        book_id: str,
        match_threshold: float,
        match_count: int,
    ) -> dict[str, float]:
        """
        Build the aggregate score map for a book.

        Args:
            book_id: Target book
            match_threshold: Similarity cutoff passed to the store
            match_count: Candidate cap per fragment

        Returns:
            Mapping of related book ID to summed similarity

        Raises:
            StoreQueryError: If any embedding or similarity query fails
        """
        embeddings = await self._repository.get_embeddings(book_id)
        if not embeddings:
            logger.info(f"No embeddings found for book {book_id}")
            return {}

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def query_fragment(embedding: list[float]) -> list[SimilarityMatch]:
            async with semaphore:
                return await self._repository.find_similar(
                    embedding, match_threshold, match_count, book_id
                )

        results = await gather_or_cancel(query_fragment(e) for e in embeddings)

        scores: dict[str, float] = {}
        for matches in results:
            accumulate_matches(book_id, matches, scores)

        logger.debug(
            f"Book {book_id}: {len(embeddings)} fragments, "
            f"{sum(len(m) for m in results)} candidates, {len(scores)} related books"
        )
        return scores

    async def aggregate_similar_books(
        self,
        book_id: str,
        match_threshold: float,
        match_count: int,
    ) -> list[RelatedBook]:
        """
        Get the books most similar to `book_id`.

        The result size is capped by `related_limit`, not by `match_count`,
        which only bounds candidates per fragment.

        Returns:
            RelatedBook list, highest aggregate score first
        """
        scores = await self.aggregate_scores(book_id, match_threshold, match_count)
        ranked = rank_scores(scores, self._related_limit)
        if not ranked:
            return []

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def resolve(related_id: str, score: float) -> RelatedBook | None:
            async with semaphore:
                try:
                    metadata = await self._repository.get_metadata(related_id)
                except BookGraphError as e:
                    logger.warning(f"Dropping related book {related_id}: {e.message}")
                    return None
            return RelatedBook(book_id=related_id, score=score, metadata=metadata)

        resolved = await gather_or_cancel(resolve(rid, s) for rid, s in ranked)
        return [book for book in resolved if book is not None]
