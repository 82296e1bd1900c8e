"""
Similarity service for book comparison.

Sums per-fragment nearest-neighbor similarities into one score per book:

    from bookgraph.services.similarity import BookSimilarityService

    service = BookSimilarityService(repository)
    related = await service.aggregate_similar_books("B1", 0.75, 3)
"""

from .service import (
    DEFAULT_RELATED_LIMIT,
    BookSimilarityService,
    accumulate_matches,
    gather_or_cancel,
    rank_scores,
)

__all__ = [
    "DEFAULT_RELATED_LIMIT",
    "BookSimilarityService",
    "accumulate_matches",
    "gather_or_cancel",
    "rank_scores",
]
