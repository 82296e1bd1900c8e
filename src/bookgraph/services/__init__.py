"""
Services module for BookGraph.

This module provides business logic services:
- similarity: Per-fragment nearest-neighbor aggregation into ranked related books
- graph: Node/link graph construction and the full request pipeline

Usage:
    from bookgraph.services import BookGraphService, BookSimilarityService
"""

from .graph import BookGraphService, GraphBuilder, build_graph
from .similarity import BookSimilarityService, accumulate_matches, rank_scores

__all__ = [
    # Graph
    "BookGraphService",
    "GraphBuilder",
    "build_graph",
    # Similarity
    "BookSimilarityService",
    "accumulate_matches",
    "rank_scores",
]
