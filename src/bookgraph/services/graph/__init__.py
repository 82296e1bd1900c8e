"""
Graph service for book similarity graphs.

    from bookgraph.services.graph import BookGraphService

    service = BookGraphService.from_settings(repository, settings)
    graph = await service.build_graph("B1", match_threshold=0.75, top_n=3)
"""

from .builder import GraphBuilder, build_graph
from .service import BookGraphService

__all__ = ["BookGraphService", "GraphBuilder", "build_graph"]
