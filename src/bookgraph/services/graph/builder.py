"""
Graph builder: turns a book and its related books into nodes and links.

Two kinds of links are produced, both with value 1:
- similarity links from the selected book to every related book
- category links between every pair of books sharing a primary LoCC code
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Iterable

from ...core.models import BookMetadata, GraphData, GraphLink, GraphNode, NodeMetadata, RelatedBook

logger = logging.getLogger(__name__)

LINK_WEIGHT = 1


class GraphBuilder:
    """
    Builds a GraphData for one request.

    Nodes are tracked by book ID. The title is only the node label; when
    two selected books share a title, later ones are labelled
    "Title (book_id)" so links never join distinct books.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, GraphNode] = {}
        self._labels: set[str] = set()
        self._links: list[GraphLink] = []

    def _label_for(self, book_id: str, metadata: BookMetadata) -> str:
        label = metadata.title
        suffix = 1
        while label in self._labels:
            label = f"{metadata.title} ({book_id})"
            if suffix > 1:
                label = f"{label} [{suffix}]"
            suffix += 1
        self._labels.add(label)
        return label

    def add_node(self, book_id: str, metadata: BookMetadata) -> GraphNode | None:
        """
        Register a node; returns None if the book is already in the graph.

        The node's `data` is the validated record, not the raw store row:
        `book_id` is always present and numeric `book_id`/`title` values are
        strings. Extra metadata keys pass through unchanged.
        """
        if book_id in self._nodes:
            return None

        node = GraphNode(
            id=self._label_for(book_id, metadata),
            metadata=NodeMetadata(id=book_id, data=metadata.model_dump()),
            group=metadata.group,
        )
        self._nodes[book_id] = node
        return node

    def link(self, source: GraphNode, target: GraphNode) -> None:
        if source.id == target.id:
            return
        self._links.append(GraphLink(source=source.id, target=target.id, value=LINK_WEIGHT))

    def add_category_links(self) -> None:
        """Link every pair of nodes that share a group."""
        groups: dict[str, list[GraphNode]] = {}
        for node in self._nodes.values():
            groups.setdefault(node.group, []).append(node)

        for members in groups.values():
            for first, second in combinations(members, 2):
                self.link(first, second)

    def build(
        self,
        book_id: str,
        metadata: BookMetadata,
        related: Iterable[RelatedBook],
    ) -> GraphData:
        """
        Build the graph for a selected book.

        Args:
            book_id: Selected book ID
            metadata: Selected book metadata
            related: Related books, highest score first

        Returns:
            GraphData with the selected book as the first node
        """
        root = self.add_node(book_id, metadata)

        for book in related:
            node = self.add_node(book.book_id, book.metadata)
            if node is None:
                logger.debug(f"Book {book.book_id} already in graph, skipping")
                continue
            self.link(root, node)

        self.add_category_links()

        return GraphData(nodes=list(self._nodes.values()), links=list(self._links))


def build_graph(
    book_id: str,
    metadata: BookMetadata,
    related: Iterable[RelatedBook],
) -> GraphData:
    """Convenience wrapper building a graph with a fresh GraphBuilder."""
    return GraphBuilder().build(book_id, metadata, related)
