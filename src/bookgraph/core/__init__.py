"""
Core module for BookGraph.

This module provides the foundational components:
- Configuration management (config.py)
- Data models (models.py)
- Domain exceptions (exceptions.py)

Usage:
    from bookgraph.core import Settings, get_settings
    from bookgraph.core import BookMetadata, GraphData
    from bookgraph.core import StoreQueryError, BookNotFoundError
"""

# Configuration
from .config import Settings, get_settings

# Exceptions
from .exceptions import (
    BookGraphError,
    BookNotFoundError,
    MetadataValidationError,
    StoreQueryError,
)

# Models
from .models import (
    BookMetadata,
    GraphData,
    GraphLink,
    GraphNode,
    NodeMetadata,
    RelatedBook,
    SimilarityMatch,
    primary_category,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "BookGraphError",
    "BookNotFoundError",
    "MetadataValidationError",
    "StoreQueryError",
    # Models
    "BookMetadata",
    "GraphData",
    "GraphLink",
    "GraphNode",
    "NodeMetadata",
    "RelatedBook",
    "SimilarityMatch",
    "primary_category",
]
