"""
BookGraph

Similarity graphs between books, computed from embedding fragments stored
in PostgreSQL (pgvector) and served as node/link JSON for visualization.

Key Features:
- Per-fragment nearest-neighbor search, summed into one score per book
- Deterministic ranking (score descending, book ID ascending)
- Similarity links plus same-category (LoCC) links
- FastAPI endpoint `GET /graph?book_id=...`

Usage:
    from bookgraph import AsyncPostgresDB, PostgresDocumentRepository, BookGraphService

    db = AsyncPostgresDB.from_settings(settings)
    repo = PostgresDocumentRepository.from_settings(db, settings)
    graph = await BookGraphService.from_settings(repo, settings).build_graph("1342", 0.75, 3)
"""

from .core import (
    BookGraphError,
    BookMetadata,
    BookNotFoundError,
    GraphData,
    MetadataValidationError,
    Settings,
    StoreQueryError,
    get_settings,
)
from .pg_async import AsyncPostgresDB
from .repositories import DocumentRepository, PostgresDocumentRepository
from .services import BookGraphService, BookSimilarityService, GraphBuilder

__version__ = "1.0.0"

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Connection
    "AsyncPostgresDB",
    # Repository
    "DocumentRepository",
    "PostgresDocumentRepository",
    # Services
    "BookGraphService",
    "BookSimilarityService",
    "GraphBuilder",
    # Models
    "BookMetadata",
    "GraphData",
    # Errors
    "BookGraphError",
    "BookNotFoundError",
    "MetadataValidationError",
    "StoreQueryError",
]
