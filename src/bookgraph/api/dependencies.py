"""
Dependency injection for API endpoints.

The database client is created once by the application lifespan (or
passed to `create_app`) and stored on `app.state`; nothing here keeps a
module-level instance. Tests replace `get_repository` through
`app.dependency_overrides` to run the API against an in-memory store.
"""

from typing import Annotated

from fastapi import Depends, Request

from ..core.config import Settings
from ..pg_async import AsyncPostgresDB
from ..repositories import DocumentRepository, PostgresDocumentRepository
from ..services.graph import BookGraphService


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]


def get_db(request: Request) -> AsyncPostgresDB:
    """
    Dependency that provides the async database client.

    Raises:
        RuntimeError: If the application started without a database
    """
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database is not configured (set DATABASE_URL)")
    return db


DBDependency = Annotated[AsyncPostgresDB, Depends(get_db)]


def get_repository(db: DBDependency, settings: SettingsDependency) -> DocumentRepository:
    """Document repository bound to the application database."""
    return PostgresDocumentRepository.from_settings(db, settings)


RepositoryDependency = Annotated[DocumentRepository, Depends(get_repository)]


def get_graph_service(
    repository: RepositoryDependency,
    settings: SettingsDependency,
) -> BookGraphService:
    """Graph pipeline for the current request."""
    return BookGraphService.from_settings(repository, settings)


GraphServiceDependency = Annotated[BookGraphService, Depends(get_graph_service)]
