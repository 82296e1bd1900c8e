#!/usr/bin/env python3
"""
Command-line interface for the BookGraph service.

Usage:
    python -m bookgraph.cli serve --port 8000      # Run the API server
    python -m bookgraph.cli init                   # Create table, view and similarity function
    python -m bookgraph.cli status                 # Check database connectivity and counts
    python -m bookgraph.cli graph --book-id 1342   # Print a book's similarity graph as JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .core.config import get_settings
from .core.exceptions import BookGraphError, BookNotFoundError

logger = logging.getLogger("bookgraph.cli")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_db():
    """Build a database client from settings."""
    from .pg_async import AsyncPostgresDB

    return AsyncPostgresDB.from_settings(get_settings())


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "bookgraph.api.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


async def cmd_init_async(args: argparse.Namespace) -> int:
    """Apply SQL migrations."""
    from .schema import run_migrations

    db = get_db()
    try:
        applied = await run_migrations(db)
        print(f"Applied {applied} migrations")
        return 0
    except Exception as e:
        logger.error("Failed to initialize database: %s", e)
        return 1
    finally:
        await db.close()


def cmd_init(args: argparse.Namespace) -> int:
    return asyncio.run(cmd_init_async(args))


async def cmd_status_async(args: argparse.Namespace) -> int:
    """Show database status."""
    from .repositories import PostgresDocumentRepository

    settings = get_settings()
    db = get_db()
    repo = PostgresDocumentRepository.from_settings(db, settings)

    try:
        if not await repo.ping():
            logger.error("Database is not reachable")
            return 1

        counts = await repo.count_documents()

        print("\nBookGraph Database Status")
        print("=" * 50)
        print(f"Embeddings table: {settings.embeddings_table}")
        print(f"Metadata table: {settings.metadata_table}")
        print(f"Similarity function: {settings.similarity_function}")
        print()
        print(f"  fragments: {counts['fragments']:,}")
        print(f"  books: {counts['books']:,}")
        return 0

    except BookGraphError as e:
        logger.error("Failed to get status: %s", e)
        return 1
    finally:
        await db.close()


def cmd_status(args: argparse.Namespace) -> int:
    return asyncio.run(cmd_status_async(args))


async def cmd_graph_async(args: argparse.Namespace) -> int:
    """Compute and print the graph for one book."""
    from .repositories import PostgresDocumentRepository
    from .services.graph import BookGraphService

    settings = get_settings()
    db = get_db()
    service = BookGraphService.from_settings(
        PostgresDocumentRepository.from_settings(db, settings), settings
    )

    match_threshold = (
        args.match_threshold
        if args.match_threshold is not None
        else settings.default_match_threshold
    )
    top_n = args.top_n if args.top_n is not None else settings.default_top_n

    try:
        graph = await asyncio.wait_for(
            service.build_graph(args.book_id, match_threshold, top_n),
            timeout=settings.request_timeout,
        )
    except BookNotFoundError:
        logger.error("Book not found: %s", args.book_id)
        return 1
    except BookGraphError as e:
        logger.error("Failed to build graph: %s", e)
        return 1
    except asyncio.TimeoutError:
        logger.error("Graph computation timed out after %ss", settings.request_timeout)
        return 1
    finally:
        await db.close()

    print(json.dumps(graph.model_dump(), indent=2 if args.pretty else None))
    return 0


def cmd_graph(args: argparse.Namespace) -> int:
    return asyncio.run(cmd_graph_async(args))


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="BookGraph CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default: API_HOST)")
    serve_parser.add_argument("--port", type=int, help="Port (default: API_PORT)")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # init command
    subparsers.add_parser("init", help="Create the documents table, books view and similarity function")

    # status command
    subparsers.add_parser("status", help="Show database status")

    # graph command
    graph_parser = subparsers.add_parser("graph", help="Print the similarity graph for a book")
    graph_parser.add_argument("--book-id", required=True, help="Book to build the graph around")
    graph_parser.add_argument("--match-threshold", type=float, help="Similarity cutoff (default: 0.75)")
    graph_parser.add_argument("--top-n", type=int, help="Candidates per fragment (default: 3)")
    graph_parser.add_argument("--pretty", action="store_true", help="Indent JSON output")

    args = parser.parse_args()
    configure_logging(get_settings().log_level)

    commands = {
        "serve": cmd_serve,
        "init": cmd_init,
        "status": cmd_status,
        "graph": cmd_graph,
    }

    if args.command not in commands:
        parser.print_help()
        return 1

    try:
        return commands[args.command](args)
    except ValueError as e:
        # Raised when no database URL is configured
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
