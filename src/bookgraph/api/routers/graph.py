"""
Graph router - serves book similarity graphs.

Endpoints:
- GET /graph?book_id=...&match_threshold=...&top_n=... - Similarity graph for a book

Data:
- Reads embeddings and metadata from the documents table
- Similar books come from the nearest-neighbor SQL function, one call per
  embedding fragment, summed into one score per book

Any other HTTP method on /graph answers 405.
"""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Query

from ...core.exceptions import BookNotFoundError
from ...core.models import GraphData
from ..dependencies import GraphServiceDependency, SettingsDependency
from ..errors import InternalServerError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=GraphData)
async def get_book_graph(
    service: GraphServiceDependency,
    settings: SettingsDependency,
    book_id: Annotated[
        str | None, Query(description="Book to build the graph around")
    ] = None,
    match_threshold: Annotated[
        float | None,
        Query(ge=0.0, le=1.0, description="Minimum similarity for a candidate (default 0.75)"),
    ] = None,
    top_n: Annotated[
        int | None,
        Query(ge=0, description="Candidates per embedding fragment (default 3)"),
    ] = None,
) -> GraphData:
    """
    Get the similarity graph for a book.

    Nodes are the selected book followed by up to `related_books_limit`
    (20 by default) related books. `top_n` bounds candidates per embedding
    fragment, not the number of nodes.

    Links:
    - selected book -> each related book (value 1)
    - every pair of books sharing a primary LoCC category (value 1)
    """
    if not book_id or not book_id.strip():
        raise ValidationError("Missing book_id parameter")

    if match_threshold is None:
        match_threshold = settings.default_match_threshold
    if top_n is None:
        top_n = settings.default_top_n

    try:
        return await asyncio.wait_for(
            service.build_graph(book_id, match_threshold, top_n),
            timeout=settings.request_timeout,
        )
    except BookNotFoundError:
        raise NotFoundError("Book")
    except asyncio.TimeoutError:
        logger.error(f"Graph for book {book_id} timed out after {settings.request_timeout}s")
        raise InternalServerError(
            f"Graph computation timed out after {settings.request_timeout:g} seconds"
        )
