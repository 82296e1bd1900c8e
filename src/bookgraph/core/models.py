"""
Pydantic models for books, similarity matches and graph output.

These models are used for:
- Validating metadata read from the document store
- Passing typed results between the aggregator and graph builder
- API response serialization
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import MetadataValidationError


# =============================================================================
# Store Records
# =============================================================================


def primary_category(locc: str) -> str:
    """Return the first code of a semicolon-delimited LoCC classification."""
    return locc.split(";", 1)[0].strip()


class BookMetadata(BaseModel):
    """
    Metadata record for a book.

    Only the fields the graph depends on are declared; every other key
    in the stored record is kept as an extra and serialized back out.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    book_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    locc: str

    @field_validator("locc")
    @classmethod
    def _require_category(cls, value: str) -> str:
        if not primary_category(value):
            raise ValueError("locc must contain at least one category code")
        return value

    @property
    def group(self) -> str:
        """Primary category code used to group nodes."""
        return primary_category(self.locc)

    @classmethod
    def from_record(cls, book_id: str, record: Any) -> "BookMetadata":
        """
        Validate a raw metadata record from the store.

        Args:
            book_id: ID the record was looked up by (used when the record omits it)
            record: Decoded JSON metadata

        Raises:
            MetadataValidationError: If the record is not an object or lacks
                title/locc
        """
        if not isinstance(record, dict):
            raise MetadataValidationError(book_id, "metadata is not an object")

        data = dict(record)
        if data.get("book_id") in (None, ""):
            data["book_id"] = book_id

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(
                ".".join(str(part) for part in err["loc"]) or "record"
                for err in e.errors()
            )
            raise MetadataValidationError(book_id, f"missing or invalid {fields}") from e


class SimilarityMatch(BaseModel):
    """One candidate returned by the nearest-neighbor function."""

    book_id: str
    distance: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def similarity(self) -> float:
        """Similarity score, where 1.0 means identical."""
        return 1.0 - self.distance


class RelatedBook(BaseModel):
    """A related book selected by aggregate similarity."""

    book_id: str
    score: float
    metadata: BookMetadata


# =============================================================================
# Graph Output
# =============================================================================


class NodeMetadata(BaseModel):
    """Identifier and full metadata attached to a graph node."""

    id: str
    data: dict[str, Any]


class GraphNode(BaseModel):
    """A book in the graph. `id` is the display label used by links."""

    id: str
    metadata: NodeMetadata
    group: str


class GraphLink(BaseModel):
    """An undirected edge between two node labels."""

    source: str
    target: str
    value: int = 1


class GraphData(BaseModel):
    """Graph response body."""

    nodes: list[GraphNode] = Field(default_factory=list)
    links: list[GraphLink] = Field(default_factory=list)
