"""
Domain exceptions raised by the document store and graph pipeline.

The API layer maps these onto HTTP responses; everything below the
router raises only these (or lets psycopg errors be wrapped into
StoreQueryError at the repository boundary).
"""


class BookGraphError(Exception):
    """Base exception for graph pipeline failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreQueryError(BookGraphError):
    """A read against the document store or similarity function failed."""


class BookNotFoundError(BookGraphError):
    """No unique metadata record exists for a book ID."""

    def __init__(self, book_id: str, message: str | None = None):
        super().__init__(message or f"Book {book_id} not found")
        self.book_id = book_id


class MetadataValidationError(BookGraphError):
    """A metadata record is missing a field the graph depends on."""

    def __init__(self, book_id: str, message: str):
        super().__init__(f"Invalid metadata for book ID {book_id}: {message}")
        self.book_id = book_id
