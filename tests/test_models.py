"""
Tests for metadata validation and model helpers.
"""

import pytest

from bookgraph.core.exceptions import MetadataValidationError
from bookgraph.core.models import BookMetadata, SimilarityMatch, primary_category


class TestPrimaryCategory:
    def test_first_code_of_semicolon_list(self):
        assert primary_category("PR; PS; PZ") == "PR"

    def test_single_code(self):
        assert primary_category("QA") == "QA"

    def test_no_space_after_separator(self):
        assert primary_category("PR;PS") == "PR"

    def test_surrounding_whitespace_is_stripped(self):
        assert primary_category("  PR  ; PS") == "PR"


class TestBookMetadata:
    def test_from_record_keeps_extra_fields(self):
        meta = BookMetadata.from_record(
            "1342",
            {"book_id": "1342", "title": "Pride and Prejudice", "locc": "PR", "author": "Austen"},
        )
        assert meta.title == "Pride and Prejudice"
        assert meta.group == "PR"
        assert meta.model_dump()["author"] == "Austen"

    def test_group_is_not_serialized(self):
        meta = BookMetadata.from_record("1", {"title": "T", "locc": "PR; PS"})
        assert "group" not in meta.model_dump()

    def test_missing_book_id_is_filled_from_lookup_id(self):
        meta = BookMetadata.from_record("84", {"title": "Frankenstein", "locc": "PR"})
        assert meta.book_id == "84"

    def test_numeric_book_id_is_coerced_to_string(self):
        meta = BookMetadata.from_record("84", {"book_id": 84, "title": "Frankenstein", "locc": "PR"})
        assert meta.book_id == "84"

    def test_missing_locc_raises(self):
        with pytest.raises(MetadataValidationError, match="locc"):
            BookMetadata.from_record("84", {"title": "Frankenstein"})

    def test_blank_locc_raises(self):
        with pytest.raises(MetadataValidationError, match="locc"):
            BookMetadata.from_record("84", {"title": "Frankenstein", "locc": " ; PS"})

    def test_missing_title_raises(self):
        with pytest.raises(MetadataValidationError, match="title"):
            BookMetadata.from_record("84", {"locc": "PR"})

    def test_non_object_record_raises(self):
        with pytest.raises(MetadataValidationError) as exc_info:
            BookMetadata.from_record("84", ["not", "a", "dict"])
        assert exc_info.value.book_id == "84"


class TestSimilarityMatch:
    def test_similarity_is_one_minus_distance(self):
        match = SimilarityMatch(book_id="B2", distance=0.2)
        assert match.similarity == pytest.approx(0.8)

    def test_zero_distance_is_identical(self):
        assert SimilarityMatch(book_id="B2", distance=0.0).similarity == 1.0
