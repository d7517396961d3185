"""
Unit tests for document validation.
"""

from datetime import datetime, timezone

import pytest

from docdesk.core.exceptions import ValidationError
from docdesk.models.document import (
    DocumentCategory,
    DocumentPriority,
    DocumentStatus,
    FileType,
)
from docdesk.services.validation import (
    FileInfo,
    derive_file_type,
    normalize_tags,
    parse_bool,
    parse_datetime,
    validate_document_update,
    validate_new_document,
)

ALLOWED = ["application/pdf", "image/png", "text/plain"]
MAX_SIZE = 10 * 1024 * 1024


def errors_by_field(result) -> dict:
    return {e.field: e.message for e in result.errors}


class TestNewDocumentDefaults:
    """Derived fields on a valid upload."""

    def test_expense_report_pdf_defaults(self):
        """Status defaults to pending, priority to medium, pdf type derived."""
        result = validate_new_document(
            {"title": "Q3 expenses", "category": "expense_report"},
            FileInfo("receipts.pdf", "application/pdf", 2048),
            allowed_content_types=ALLOWED,
            max_file_size=MAX_SIZE,
        )

        assert result.ok
        document = result.value
        assert document.status == DocumentStatus.PENDING
        assert document.priority == DocumentPriority.MEDIUM
        assert document.category == DocumentCategory.EXPENSE_REPORT
        assert document.file_type == FileType.PDF
        assert document.tags == []
        assert document.has_file is True
        assert document.file_size == 2048

    def test_without_file_leaves_file_fields_empty(self):
        result = validate_new_document({"title": "Leave", "category": "leave_application"})

        document = result.unwrap()
        assert document.has_file is False
        assert document.original_name is None
        assert document.mime_type is None
        assert document.file_size is None
        assert document.file_type is None

    def test_title_is_trimmed(self):
        result = validate_new_document({"title": "  Padded  ", "category": "other"})
        assert result.unwrap().title == "Padded"

    def test_explicit_priority_and_version(self):
        result = validate_new_document(
            {"title": "Contract", "category": "compliance", "priority": "urgent", "version": "2.1"}
        )
        document = result.unwrap()
        assert document.priority == DocumentPriority.URGENT
        assert document.version == "2.1"

    def test_model_kwargs_cover_every_field(self):
        document = validate_new_document({"title": "T", "category": "other"}).unwrap()
        kwargs = document.as_model_kwargs()
        assert kwargs["title"] == "T"
        assert kwargs["status"] == DocumentStatus.PENDING
        assert "has_file" in kwargs


class TestNewDocumentErrors:
    """Field errors on an invalid upload."""

    def test_missing_title_and_category(self):
        result = validate_new_document({})

        assert not result.ok
        errors = errors_by_field(result)
        assert "title" in errors
        assert errors["category"] == "Please select a valid category"

    def test_title_too_long(self):
        result = validate_new_document({"title": "x" * 201, "category": "other"})
        assert "title" in errors_by_field(result)

    def test_unknown_priority(self):
        result = validate_new_document({"title": "T", "category": "other", "priority": "asap"})
        assert errors_by_field(result)["priority"].startswith("Priority must be one of")

    def test_has_file_without_file(self):
        result = validate_new_document({"title": "T", "category": "other", "has_file": "true"})
        assert errors_by_field(result)["document"] == "No file uploaded"

    def test_empty_file(self):
        result = validate_new_document(
            {"title": "T", "category": "other"},
            FileInfo("empty.pdf", "application/pdf", 0),
        )
        assert errors_by_field(result)["document"] == "Empty file not allowed"

    def test_file_too_large(self):
        result = validate_new_document(
            {"title": "T", "category": "other"},
            FileInfo("big.pdf", "application/pdf", MAX_SIZE + 1),
            max_file_size=MAX_SIZE,
        )
        assert errors_by_field(result)["document"] == "File too large. Maximum size is 10MB"

    def test_disallowed_content_type(self):
        result = validate_new_document(
            {"title": "T", "category": "other"},
            FileInfo("script.sh", "application/x-sh", 10),
            allowed_content_types=ALLOWED,
        )
        assert errors_by_field(result)["document"] == "Invalid file type"

    def test_bad_expiry_date(self):
        result = validate_new_document(
            {"title": "T", "category": "other", "expiry_date": "next tuesday"}
        )
        assert "expiry_date" in errors_by_field(result)

    def test_unwrap_raises_with_all_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_new_document({"priority": "bogus"}).unwrap()

        fields = {e.field for e in exc_info.value.errors}
        assert fields == {"title", "category", "priority"}


class TestDocumentUpdate:
    """Owner metadata edits."""

    def test_only_updatable_fields_are_kept(self):
        result = validate_document_update(
            {"title": "New", "status": "approved", "uploaded_by_id": 99, "has_file": True}
        )
        assert result.unwrap() == {"title": "New"}

    def test_empty_title_rejected(self):
        result = validate_document_update({"title": "   "})
        assert "title" in errors_by_field(result)

    def test_description_can_be_cleared(self):
        assert validate_document_update({"description": ""}).unwrap() == {"description": None}

    def test_tags_and_dates_are_normalized(self):
        changes = validate_document_update(
            {"tags": " Travel, HOTEL ,,", "expiry_date": "2025-01-31T00:00:00"}
        ).unwrap()
        assert changes["tags"] == ["travel", "hotel"]
        assert changes["expiry_date"] == datetime(2025, 1, 31, tzinfo=timezone.utc)

    def test_vendor_fields(self):
        changes = validate_document_update(
            {"vendor_name": "Acme", "vendor_date": "2024-05-01T12:00:00Z"}
        ).unwrap()
        assert changes["vendor_name"] == "Acme"
        assert changes["vendor_date"].tzinfo is not None

    def test_non_mapping_body(self):
        result = validate_document_update(["title"])
        assert errors_by_field(result) == {"body": "Request body must be an object"}


class TestHelpers:
    """Tag, date, bool and file type helpers."""

    @pytest.mark.parametrize(
        "mime_type,name,expected",
        [
            ("application/pdf", "a.pdf", FileType.PDF),
            ("application/msword", "a.doc", FileType.DOC),
            (
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "a.docx",
                FileType.DOCX,
            ),
            ("application/octet-stream", "legacy.doc", FileType.DOC),
            ("image/png", "scan.png", FileType.IMAGE),
            ("text/plain", "notes.txt", FileType.OTHER),
        ],
    )
    def test_derive_file_type(self, mime_type, name, expected):
        assert derive_file_type(mime_type, name) == expected

    def test_normalize_tags_accepts_json_array(self):
        assert normalize_tags('["Travel", " Q3 "]') == ["travel", "q3"]

    def test_normalize_tags_keeps_order(self):
        assert normalize_tags(["b", "A", "c"]) == ["b", "a", "c"]

    def test_normalize_tags_rejects_non_strings(self):
        with pytest.raises(ValueError):
            normalize_tags([1, 2])

    def test_parse_datetime_converts_to_utc(self):
        value = parse_datetime("2024-03-01T10:00:00+02:00")
        assert value == datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)

    def test_parse_bool(self):
        assert parse_bool("yes") is True
        assert parse_bool("0") is False
        assert parse_bool(None) is None
        with pytest.raises(ValueError):
            parse_bool("maybe")
