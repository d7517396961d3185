"""
Document Validation Module.

Validates document input independently of the ORM schema. Each validator
returns a ``ValidationResult`` holding either the cleaned value or the list
of field errors; callers run it before touching blob storage or the database.

Derived fields are computed here too: default status and priority, tag
normalization, and the file type of an uploaded blob.
"""

import json
import logging
from dataclasses import dataclass, field, fields as dataclass_fields
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, TypeVar

from docdesk.core.exceptions import FieldError, ValidationError
from docdesk.models.document import (
    DocumentCategory,
    DocumentPriority,
    DocumentStatus,
    FileType,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
REVIEW_COMMENTS_MAX_LENGTH = 500
VENDOR_NAME_MAX_LENGTH = 200
VENDOR_PHONE_MAX_LENGTH = 30

UPDATABLE_FIELDS = (
    "title",
    "description",
    "category",
    "priority",
    "tags",
    "expiry_date",
    "vendor_name",
    "vendor_phone",
    "vendor_date",
    "vendor_notes",
)

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


@dataclass
class ValidationResult(Generic[T]):
    """Either a validated value or the field errors explaining why not."""

    value: Optional[T] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        """Return the value or raise ``ValidationError`` with the field errors."""
        if self.errors:
            raise ValidationError(self.errors)
        return self.value


@dataclass(frozen=True)
class FileInfo:
    """What the client declared about an uploaded file."""

    original_name: str
    mime_type: str
    size: int


@dataclass
class NewDocument:
    """A validated document ready to be persisted."""

    title: str
    category: DocumentCategory
    description: Optional[str] = None
    priority: DocumentPriority = DocumentPriority.MEDIUM
    status: DocumentStatus = DocumentStatus.PENDING
    tags: List[str] = field(default_factory=list)
    expiry_date: Optional[datetime] = None
    vendor_name: Optional[str] = None
    vendor_phone: Optional[str] = None
    vendor_date: Optional[datetime] = None
    vendor_notes: Optional[str] = None
    project_id: Optional[str] = None
    client_name: Optional[str] = None
    document_number: Optional[str] = None
    version: str = "1.0"
    has_file: bool = False
    original_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[FileType] = None

    def as_model_kwargs(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in dataclass_fields(self)}


def derive_file_type(mime_type: str, original_name: str = "") -> FileType:
    """
    Derive the coarse file type of a blob.

    pdf when the MIME type mentions pdf; doc or docx for word-processing MIME
    types or a .doc/.docx file name; image for image MIME types; other
    otherwise.
    """
    mime = (mime_type or "").lower()
    name = (original_name or "").lower()

    if "pdf" in mime:
        return FileType.PDF
    if "word" in mime or name.endswith(".doc") or name.endswith(".docx"):
        return FileType.DOCX if name.endswith(".docx") or "openxml" in mime else FileType.DOC
    if mime.startswith("image/") or "image" in mime:
        return FileType.IMAGE
    return FileType.OTHER


def normalize_tags(raw: Any) -> List[str]:
    """
    Normalize tags to a list of trimmed, lower-cased, non-empty strings.

    Accepts a list, a JSON array string or a comma separated string. Order
    is preserved.
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            raw = json.loads(text)
        else:
            raw = text.split(",")
    if not isinstance(raw, (list, tuple)):
        raise ValueError("Tags must be an array")

    tags = []
    for item in raw:
        if not isinstance(item, str):
            raise ValueError("Tags must be strings")
        tag = item.strip().lower()
        if tag:
            tags.append(tag)
    return tags


def parse_datetime(raw: Any) -> Optional[datetime]:
    """Parse an ISO 8601 value; naive values are taken as UTC."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str):
        value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    else:
        raise ValueError("must be a valid date")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_bool(raw: Any) -> Optional[bool]:
    if raw is None or isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError("must be a boolean")


class _Collector:
    """Accumulates cleaned fields and errors while validating one payload."""

    def __init__(self, raw: Mapping[str, Any]):
        self.raw = raw
        self.cleaned: Dict[str, Any] = {}
        self.errors: List[FieldError] = []

    def present(self, name: str) -> bool:
        return name in self.raw

    def fail(self, name: str, message: str) -> None:
        self.errors.append(FieldError(field=name, message=message))

    def text(
        self,
        name: str,
        max_length: int,
        required: bool = False,
        message: Optional[str] = None,
    ) -> None:
        value = self.raw.get(name)
        if value is None:
            if required:
                self.fail(name, message or f"{name} is required")
            return
        if not isinstance(value, str):
            self.fail(name, f"{name} must be a string")
            return
        value = value.strip()
        if required and not value:
            self.fail(name, message or f"{name} is required")
            return
        if len(value) > max_length:
            self.fail(name, message or f"{name} must be at most {max_length} characters")
            return
        self.cleaned[name] = value or None

    def choice(self, name: str, enum_cls, required: bool = False, message: str = "") -> None:
        value = self.raw.get(name)
        if value is None or value == "":
            if required:
                self.fail(name, message)
            return
        try:
            self.cleaned[name] = enum_cls(value)
        except ValueError:
            self.fail(name, message)

    def date(self, name: str) -> None:
        if name not in self.raw:
            return
        try:
            self.cleaned[name] = parse_datetime(self.raw[name])
        except ValueError:
            self.fail(name, f"{name} must be a valid date")

    def tags(self) -> None:
        if "tags" not in self.raw:
            return
        try:
            self.cleaned["tags"] = normalize_tags(self.raw["tags"])
        except ValueError as e:
            self.fail("tags", str(e))


def _category_message() -> str:
    return "Please select a valid category"


def _priority_message() -> str:
    values = ", ".join(p.value for p in DocumentPriority)
    return f"Priority must be one of: {values}"


def validate_new_document(
    raw: Mapping[str, Any],
    file: Optional[FileInfo] = None,
    allowed_content_types: Optional[Sequence[str]] = None,
    max_file_size: Optional[int] = None,
) -> ValidationResult[NewDocument]:
    """
    Validate an upload request.

    Args:
        raw: Submitted form fields.
        file: Declared details of the uploaded file, if any.
        allowed_content_types: Accepted MIME types for the file.
        max_file_size: Maximum accepted file size in bytes.

    Returns:
        ValidationResult wrapping a ``NewDocument``.
    """
    c = _Collector(raw)
    c.text(
        "title",
        TITLE_MAX_LENGTH,
        required=True,
        message=f"Title is required and must be less than {TITLE_MAX_LENGTH} characters",
    )
    c.text(
        "description",
        DESCRIPTION_MAX_LENGTH,
        message=f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters",
    )
    c.choice("category", DocumentCategory, required=True, message=_category_message())
    c.choice("priority", DocumentPriority, message=_priority_message())
    c.tags()
    c.date("expiry_date")
    c.text("vendor_name", VENDOR_NAME_MAX_LENGTH)
    c.text("vendor_phone", VENDOR_PHONE_MAX_LENGTH)
    c.date("vendor_date")
    c.text("vendor_notes", DESCRIPTION_MAX_LENGTH)
    c.text("project_id", 100)
    c.text("client_name", 200)
    c.text("document_number", 100)
    c.text("version", 20)

    wants_file = None
    try:
        wants_file = parse_bool(raw.get("has_file"))
    except ValueError:
        c.fail("has_file", "has_file must be a boolean")

    if file is None:
        if wants_file:
            c.fail("document", "No file uploaded")
    else:
        if file.size <= 0:
            c.fail("document", "Empty file not allowed")
        elif max_file_size is not None and file.size > max_file_size:
            limit_mb = max_file_size // (1024 * 1024)
            c.fail("document", f"File too large. Maximum size is {limit_mb}MB")
        if allowed_content_types is not None and file.mime_type not in allowed_content_types:
            c.fail("document", "Invalid file type")

    if c.errors:
        return ValidationResult(errors=c.errors)

    document = NewDocument(
        title=c.cleaned["title"],
        category=c.cleaned["category"],
        description=c.cleaned.get("description"),
        priority=c.cleaned.get("priority") or DocumentPriority.MEDIUM,
        tags=c.cleaned.get("tags", []),
        expiry_date=c.cleaned.get("expiry_date"),
        vendor_name=c.cleaned.get("vendor_name"),
        vendor_phone=c.cleaned.get("vendor_phone"),
        vendor_date=c.cleaned.get("vendor_date"),
        vendor_notes=c.cleaned.get("vendor_notes"),
        project_id=c.cleaned.get("project_id"),
        client_name=c.cleaned.get("client_name"),
        document_number=c.cleaned.get("document_number"),
        version=c.cleaned.get("version") or "1.0",
    )
    if file is not None:
        document.has_file = True
        document.original_name = file.original_name
        document.mime_type = file.mime_type
        document.file_size = file.size
        document.file_type = derive_file_type(file.mime_type, file.original_name)

    return ValidationResult(value=document)


def validate_document_update(raw: Mapping[str, Any]) -> ValidationResult[Dict[str, Any]]:
    """
    Validate an owner's metadata edit.

    Only ``UPDATABLE_FIELDS`` are considered; anything else is ignored.
    Returns the cleaned changes keyed by model attribute.
    """
    if not isinstance(raw, Mapping):
        return ValidationResult(errors=[FieldError("body", "Request body must be an object")])

    c = _Collector(raw)
    if c.present("title"):
        c.text(
            "title",
            TITLE_MAX_LENGTH,
            required=True,
            message=f"Title must be between 1 and {TITLE_MAX_LENGTH} characters",
        )
    if c.present("description"):
        c.text("description", DESCRIPTION_MAX_LENGTH)
        c.cleaned.setdefault("description", None)
    if c.present("category"):
        c.choice("category", DocumentCategory, required=True, message=_category_message())
    if c.present("priority"):
        c.choice("priority", DocumentPriority, required=True, message=_priority_message())
    c.tags()
    c.date("expiry_date")
    for name, max_length in (
        ("vendor_name", VENDOR_NAME_MAX_LENGTH),
        ("vendor_phone", VENDOR_PHONE_MAX_LENGTH),
        ("vendor_notes", DESCRIPTION_MAX_LENGTH),
    ):
        if c.present(name):
            c.text(name, max_length)
            c.cleaned.setdefault(name, None)
    c.date("vendor_date")

    if c.errors:
        return ValidationResult(errors=c.errors)

    changes = {k: v for k, v in c.cleaned.items() if k in UPDATABLE_FIELDS}
    return ValidationResult(value=changes)
