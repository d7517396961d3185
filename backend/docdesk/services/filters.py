"""
Typed query filters.

Query-string selectors are parsed once at the HTTP boundary into these
structures, then translated into pipeline stages. ``all`` (or an empty
value) on a selector means no filter.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from docdesk.core.exceptions import FieldError, ValidationError
from docdesk.models.document import DocumentCategory, DocumentStatus
from docdesk.models.user import UserRole
from docdesk.services.pipeline import Pipeline
from docdesk.services.validation import parse_datetime

ALL = "all"

# Public sort names mapped to pipeline fields
OWNER_SORT_FIELDS: Mapping[str, str] = {
    "created_at": "created_at",
    "title": "title",
    "status": "status",
    "file_size": "file_size",
}
ADMIN_SORT_FIELDS: Mapping[str, str] = {
    "created_at": "created_at",
    "title": "title",
    "status": "status",
    "uploaded_by": "owner.name",
}


def _selector(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ALL:
        return None
    return value


def _enum_selector(name: str, value: Optional[str], enum_cls, errors: list):
    value = _selector(value)
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join([ALL] + [m.value for m in enum_cls])
        errors.append(FieldError(name, f"{name} must be one of: {allowed}"))
        return None


@dataclass(frozen=True)
class SortSpec:
    """Validated sort: a pipeline field and a direction."""

    field: str = "created_at"
    descending: bool = True

    @classmethod
    def parse(
        cls,
        sort_by: Optional[str],
        sort_order: Optional[str],
        allowed: Mapping[str, str],
    ) -> "SortSpec":
        """
        Resolve public sort parameters against an allow-list.

        Raises:
            ValidationError: For an unlisted field or an unknown direction.
        """
        errors = []
        sort_by = sort_by or "created_at"
        sort_order = (sort_order or "desc").lower()
        if sort_by not in allowed:
            errors.append(
                FieldError("sort_by", f"sort_by must be one of: {', '.join(allowed)}")
            )
        if sort_order not in ("asc", "desc"):
            errors.append(FieldError("sort_order", "sort_order must be asc or desc"))
        if errors:
            raise ValidationError(errors)
        return cls(field=allowed[sort_by], descending=sort_order == "desc")

    def apply(self, pipeline: Pipeline) -> Pipeline:
        if self.field.startswith("owner."):
            pipeline = pipeline.join_owner()
        return pipeline.sort((self.field, self.descending))


@dataclass(frozen=True)
class DocumentFilter:
    """Combinable document predicates."""

    owner_id: Optional[int] = None
    status: Optional[DocumentStatus] = None
    category: Optional[DocumentCategory] = None
    department: Optional[str] = None
    include_archived: bool = False
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    @classmethod
    def from_query(
        cls,
        status: Optional[str] = None,
        category: Optional[str] = None,
        department: Optional[str] = None,
        owner_id: Optional[int] = None,
        created_from: Optional[str] = None,
        created_to: Optional[str] = None,
        include_archived: bool = False,
    ) -> "DocumentFilter":
        """
        Parse raw selectors.

        Raises:
            ValidationError: If a selector is not a known value.
        """
        errors: list = []
        status_value = _enum_selector("status", status, DocumentStatus, errors)
        category_value = _enum_selector("category", category, DocumentCategory, errors)

        dates = {}
        for name, raw in (("start_date", created_from), ("end_date", created_to)):
            try:
                dates[name] = parse_datetime(raw)
            except ValueError:
                errors.append(FieldError(name, f"{name} must be an ISO 8601 date"))

        if errors:
            raise ValidationError(errors)

        return cls(
            owner_id=owner_id,
            status=status_value,
            category=category_value,
            department=_selector(department),
            include_archived=include_archived,
            created_from=dates.get("start_date"),
            created_to=dates.get("end_date"),
        )

    def to_pipeline(self, pipeline: Optional[Pipeline] = None) -> Pipeline:
        pipeline = pipeline or Pipeline()
        if not self.include_archived:
            pipeline = pipeline.match("is_archived", False)
        if self.owner_id is not None:
            pipeline = pipeline.match("uploaded_by_id", self.owner_id)
        if self.status is not None:
            pipeline = pipeline.match("status", self.status)
        if self.category is not None:
            pipeline = pipeline.match("category", self.category)
        if self.created_from is not None:
            pipeline = pipeline.match("created_at", self.created_from, op="gte")
        if self.created_to is not None:
            pipeline = pipeline.match("created_at", self.created_to, op="lte")
        if self.department is not None:
            # Department lives on the owning user, not the document
            pipeline = pipeline.join_owner().match("owner.department", self.department)
        return pipeline


@dataclass(frozen=True)
class UserFilter:
    """Admin user-directory predicates."""

    department: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[UserRole] = None
    search: Optional[str] = None

    @classmethod
    def from_query(
        cls,
        department: Optional[str] = None,
        status: Optional[str] = None,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> "UserFilter":
        errors: list = []
        is_active = None
        status_value = _selector(status)
        if status_value is not None:
            if status_value == "active":
                is_active = True
            elif status_value == "inactive":
                is_active = False
            else:
                errors.append(FieldError("status", "status must be one of: all, active, inactive"))
        role_value = _enum_selector("role", role, UserRole, errors)
        if errors:
            raise ValidationError(errors)
        search = (search or "").strip() or None
        return cls(
            department=_selector(department),
            is_active=is_active,
            role=role_value,
            search=search,
        )
