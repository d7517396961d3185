"""
Declarative Query Pipeline Module.

A ``Pipeline`` is an ordered list of stages describing a query over
documents: match, join the owner, text search, group, sort, paginate. The
pipeline itself knows nothing about storage. Runners translate it:

- ``SqlAlchemyRunner`` compiles it to a single SELECT against the database.
- ``InMemoryRunner`` evaluates it over plain dict records.

Field names are document attributes (``status``, ``created_at``, ...) or,
after a ``JoinOwner`` stage, owner attributes prefixed with ``owner.``
(``owner.department``). ``score`` refers to the relevance computed by
``TextSearch``; after ``Group`` the sortable names are ``key`` and the
aggregate names.
"""

import logging
import math
import operator
import re
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from functools import reduce
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar

from sqlalchemy import String, case, exists, func, literal, select
from sqlalchemy.orm import Session, aliased

from docdesk.db.base import as_utc
from docdesk.models.document import Document
from docdesk.models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

TEXT_WEIGHTS: Tuple[Tuple[str, int], ...] = (("title", 10), ("description", 5), ("tags", 1))

OWNER_PREFIX = "owner."

_TOKEN_PATTERN = re.compile(r"\w+")


class PipelineError(ValueError):
    """Raised when a pipeline cannot be evaluated as written."""


def tokenize(query: str) -> List[str]:
    """Lower-cased word terms of a search query, duplicates removed."""
    seen: List[str] = []
    for term in _TOKEN_PATTERN.findall((query or "").lower()):
        if term not in seen:
            seen.append(term)
    return seen


# Stages

@dataclass(frozen=True)
class Match:
    """
    Keep records whose ``field`` satisfies ``op`` against ``value``.

    Supported ops: eq, ne, in, gte, lt, lte, is_null, not_null.
    """

    field: str
    value: Any = None
    op: str = "eq"


@dataclass(frozen=True)
class JoinOwner:
    """Make the uploading user's attributes available as ``owner.*``."""


@dataclass(frozen=True)
class TextSearch:
    """Score records by weighted term matches and keep those scoring above 0."""

    query: str
    weights: Tuple[Tuple[str, int], ...] = TEXT_WEIGHTS


@dataclass(frozen=True)
class Count:
    pass


@dataclass(frozen=True)
class Sum:
    field: str


@dataclass(frozen=True)
class AvgDuration:
    """Mean of ``end - start`` over records where both are set."""

    start: str
    end: str


@dataclass(frozen=True)
class Group:
    """
    Collapse records into one row per distinct ``key``.

    ``key=None`` produces a single row over all records.
    """

    key: Optional[str]
    aggregates: Tuple[Tuple[str, Any], ...] = (("count", Count()),)


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Sort:
    keys: Tuple[SortKey, ...]


@dataclass(frozen=True)
class Paginate:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Pipeline:
    """Immutable ordered list of stages; builder methods return a new pipeline."""

    stages: Tuple[Any, ...] = ()

    def _add(self, stage) -> "Pipeline":
        return replace(self, stages=self.stages + (stage,))

    def match(self, field_name: str, value: Any = None, op: str = "eq") -> "Pipeline":
        return self._add(Match(field_name, value, op))

    def join_owner(self) -> "Pipeline":
        if self.has(JoinOwner):
            return self
        return self._add(JoinOwner())

    def search(self, query: str) -> "Pipeline":
        return self._add(TextSearch(query))

    def group(self, key: Optional[str], **aggregates) -> "Pipeline":
        items = tuple(aggregates.items()) or (("count", Count()),)
        return self._add(Group(key, items))

    def sort(self, *keys: Tuple[str, bool]) -> "Pipeline":
        return self._add(Sort(tuple(SortKey(name, desc) for name, desc in keys)))

    def paginate(self, page: int, limit: int) -> "Pipeline":
        return self._add(Paginate(page, limit))

    def has(self, stage_type) -> bool:
        return any(isinstance(stage, stage_type) for stage in self.stages)

    def first(self, stage_type):
        for stage in self.stages:
            if isinstance(stage, stage_type):
                return stage
        return None

    def without(self, *stage_types) -> "Pipeline":
        return replace(
            self,
            stages=tuple(s for s in self.stages if not isinstance(s, stage_types)),
        )


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to render a pager."""

    items: List[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def paginate(runner, pipeline: Pipeline, page: int, limit: int) -> Page:
    """
    Run ``pipeline`` for one page.

    An ``id`` tie-break is appended to the sort so that consecutive pages
    never overlap or skip records.
    """
    base = pipeline.without(Paginate)
    sort = base.first(Sort)
    if sort is None:
        base = base.sort(("created_at", True), ("id", True))
    elif not any(k.field == "id" for k in sort.keys):
        base = replace(
            base,
            stages=tuple(
                Sort(s.keys + (SortKey("id", True),)) if s is sort else s
                for s in base.stages
            ),
        )
    total = runner.count(base)
    items = runner.run(base.paginate(page, limit))
    return Page(items=items, page=page, limit=limit, total=total)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return as_utc(value)
    return value


# SQL runner

class SqlAlchemyRunner:
    """Compile a pipeline to SQLAlchemy and execute it on a session."""

    def __init__(self, db: Session):
        self.db = db

    def _duration_seconds(self, start, end):
        if self.db.get_bind().dialect.name == "sqlite":
            return (func.julianday(end) - func.julianday(start)) * 86400.0
        return func.extract("epoch", end - start)

    def _column(self, name: str, owner):
        if name.startswith(OWNER_PREFIX):
            if owner is None:
                raise PipelineError(f"Field {name} requires a JoinOwner stage")
            return getattr(owner, name[len(OWNER_PREFIX):])
        column = getattr(Document, name, None)
        if column is None:
            raise PipelineError(f"Unknown field: {name}")
        return column

    def _condition(self, stage: Match, owner):
        column = self._column(stage.field, owner)
        value = stage.value
        if stage.op == "eq":
            return column.is_(None) if value is None else column == value
        if stage.op == "ne":
            return column.is_not(None) if value is None else column != value
        if stage.op == "in":
            return column.in_(list(value))
        if stage.op == "gte":
            return column >= value
        if stage.op == "lt":
            return column < value
        if stage.op == "lte":
            return column <= value
        if stage.op == "is_null":
            return column.is_(None)
        if stage.op == "not_null":
            return column.is_not(None)
        raise PipelineError(f"Unsupported match operator: {stage.op}")

    def _fold(self, expression):
        """Lower-case an expression the way ``str.lower`` does."""
        if self.db.get_bind().dialect.name == "sqlite":
            # Built-in lower() only folds ASCII; see Database.open
            return func.unicode_lower(expression, type_=String)
        return func.lower(expression, type_=String)

    def _tag_contains(self, column, term: str):
        """EXISTS over the elements of a JSON tag list."""
        if self.db.get_bind().dialect.name == "sqlite":
            elements = func.json_each(column).table_valued("value")
        else:
            elements = func.json_array_elements_text(column).table_valued("value")
        return exists(
            select(literal(1))
            .select_from(elements)
            .where(self._fold(elements.c.value).contains(term, autoescape=True))
        )

    def _score(self, stage: TextSearch, owner):
        terms = tokenize(stage.query)
        if not terms:
            return None
        parts = []
        for term in terms:
            for name, weight in stage.weights:
                column = self._column(name, owner)
                if name == "tags":
                    hit = self._tag_contains(column, term)
                else:
                    hit = self._fold(column).contains(term, autoescape=True)
                parts.append(case((hit, weight), else_=0))
        return reduce(operator.add, parts)

    def _compile(self, pipeline: Pipeline):
        """Return (owner alias, where clauses, score expression)."""
        owner = aliased(User, name="owner") if pipeline.has(JoinOwner) else None
        clauses = []
        score = None
        for stage in pipeline.stages:
            if isinstance(stage, Match):
                clauses.append(self._condition(stage, owner))
            elif isinstance(stage, TextSearch):
                score = self._score(stage, owner)
                if score is not None:
                    clauses.append(score > 0)
        return owner, clauses, score

    def _from(self, stmt, owner):
        if owner is not None:
            stmt = stmt.join(owner, Document.uploaded_by_id == owner.id)
        return stmt

    def _aggregate(self, agg, owner):
        if isinstance(agg, Count):
            return func.count(Document.id)
        if isinstance(agg, Sum):
            return func.coalesce(func.sum(self._column(agg.field, owner)), 0)
        if isinstance(agg, AvgDuration):
            return func.avg(
                self._duration_seconds(
                    self._column(agg.start, owner),
                    self._column(agg.end, owner),
                )
            )
        raise PipelineError(f"Unsupported aggregate: {agg!r}")

    def _order_by(self, sort: Optional[Sort], resolve):
        if sort is None:
            return []
        order = []
        for key in sort.keys:
            expr = resolve(key.field)
            order.append(expr.desc() if key.descending else expr.asc())
        return order

    def count(self, pipeline: Pipeline) -> int:
        """Number of records (or groups) the pipeline yields before pagination."""
        owner, clauses, _ = self._compile(pipeline)
        group = pipeline.first(Group)
        if group is not None:
            key = literal(None) if group.key is None else self._column(group.key, owner)
            inner = self._from(select(key.label("key")).select_from(Document), owner)
            inner = inner.where(*clauses).group_by(key)
            return self.db.scalar(select(func.count()).select_from(inner.subquery())) or 0
        stmt = self._from(select(func.count(Document.id)).select_from(Document), owner)
        return self.db.scalar(stmt.where(*clauses)) or 0

    def run(self, pipeline: Pipeline) -> List[Any]:
        """Documents for plain pipelines; dict rows for grouped ones."""
        owner, clauses, score = self._compile(pipeline)
        sort = pipeline.first(Sort)
        page = pipeline.first(Paginate)
        group = pipeline.first(Group)

        if group is not None:
            return self._run_group(group, owner, clauses, sort, page)

        def resolve(name):
            if name == "score":
                if score is None:
                    return literal(0)
                return score
            return self._column(name, owner)

        stmt = self._from(select(Document), owner).where(*clauses)
        stmt = stmt.order_by(*self._order_by(sort, resolve))
        if page is not None:
            stmt = stmt.offset(page.offset).limit(page.limit)
        return list(self.db.scalars(stmt).unique().all())

    def _run_group(self, group: Group, owner, clauses, sort, page) -> List[Dict[str, Any]]:
        key = literal(None) if group.key is None else self._column(group.key, owner)
        labelled = {name: self._aggregate(agg, owner).label(name) for name, agg in group.aggregates}
        stmt = select(key.label("key"), *labelled.values()).select_from(Document)
        stmt = self._from(stmt, owner).where(*clauses)
        if group.key is not None:
            stmt = stmt.group_by(key)

        def resolve(name):
            if name == "key":
                return key
            if name in labelled:
                return labelled[name]
            raise PipelineError(f"Cannot sort grouped rows by {name}")

        stmt = stmt.order_by(*self._order_by(sort, resolve))
        if page is not None:
            stmt = stmt.offset(page.offset).limit(page.limit)

        rows = []
        for row in self.db.execute(stmt).mappings():
            out = {"key": _plain(row["key"])}
            for name, agg in group.aggregates:
                value = row[name]
                if isinstance(agg, AvgDuration):
                    value = None if value is None else timedelta(seconds=float(value))
                elif value is not None:
                    value = int(value)
                out[name] = value
            rows.append(out)
        return rows


# In-memory runner

class InMemoryRunner:
    """
    Evaluate a pipeline over plain mappings.

    Args:
        records: Document-shaped mappings keyed by model attribute name.
        users_by_id: Owner records used by ``JoinOwner``, keyed by user id.
    """

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        users_by_id: Optional[Mapping[int, Mapping[str, Any]]] = None,
    ):
        self.records = [dict(r) for r in records]
        self.users_by_id = dict(users_by_id or {})

    def _get(self, record: Mapping[str, Any], name: str) -> Any:
        if name.startswith(OWNER_PREFIX):
            if "owner" not in record:
                raise PipelineError(f"Field {name} requires a JoinOwner stage")
            return _plain((record["owner"] or {}).get(name[len(OWNER_PREFIX):]))
        return _plain(record.get(name))

    def _matches(self, record, stage: Match) -> bool:
        actual = self._get(record, stage.field)
        expected = _plain(stage.value)
        if stage.op == "eq":
            return actual == expected
        if stage.op == "ne":
            return actual != expected
        if stage.op == "in":
            return actual in {_plain(v) for v in stage.value}
        if stage.op == "is_null":
            return actual is None
        if stage.op == "not_null":
            return actual is not None
        if actual is None:
            return False
        if stage.op == "gte":
            return actual >= expected
        if stage.op == "lt":
            return actual < expected
        if stage.op == "lte":
            return actual <= expected
        raise PipelineError(f"Unsupported match operator: {stage.op}")

    def _score(self, record, stage: TextSearch) -> int:
        score = 0
        for term in tokenize(stage.query):
            for name, weight in stage.weights:
                value = record.get(name)
                if name == "tags":
                    hit = any(term in str(tag).lower() for tag in (value or []))
                else:
                    hit = value is not None and term in str(value).lower()
                if hit:
                    score += weight
        return score

    def _sorted(self, rows: List[Dict[str, Any]], sort: Optional[Sort], getter) -> List[Dict[str, Any]]:
        if sort is None:
            return rows
        # Stable sorts applied from the least significant key
        for key in reversed(sort.keys):
            rows = sorted(
                rows,
                key=lambda r, k=key: (getter(r, k.field) is not None, getter(r, k.field)),
                reverse=key.descending,
            )
        return rows

    def _filtered(self, pipeline: Pipeline) -> List[Dict[str, Any]]:
        rows = [dict(r) for r in self.records]
        for stage in pipeline.stages:
            if isinstance(stage, JoinOwner):
                for row in rows:
                    row["owner"] = self.users_by_id.get(row.get("uploaded_by_id"))
                rows = [row for row in rows if row["owner"] is not None]
            elif isinstance(stage, Match):
                rows = [row for row in rows if self._matches(row, stage)]
            elif isinstance(stage, TextSearch):
                if not tokenize(stage.query):
                    continue
                for row in rows:
                    row["score"] = self._score(row, stage)
                rows = [row for row in rows if row["score"] > 0]
        return rows

    def _grouped(self, rows, group: Group) -> List[Dict[str, Any]]:
        buckets: Dict[Any, List[Dict[str, Any]]] = {}
        if group.key is None:
            buckets[None] = rows
        else:
            for row in rows:
                buckets.setdefault(self._get(row, group.key), []).append(row)

        out = []
        for key, members in buckets.items():
            result = {"key": key}
            for name, agg in group.aggregates:
                if isinstance(agg, Count):
                    result[name] = len(members)
                elif isinstance(agg, Sum):
                    result[name] = sum(self._get(m, agg.field) or 0 for m in members)
                elif isinstance(agg, AvgDuration):
                    spans = [
                        self._get(m, agg.end) - self._get(m, agg.start)
                        for m in members
                        if self._get(m, agg.start) is not None and self._get(m, agg.end) is not None
                    ]
                    result[name] = sum(spans, timedelta()) / len(spans) if spans else None
                else:
                    raise PipelineError(f"Unsupported aggregate: {agg!r}")
            out.append(result)
        return out

    def count(self, pipeline: Pipeline) -> int:
        return len(self.run(pipeline.without(Paginate, Sort)))

    def run(self, pipeline: Pipeline) -> List[Dict[str, Any]]:
        rows = self._filtered(pipeline)
        group = pipeline.first(Group)
        if group is not None:
            rows = self._grouped(rows, group)
            getter = lambda r, name: _plain(r.get(name))  # noqa: E731
        else:
            def getter(r, name):
                if name == "score":
                    return r.get("score", 0)
                return self._get(r, name)

        rows = self._sorted(rows, pipeline.first(Sort), getter)
        page = pipeline.first(Paginate)
        if page is not None:
            rows = rows[page.offset:page.offset + page.limit]
        return rows
