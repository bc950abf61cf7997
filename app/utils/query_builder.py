"""
Generic list-query construction for SQLModel tables.

``QueryBuilder`` turns the raw query-string parameters of a list endpoint
into a SQLModel ``select``.  Each step reads the parameters it cares
about and returns ``self`` so the steps can be chained::

    builder = (
        QueryBuilder(request.query_params, Expense, session)
        .filter(["type", "category"])
        .search(["title", "note"])
        .sort()
        .paginate()
        .raw_filter({"user_id": user_id})
    )
    rows = builder.execute()
    meta = builder.count_total()

Recognised parameters: ``searchTerm``, ``sort``, ``page``, ``limit``,
``fields``, plus whatever field names and range parameters the caller
whitelists.  Bad values raise ``BadRequestError``.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from app.core.errors import BadRequestError

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_SORT = "-created_at"

SEARCH_PARAM = "searchTerm"


@dataclass(frozen=True)
class NestedFilter:
    """Exact match on a column of a related table, e.g. ``userEmail`` -> ``user.email``."""

    param: str
    relationship: str
    column: str


@dataclass(frozen=True)
class RangeFilter:
    """Inclusive bounds on ``field`` read from ``min_param``/``max_param``.

    ``kind`` is ``"number"`` or ``"date"``.
    """

    field: str
    min_param: str
    max_param: str
    kind: str = "number"


def _parse_datetime(raw: str) -> datetime:
    value = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    # stored datetimes are naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _escape_like(term: str) -> str:
    # % and _ in user input match literally
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_date_only(raw: str) -> bool:
    return len(raw.strip()) == 10


class QueryBuilder:
    def __init__(self, params: Mapping[str, Any], model, session: Session):
        self.params: Dict[str, Any] = dict(params)
        self.model = model
        self.session = session

        self._conditions: List[Any] = []
        self._joins: List[str] = []
        self._order_by: List[Any] = []
        self._options: List[Any] = []

        self.page = DEFAULT_PAGE
        self.limit = DEFAULT_LIMIT
        self.paginated = False
        self.selected_fields: Optional[List[str]] = None

    # -- helpers ---------------------------------------------------------

    @property
    def column_names(self) -> List[str]:
        return list(self.model.__table__.columns.keys())

    def _param(self, name: str) -> Optional[str]:
        value = self.params.get(name)
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return None
        return value

    def _coerce(self, field: str, raw: Any) -> Any:
        annotation = self.model.model_fields[field].annotation
        if not isinstance(annotation, type):
            return raw
        try:
            if issubclass(annotation, Enum):
                return annotation(raw)
            if issubclass(annotation, bool):
                return str(raw).lower() in {"1", "true", "yes"}
            if issubclass(annotation, (int, float)):
                return annotation(raw)
        except ValueError:
            raise BadRequestError(f"Invalid value for '{field}': {raw}")
        return raw

    # -- chain steps -----------------------------------------------------

    def filter(self, fields: Iterable[str]) -> "QueryBuilder":
        for field in fields:
            raw = self._param(field)
            if raw is None:
                continue
            self._conditions.append(getattr(self.model, field) == self._coerce(field, raw))
        return self

    def search(self, fields: Iterable[str]) -> "QueryBuilder":
        term = self._param(SEARCH_PARAM)
        if term is None:
            return self
        pattern = f"%{_escape_like(term.strip())}%"
        self._conditions.append(
            or_(*[getattr(self.model, field).ilike(pattern, escape="\\") for field in fields])
        )
        return self

    def nested_filter(self, filters: Iterable[NestedFilter]) -> "QueryBuilder":
        for nested in filters:
            raw = self._param(nested.param)
            if raw is None:
                continue
            relationship = getattr(self.model, nested.relationship)
            related_model = relationship.property.mapper.class_
            if nested.relationship not in self._joins:
                self._joins.append(nested.relationship)
            self._conditions.append(getattr(related_model, nested.column) == raw)
        return self

    def sort(self) -> "QueryBuilder":
        raw = self._param("sort") or DEFAULT_SORT
        columns = self.column_names
        for item in raw.split(","):
            item = item.strip()
            descending = item.startswith("-")
            name = item.lstrip("-")
            if name not in columns:
                logger.debug("Ignoring unknown sort field %r", name)
                continue
            column = getattr(self.model, name)
            self._order_by.append(column.desc() if descending else column.asc())
        return self

    def paginate(self) -> "QueryBuilder":
        try:
            page = int(self._param("page") or DEFAULT_PAGE)
            limit = int(self._param("limit") or DEFAULT_LIMIT)
        except ValueError:
            raise BadRequestError("page and limit must be integers")
        if page < 1 or limit < 1:
            raise BadRequestError("page and limit must be greater than zero")

        self.page = page
        self.limit = min(limit, MAX_LIMIT)
        self.paginated = True
        return self

    def include(self, relationships: Iterable[str]) -> "QueryBuilder":
        for name in relationships:
            self._options.append(selectinload(getattr(self.model, name)))
        return self

    def fields(self) -> "QueryBuilder":
        raw = self._param("fields")
        if raw is None:
            return self
        columns = self.column_names
        selected = [name.strip() for name in raw.split(",") if name.strip() in columns]
        if selected:
            if "id" not in selected:
                selected.insert(0, "id")
            self.selected_fields = selected
        return self

    def raw_filter(self, conditions: Mapping[str, Any]) -> "QueryBuilder":
        for field, value in conditions.items():
            self._conditions.append(getattr(self.model, field) == value)
        return self

    def filter_by_range(self, ranges: Iterable[RangeFilter]) -> "QueryBuilder":
        for bounds in ranges:
            column = getattr(self.model, bounds.field)
            low = self._param(bounds.min_param)
            high = self._param(bounds.max_param)
            try:
                if bounds.kind == "date":
                    if low is not None:
                        self._conditions.append(column >= _parse_datetime(low))
                    if high is not None:
                        if _is_date_only(high):
                            # a bare date includes the whole day
                            self._conditions.append(column < _parse_datetime(high) + timedelta(days=1))
                        else:
                            self._conditions.append(column <= _parse_datetime(high))
                else:
                    if low is not None:
                        self._conditions.append(column >= float(low))
                    if high is not None:
                        self._conditions.append(column <= float(high))
            except ValueError:
                raise BadRequestError(
                    f"Invalid range for '{bounds.field}': {bounds.min_param}={low}, {bounds.max_param}={high}"
                )
        return self

    # -- execution -------------------------------------------------------

    def _filtered(self):
        statement = select(self.model)
        for name in self._joins:
            statement = statement.join(getattr(self.model, name))
        if self._conditions:
            statement = statement.where(*self._conditions)
        return statement

    def execute(self) -> list:
        statement = self._filtered().options(*self._options).order_by(*self._order_by)
        if self.paginated:
            statement = statement.offset((self.page - 1) * self.limit).limit(self.limit)
        return list(self.session.exec(statement).all())

    def count_total(self) -> Dict[str, int]:
        total = self.session.exec(select(func.count()).select_from(self._filtered().subquery())).one()

        if not self.paginated:
            return {"page": 1, "limit": max(total, 1), "total": total, "totalPage": 1 if total else 0}

        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "totalPage": math.ceil(total / self.limit),
        }
