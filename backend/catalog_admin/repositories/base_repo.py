import math
from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, Tuple, Type, TypeVar

from sqlalchemy import or_
from sqlalchemy.orm import Session

from catalog_admin.config import settings
from catalog_admin.exceptions import InvalidQueryError

ModelT = TypeVar("ModelT")

SORT_ORDERS = ("asc", "desc")

# widest integer any supported backend binds (signed 64-bit)
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1


@dataclass
class Page(Generic[ModelT]):
    """One offset-paginated slice of an ordered result set."""

    items: List[ModelT] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 15

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def from_index(self) -> Optional[int]:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def to_index(self) -> Optional[int]:
        if not self.items:
            return None
        return self.from_index + len(self.items) - 1


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BaseRepository(Generic[ModelT]):
    """
    Query gateway for a single mapped table.

    Subclasses bind ``model`` and declare which columns callers may filter,
    search and sort on. Anything outside those lists is rejected with
    InvalidQueryError rather than silently ignored.
    """

    model: Type[ModelT]
    filterable_fields: Tuple[str, ...] = ()
    searchable_fields: Tuple[str, ...] = ()
    sortable_fields: Tuple[str, ...] = ("id",)

    def __init__(self, db: Session):
        self.db = db

    def _column(self, name: str):
        return getattr(self.model, name)

    def _coerce(self, name: str, value: Any):
        python_type = self._column(name).type.python_type
        try:
            if not isinstance(value, python_type):
                value = python_type(value)
        except (TypeError, ValueError, ArithmeticError):
            raise InvalidQueryError(f"Invalid value {value!r} for filter '{name}'.")
        if isinstance(value, int) and not INT_MIN <= value <= INT_MAX:
            raise InvalidQueryError(f"Value for filter '{name}' is out of range.")
        return value

    def list(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        search: str = "",
        sort_by: str = "id",
        sort_order: str = "asc",
        per_page: Optional[int] = None,
        page: int = 1,
    ) -> Page[ModelT]:
        query = self.db.query(self.model)

        for name, value in (filters or {}).items():
            if name not in self.filterable_fields:
                raise InvalidQueryError(f"Filtering by '{name}' is not allowed.")
            query = query.filter(self._column(name) == self._coerce(name, value))

        if search and self.searchable_fields:
            like = f"%{_escape_like(search)}%"
            query = query.filter(
                or_(*[self._column(f).ilike(like, escape="\\") for f in self.searchable_fields])
            )

        if sort_by not in self.sortable_fields:
            raise InvalidQueryError(f"Sorting by '{sort_by}' is not allowed.")
        order = (sort_order or "").lower()
        if order not in SORT_ORDERS:
            raise InvalidQueryError(f"Sort order must be one of {', '.join(SORT_ORDERS)}.")

        per_page = per_page or settings.DEFAULT_PER_PAGE
        per_page = max(1, min(int(per_page), settings.MAX_PER_PAGE))
        page = max(1, int(page or 1))
        offset = (page - 1) * per_page
        if offset > INT_MAX:
            raise InvalidQueryError("The page parameter is out of range.")

        total = query.count()
        items = (
            query.order_by(*self._ordering(sort_by, order))
            .offset(offset)
            .limit(per_page)
            .all()
        )
        return Page(items=items, total=total, page=page, per_page=per_page)

    def _ordering(self, sort_by: str, order: str):
        # id breaks ties so equal sort values keep a stable page position
        names = [sort_by] if sort_by == "id" else [sort_by, "id"]
        keys = [self._column(n) for n in names]
        return [k.asc() if order == "asc" else k.desc() for k in keys]

    def get(self, id) -> Optional[ModelT]:
        return self.db.get(self.model, id)

    def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        self.db.flush()
        return entity

    def remove(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()

    def exists_where(self, name: str, value: Any, exclude_id=None) -> bool:
        query = self.db.query(self.model).filter(self._column(name) == value)
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        return self.db.query(query.exists()).scalar()
