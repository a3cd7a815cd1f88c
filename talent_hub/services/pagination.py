"""Windowed, total-count-aware pagination over SQLAlchemy select statements."""
import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from talent_hub.errors import InvalidPagination

MAX_LIMIT = 100


@dataclass
class PageResult:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


def validate_pagination(page: int, limit: int) -> None:
    if page < 1 or limit < 1 or limit > MAX_LIMIT:
        raise InvalidPagination(
            details=f"page must be >= 1 and limit between 1 and {MAX_LIMIT}",
        )


def empty_page(page: int, limit: int) -> PageResult:
    return PageResult(items=[], total=0, page=page, limit=limit)


def paginate(db: Session, stmt: Select, *, page: int, limit: int,
             order_by: Sequence[Any]) -> PageResult:
    """Run one page of `stmt` and its total in a single statement.

    The total comes from COUNT(*) OVER () on the same predicate, so it cannot
    disagree with the rows returned. Items are the selected columns of each row
    (the trailing count column stripped).
    """
    validate_pagination(page, limit)
    offset = (page - 1) * limit
    windowed = (
        stmt.add_columns(func.count().over().label("total_count"))
        .order_by(*order_by)
        .limit(limit)
        .offset(offset)
    )
    rows = db.execute(windowed).all()

    if rows:
        total = int(rows[-1].total_count)
    elif offset:
        # Past the last page there is no row to carry the window value.
        total = db.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()
    else:
        total = 0

    items = [tuple(row)[:-1] for row in rows]
    return PageResult(items=items, total=total, page=page, limit=limit)
