"""
Pagination helpers and the JSON response envelope used by every resource.
"""
import math
from typing import Any, List, Optional, Union

from sqlalchemy import func, select  # type: ignore
from sqlalchemy.ext.asyncio import AsyncSession  # type: ignore

DEFAULT_PAGE = 1
MAX_PAGE = 1000
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def clamp_int(value: Union[str, int, None], default: int, minimum: int = 1, maximum: int = 1000) -> int:
    """
    Parse a query value into an int within [minimum, maximum].
    Empty or non-numeric input falls back to the default.
    """
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, parsed))


class PageParams:
    """FastAPI dependency: `page` and `limit` query parameters, clamped."""

    def __init__(self, page: Optional[str] = None, limit: Optional[str] = None):
        self.page = clamp_int(page, DEFAULT_PAGE, 1, MAX_PAGE)
        self.limit = clamp_int(limit, DEFAULT_LIMIT, 1, MAX_LIMIT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


async def paginate(db: AsyncSession, query, params: PageParams):
    """Run `query` for one page; returns (rows, total)."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.offset(params.offset).limit(params.limit))
    return result.scalars().all(), total


def success(data: Any, message: Optional[str] = None) -> dict:
    body = {"status": "success", "data": data}
    if message:
        body["message"] = message
    return body


def paginated(items_key: str, items: List[Any], total: int, params: PageParams) -> dict:
    return success({
        items_key: items,
        "pagination": {
            "total": total,
            "page": params.page,
            "limit": params.limit,
            "pages": math.ceil(total / params.limit) if params.limit else 0,
        },
    })


LIKE_ESCAPE = "\\"


def contains_pattern(search: str) -> str:
    """
    Case-insensitive substring pattern for `func.lower(col).like(pattern, escape=LIKE_ESCAPE)`.
    LIKE wildcards typed by the caller match literally.
    """
    term = search.strip().lower()
    for char in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(char, LIKE_ESCAPE + char)
    return f"%{term}%"
