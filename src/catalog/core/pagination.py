"""Page parameter clamping and pagination metadata."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100


def _to_int(value: Any) -> int:
    """Lenient integer parse: anything unparseable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return 0


@dataclass(frozen=True)
class PageParams:
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class PaginationMeta(BaseModel):
    current_page: int
    per_page: int
    total_count: int
    total_pages: int
    next_page: int | None
    prev_page: int | None


def resolve_page_params(page: Any = None, per_page: Any = None) -> PageParams:
    """Clamp raw query values: page >= 1, per_page in 1..100 (10 when unset)."""
    resolved_page = max(_to_int(page), 1)
    resolved_per_page = _to_int(per_page)
    if resolved_per_page <= 0:
        resolved_per_page = DEFAULT_PER_PAGE
    return PageParams(page=resolved_page, per_page=min(resolved_per_page, MAX_PER_PAGE))


def build_pagination_meta(total_count: int, params: PageParams) -> PaginationMeta:
    total_pages = math.ceil(total_count / params.per_page) if total_count > 0 else 0
    return PaginationMeta(
        current_page=params.page,
        per_page=params.per_page,
        total_count=total_count,
        total_pages=total_pages,
        next_page=params.page + 1 if params.page < total_pages else None,
        prev_page=params.page - 1 if params.page > 1 else None,
    )
