from __future__ import annotations

import math
import os
from typing import Generic, List, TypeVar

from pydantic import BaseModel
from sqlalchemy.orm import Query

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "15"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    per_page: int
    last_page: int


def clamp_per_page(per_page: int | None) -> int:
    if not per_page or per_page < 1:
        return DEFAULT_PAGE_SIZE
    return min(per_page, MAX_PAGE_SIZE)


def paginate(query: Query, *, page: int = 1, per_page: int | None = None) -> dict:
    """
    Offset-paginate `query`.

    Returns a dict shaped like `Page` so routers can hand it straight to
    a `Page[...]` response model.
    """
    size = clamp_per_page(per_page)
    page = max(page or 1, 1)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * size).limit(size).all()
    return {
        "data": items,
        "total": total,
        "page": page,
        "per_page": size,
        "last_page": max(math.ceil(total / size), 1),
    }
