"""Limit/offset pagination shared by every list endpoint."""

from typing import Annotated, Generic, TypeVar

from fastapi import Depends, Query
from pydantic import BaseModel

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class PageParams(BaseModel):
    limit: int
    offset: int


def page_params(
    limit: Annotated[int, Query(ge=1, le=MAX_LIMIT)] = DEFAULT_LIMIT,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> PageParams:
    return PageParams(limit=limit, offset=offset)


Page = Annotated[PageParams, Depends(page_params)]

T = TypeVar("T")


class PaginationInfo(BaseModel):
    total: int | None = None
    limit: int
    offset: int
    has_more: bool
    next_cursor: str | None = None


def pagination_info(
    total: int | None, limit: int, offset: int, returned: int
) -> PaginationInfo:
    has_more = returned == limit
    return PaginationInfo(
        total=total,
        limit=limit,
        offset=offset,
        has_more=has_more,
        next_cursor=str(offset + limit) if has_more else None,
    )


class Paginated(BaseModel, Generic[T]):
    data: list[T]
    pagination: PaginationInfo


def paginate(items: list[T], total: int | None, page: PageParams) -> "Paginated[T]":
    return Paginated(
        data=items,
        pagination=pagination_info(total, page.limit, page.offset, len(items)),
    )
