"""Limit/offset paging shared by the audit and website listings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Mapping, Optional, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import InvalidRequestError

Item = TypeVar("Item")

DEFAULT_LIMIT = 25
DEFAULT_OFFSET = 0


@dataclass
class ListRequest:
    limit: Optional[int] = None
    offset: Optional[int] = None
    where: Any = None  # SQLAlchemy boolean clause


class ListResponse(BaseModel, Generic[Item]):
    items: List[Item]
    total: int
    limit: Optional[int] = None
    offset: Optional[int] = None


ItemsGetter = Callable[[AsyncSession, ListRequest], Awaitable[List[Any]]]
TotalGetter = Callable[[AsyncSession], Awaitable[int]]


def _parse_bound(query: Mapping[str, str], key: str, default: Optional[int]) -> Optional[int]:
    raw = query.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"{key} must be a number.")
    if value < 0:
        raise InvalidRequestError(f"{key} must not be negative.")
    return value


def list_options_from_query(
    query: Mapping[str, str],
    prefix: str = "",
    default_limit: Optional[int] = DEFAULT_LIMIT,
    default_offset: Optional[int] = DEFAULT_OFFSET,
) -> ListRequest:
    """Read `<prefix>limit` and `<prefix>offset` from a query string mapping."""
    return ListRequest(
        limit=_parse_bound(query, f"{prefix}limit", default_limit),
        offset=_parse_bound(query, f"{prefix}offset", default_offset),
    )


def apply_list_request(stmt: Select, request: Optional[ListRequest]) -> Select:
    if request is None:
        return stmt
    if request.limit is not None:
        stmt = stmt.limit(request.limit)
    if request.offset is not None:
        stmt = stmt.offset(request.offset)
    return stmt


async def get_list_response(
    db: AsyncSession,
    options: ListRequest,
    items_getter: ItemsGetter,
    total_getter: TotalGetter,
) -> ListResponse:
    # One session cannot run two statements at once, so these stay sequential.
    items = await items_getter(db, options)
    total = await total_getter(db)
    return ListResponse(items=items, total=total, limit=options.limit, offset=options.offset)
