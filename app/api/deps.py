"""
API dependency injection module.

Re-exports the session and current-user dependencies and provides the
paging parameters and envelope helpers shared by every list endpoint.
"""

from typing import Any, Iterable, Tuple, Type

from fastapi import Query
from pydantic import BaseModel

from app.core.config import settings
from app.db.async_session import get_async_db
from app.schemas.base import PaginatedResponse, Pagination
from app.services.async_auth import get_current_active_user_async, get_current_user_async

__all__ = [
    "get_async_db",
    "get_current_user_async",
    "get_current_active_user_async",
    "pagination_params",
    "paginated",
]


def pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Items per page"),
) -> Tuple[int, int]:
    return page, limit


def paginated(
    schema: Type[BaseModel], items: Iterable[Any], total: int, page: int, limit: int
) -> PaginatedResponse:
    """Wrap one page of ORM rows in the list envelope."""
    return PaginatedResponse(
        data=[schema.model_validate(item) for item in items],
        pagination=Pagination.build(page, limit, total),
    )
