import math
from datetime import datetime
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from app.services.scheduling import as_utc

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema for all ORM-backed responses."""
    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    """Paging metadata attached to every list endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(..., alias="totalPages", serialization_alias="totalPages")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)


class APIResponse(BaseModel, Generic[T]):
    """Standard envelope: {success, data?, message?}."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class PaginatedResponse(BaseModel, Generic[T]):
    """Envelope for list endpoints."""
    success: bool = True
    data: List[T] = []
    pagination: Pagination
    message: Optional[str] = None


class ActionResponse(BaseModel):
    """Envelope for operations that only report an outcome."""
    success: bool = True
    message: str


UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]
