from typing import Any, Dict, Generic, Optional, TypeVar
from pydantic import BaseModel

from reservations.core.errors import BookingError, ErrorCode

T = TypeVar("T")


# Uniform envelope returned by every workflow and endpoint
class ApiResponse(BaseModel, Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str, data: Optional[T] = None, meta: Optional[Dict[str, Any]] = None) -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data, meta=meta)

    @classmethod
    def fail(cls, code: ErrorCode, message: str) -> "ApiResponse[T]":
        return cls(success=False, message=message, error=code.value)

    @classmethod
    def from_error(cls, exc: BookingError) -> "ApiResponse[T]":
        return cls.fail(exc.code, exc.message)


# Pagination block carried in ``meta`` by list endpoints
class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(total=total, page=page, limit=limit, total_pages=-(-total // limit) if total else 0)
