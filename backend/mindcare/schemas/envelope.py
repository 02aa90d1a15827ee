# mindcare/schemas/envelope.py
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorBody(BaseModel):
    message: str
    code: str


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    next_page: Optional[int] = None
    previous_page: Optional[int] = None


class Envelope(BaseModel, Generic[T]):
    """``{success, data?, message?, error?, pagination?}`` wrapper for every response."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[ErrorBody] = None
    pagination: Optional[PaginationMeta] = None
