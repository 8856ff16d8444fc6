from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Pagination(BaseModel):
    page: int = Field(..., example=1)
    limit: int = Field(..., example=20)
    total: int = Field(..., example=42)
    pages: int = Field(..., example=3)


class Envelope(BaseModel, Generic[T]):
    """
    Uniform response body: `{success, message?, data?, pagination?, error?}`.
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    pagination: Optional[Pagination] = None
    error: Optional[Any] = None
