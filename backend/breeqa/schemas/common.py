from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Uniform envelope for every endpoint. The UI renders `error` directly;
    `code` is the machine-readable kind.
    """

    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None
    detail: Optional[Any] = None
