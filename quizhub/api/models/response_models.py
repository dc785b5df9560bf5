"""
Success envelope shared by every controller: {"success": true, "message", "data"}
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "OK"
    data: Optional[T] = None


def ok(data=None, message: str = "OK") -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)
