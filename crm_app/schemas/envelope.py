from typing import Any, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Normalized result of every CRM API call."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    status: Optional[int] = None

    @classmethod
    def ok(cls, data: Any = None, status: int | None = 200) -> "ApiResponse":
        return cls(success=True, data=data, status=status)

    @classmethod
    def fail(cls, error: str, status: int | None = None) -> "ApiResponse":
        return cls(success=False, error=error, status=status)
