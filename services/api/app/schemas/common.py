"""Error envelope shared by every endpoint.

Format: { "error": { "code": str, "message": str, "detail": object | null } }
"""

from typing import Any, Literal

from pydantic import BaseModel

ErrorCode = Literal["VALIDATION_ERROR", "INTERNAL_ERROR"]


class ErrorDetail(BaseModel):
    """What went wrong; `detail` names the offending input when there is one."""

    code: ErrorCode
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    error: ErrorDetail

    @classmethod
    def build(cls, code: ErrorCode, message: str, detail: dict[str, Any] | None = None) -> "ErrorResponse":
        return cls(error=ErrorDetail(code=code, message=message, detail=detail))
