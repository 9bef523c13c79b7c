from typing import Optional

from fastapi import HTTPException


class BindingError(HTTPException):
    """Client-facing binding failure that keeps the underlying error for diagnostics."""

    def __init__(self, status_code: int = 400, detail: Optional[str] = None, internal: Optional[BaseException] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.internal = internal


def bad_request(detail: str, internal: BaseException) -> BindingError:
    return BindingError(status_code=400, detail=detail, internal=internal)


def unsupported_media_type() -> BindingError:
    return BindingError(status_code=415)
