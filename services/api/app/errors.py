"""
Error taxonomy shared by the core and the HTTP layer.

Core operations raise these; app.main renders them as
{"detail", "code", "details"} with the matching status code.
"""
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class PhotoStreamError(Exception):
    """Base class for every failure a core operation can report."""

    code = "PHOTO_STREAM_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(PhotoStreamError):
    """Referenced user, photo or comment does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} not found: {key}", {"kind": kind, "key": key})
        self.kind = kind
        self.key = key


class ConflictError(PhotoStreamError):
    """Uniqueness violation: username, ban or like already present."""

    code = "CONFLICT"
    status_code = 409


class InvalidArgumentError(PhotoStreamError):
    """Structurally invalid input (empty id, self-follow, empty upload)."""

    code = "INVALID_ARGUMENT"
    status_code = 400


class StorageFailureError(PhotoStreamError):
    """The store failed for a reason other than the kinds above."""

    code = "STORAGE_FAILURE"
    status_code = 500


class IdExhaustedError(StorageFailureError):
    code = "ID_EXHAUSTED"

    def __init__(self, table: str, attempts: int):
        super().__init__(
            f"Could not allocate a fresh {table} id after {attempts} attempts",
            {"table": table, "attempts": attempts},
        )


def require_id(value: Optional[str], name: str) -> str:
    if not value:
        raise InvalidArgumentError(f"{name} must not be empty", {"field": name})
    return value


async def photo_stream_exception_handler(request: Request, exc: PhotoStreamError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
