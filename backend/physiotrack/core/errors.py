from __future__ import annotations

from typing import Any

from fastapi import status


class ClinicError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Request failed"

    def __init__(self, detail: str | None = None, **extra: Any) -> None:
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail, **self.extra}


class NotFoundError(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(ClinicError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class InsufficientStockError(ClinicError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Insufficient stock available"


class DataAccessError(ClinicError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Database error"
