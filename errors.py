# src/errors.py
from fastapi import HTTPException, status

SUBSCRIPTION_UPDATE_FAILED = "gagal memperbarui langganan"


class NotFoundError(HTTPException):
    """A referenced record does not exist."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationError(HTTPException):
    """Required input is missing or breaks a business rule."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(HTTPException):
    """The write would duplicate a unique record or orphan a dependent one."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PersistenceError(HTTPException):
    """The database rejected a write. The detail shown to clients is generic."""

    def __init__(self, detail: str = "Failed to save changes"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


class AuditLogError(Exception):
    """Writing an activity log entry failed. Never propagated past the activity logger."""
