"""Error taxonomy for the goal and review workflow services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkflowError(Exception):
    code: str
    detail: str
    status_code: int = 400

    def __str__(self) -> str:
        return self.detail


class NotFoundError(WorkflowError):
    def __init__(self, code: str, detail: str):
        super().__init__(code=code, detail=detail, status_code=404)


class UnauthorizedError(WorkflowError):
    def __init__(self, code: str, detail: str):
        super().__init__(code=code, detail=detail, status_code=403)


class ConflictError(WorkflowError):
    def __init__(self, code: str, detail: str):
        super().__init__(code=code, detail=detail, status_code=409)


class ValidationError(WorkflowError):
    def __init__(self, code: str, detail: str):
        super().__init__(code=code, detail=detail, status_code=400)


class InternalError(WorkflowError):
    def __init__(self, code: str = "internal_error", detail: str = "Internal error"):
        super().__init__(code=code, detail=detail, status_code=500)


# Domain kinds whose attempts are recorded as failed audit events.
AUDITED_DENIALS = (UnauthorizedError, ConflictError)
