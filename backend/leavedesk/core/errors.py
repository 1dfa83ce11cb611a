"""Typed errors raised by the leave core and their HTTP rendering."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str = "invalid"


class LeaveDeskError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "leave_error"
    default_message: str = "Leave request error"

    def __init__(self, message: Optional[str] = None, *, errors: Iterable[FieldError] = ()) -> None:
        self.message = message or self.default_message
        self.errors: list[FieldError] = list(errors)
        super().__init__(self.message)


class LeaveValidationError(LeaveDeskError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"
    default_message = "Validation failed"

    def __init__(self, errors: Iterable[FieldError]) -> None:
        errors = list(errors)
        message = errors[0].message if len(errors) == 1 else self.default_message
        super().__init__(message, errors=errors)


class DuplicatePeriodError(LeaveDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_period"
    default_message = "You already have a leave request for this period"


class UnresolvedApprovalChainError(LeaveDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "unresolved_approval_chain"
    default_message = "Approval chain could not be resolved"


class LeaveNotFoundError(LeaveDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "leave_not_found"
    default_message = "Leave request not found"


class UnknownStageError(LeaveDeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "unknown_stage"
    default_message = "Stage is not part of this request's approval chain"


class AlreadyDecidedError(LeaveDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "already_decided"
    default_message = "Stage already decided"


class ForbiddenActorError(LeaveDeskError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden_actor"
    default_message = "Not authorised to decide this stage"


class InvalidRangeError(ValueError):
    """Raised when a date range is passed with its start after its end."""


def _envelope(status_code: int, code: str, detail: str, errors: list[dict]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "status_code": status_code,
            "code": code,
            "detail": detail,
            "errors": errors,
        },
    )


async def leave_error_handler(request: Request, exc: LeaveDeskError) -> JSONResponse:
    logger.warning(
        exc.message,
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
            "error_code": exc.code,
        },
    )
    return _envelope(exc.status_code, exc.code, exc.message, [asdict(err) for err in exc.errors])


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: list[dict] = []
    for err in exc.errors():
        loc = [str(v) for v in err.get("loc", []) if str(v) not in {"body", "query", "path"}]
        field = ".".join(loc) if loc else "field"
        errors.append({"field": field, "message": str(err.get("msg", "Invalid value")), "code": "invalid"})
    detail = errors[0]["message"] if len(errors) == 1 else "Validation failed"
    return _envelope(status.HTTP_422_UNPROCESSABLE_ENTITY, "validation_error", detail, errors)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LeaveDeskError, leave_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
