from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from leavedesk.core.security import decode_token
from leavedesk.models.enums import RequesterKind

# Tokens are issued by the campus SSO; tokenUrl only feeds the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
logger = logging.getLogger("security")


@dataclass(frozen=True)
class Principal:
    """Verified identity of the caller. Ids live in separate student/staff spaces."""

    user_id: int
    kind: RequesterKind
    name: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.kind == RequesterKind.STAFF


def _log_auth_event(event: str, *, request: Request, extra: Optional[dict] = None) -> None:
    payload = {
        "event": event,
        "request_id": request.headers.get("x-request-id"),
        "path": request.url.path,
        "method": request.method,
        "client": request.client.host if request.client else None,
    }
    if extra:
        payload.update(extra)
    logger.info(json.dumps(payload, default=str))


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_principal(request: Request, token: str = Depends(oauth2_scheme)) -> Principal:
    try:
        payload = decode_token(token)
    except JWTError:
        _log_auth_event("token_invalid", request=request)
        raise _credentials_error()

    sub = payload.get("sub")
    kind = payload.get("kind")
    try:
        principal = Principal(user_id=int(sub), kind=RequesterKind(kind), name=payload.get("name"))
    except (TypeError, ValueError):
        _log_auth_event("token_claims_invalid", request=request, extra={"sub": sub, "kind": kind})
        raise _credentials_error("Invalid token claims")
    return principal


def require_staff(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only staff can decide leave requests")
    return principal
