"""OAuth error taxonomy and its HTTP rendering.

Every rejected authorize/token request raises one of these.  The handler
registered in app/main.py turns it into a ``text/plain`` body (message
parts joined by a space), logs it once and counts it.

  MalformedRequest    400  missing or invalid parameter, nothing changed
  ProtocolViolation   400  PKCE/redirect/client/scope mismatch
  SessionNotFound     400  unknown or already-redeemed code
  ConfigurationError  500  broken fixture or deployment (profile data,
                           challenge method outside the supported set)
"""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import PlainTextResponse

from app.core.metrics import OAUTH_ERRORS

logger = logging.getLogger(__name__)


class OAuthError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    kind: str = "oauth_error"
    log_level: int = logging.WARNING

    def __init__(self, *parts: str) -> None:
        self.parts = parts
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return " ".join(self.parts)


class MalformedRequest(OAuthError):
    kind = "malformed_request"


class ProtocolViolation(OAuthError):
    kind = "protocol_violation"


class SessionNotFound(OAuthError):
    kind = "not_found"


class ConfigurationError(OAuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "configuration_error"
    log_level = logging.ERROR


async def oauth_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    if not isinstance(exc, OAuthError):
        raise exc
    OAUTH_ERRORS.labels(kind=exc.kind).inc()
    if isinstance(exc, ConfigurationError):
        logger.log(
            exc.log_level,
            "Fixture or deployment defect  %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            extra={"error_kind": exc.kind},
        )
    else:
        logger.log(
            exc.log_level,
            "Rejected %s %s (%s): %s",
            request.method,
            request.url.path,
            exc.kind,
            exc.message,
            extra={"error_kind": exc.kind},
        )
    return PlainTextResponse(exc.message, status_code=exc.status_code)
