from fastapi import HTTPException, Request
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError
from typing import Any, Optional
from urllib.parse import parse_qs
import logging

from readalong import config
from readalong.models.user_model import Identity
from readalong.realtime.errors import Unauthenticated

logger = logging.getLogger(__name__)


def strip_bearer(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    value = value.strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return value or None


def decode_identity(token: str) -> Identity:
    """Verify ``token`` and resolve the user it was issued for."""
    try:
        claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise Unauthenticated("jwt_expired") from exc
    except JWTError as exc:
        logger.debug("JWT verification error: %s", exc)
        raise Unauthenticated("unauthorized") from exc

    try:
        return Identity.from_claims(claims)
    except ValidationError as exc:
        raise Unauthenticated("unauthorized") from exc


def extract_socket_token(environ: dict, auth: Any = None) -> Optional[str]:
    """Find the bearer token of a Socket.IO handshake.

    Looked up in ``auth.token`` first, then the ``token`` query parameter,
    then the ``Authorization`` header.
    """
    if isinstance(auth, dict):
        token = strip_bearer(auth.get("token") if isinstance(auth.get("token"), str) else None)
        if token:
            return token

    query_string = environ.get("QUERY_STRING", "")
    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")
    token = strip_bearer(parse_qs(str(query_string)).get("token", [None])[0])
    if token:
        return token

    return strip_bearer(environ.get("HTTP_AUTHORIZATION"))


# ---------------- HTTP dependency ----------------

async def get_current_user(request: Request) -> Identity:
    token = strip_bearer(request.headers.get("Authorization")) or strip_bearer(request.query_params.get("token"))
    if not token:
        raise HTTPException(status_code=401, detail="Not Authorized")
    try:
        return decode_identity(token)
    except Unauthenticated as exc:
        detail = "Token expired" if exc.reason == "jwt_expired" else "Invalid token"
        raise HTTPException(status_code=401, detail=detail)
