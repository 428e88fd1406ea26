"""Firebase ID-token authentication for API requests."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import firebase_admin
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin.exceptions import FirebaseError
from starlette.concurrency import run_in_threadpool

from planner.core.config import settings
from planner.core.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)
FIREBASE_APP_NAME = "planner"


class FirebaseNotConfiguredError(RuntimeError):
    """Raised when Firebase Admin credentials are missing from settings."""


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user identity resolved from a verified ID token."""

    uid: str
    email: str | None = None
    email_verified: bool = False


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if not value:
        return None
    if not value.lower().startswith("bearer "):
        return None
    token = value.split(" ", maxsplit=1)[1].strip()
    return token or None


def _non_empty_str(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass
    if not settings.firebase_configured:
        msg = "Firebase Admin credentials not configured"
        raise FirebaseNotConfiguredError(msg)
    credential = credentials.Certificate(
        {
            "type": "service_account",
            "project_id": settings.firebase_project_id,
            "client_email": settings.firebase_client_email,
            "private_key": settings.firebase_private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        },
    )
    return firebase_admin.initialize_app(credential, name=FIREBASE_APP_NAME)


def _verify_token_sync(token: str) -> dict[str, Any]:
    return firebase_auth.verify_id_token(token, app=_firebase_app())


async def verify_id_token(token: str) -> AuthContext:
    """Verify a Firebase ID token and return the caller identity.

    Raises `HTTPException(401)` for any verification failure, including a
    backend that has no Firebase credentials configured.
    """
    try:
        claims = await run_in_threadpool(_verify_token_sync, token)
    except FirebaseNotConfiguredError:
        logger.error("auth.firebase.not_configured")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from None
    except (ValueError, FirebaseError) as exc:
        logger.warning(
            "auth.firebase.verify_failed",
            extra={"error_type": exc.__class__.__name__},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from exc

    uid = _non_empty_str(claims.get("uid")) or _non_empty_str(claims.get("sub"))
    if uid is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        )
    email = _non_empty_str(claims.get("email"))
    return AuthContext(
        uid=uid,
        email=email,
        email_verified=bool(claims.get("email_verified", False)),
    )


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
) -> AuthContext:
    """Resolve the caller from the bearer token or reject with 401."""
    token = credentials.credentials if credentials is not None else None
    if token is None:
        token = _extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return await verify_id_token(token)


AUTH_DEP = Depends(get_auth_context)


async def require_user_email(auth: AuthContext = AUTH_DEP) -> AuthContext:
    """Task routes scope every Notion query by email, so it is mandatory."""
    if not auth.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User email not found",
        )
    return auth
