# storefront/core/auth.py
import uuid

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from storefront.core.errors import Forbidden, InvalidToken, Unauthenticated
from storefront.core.tokens import TokenService
from storefront.dependencies import get_token_service

# HTTP Bearer scheme:
# - auto_error=False => missing or non-Bearer Authorization header yields None
#   so we raise our own Unauthenticated error instead of FastAPI's default.
bearer_scheme = HTTPBearer(auto_error=False)


def authenticate_bearer(
    credentials: HTTPAuthorizationCredentials | None,
    tokens: TokenService,
) -> uuid.UUID:
    """
    Resolve the user id carried by a bearer token.

    Raises:
        Unauthenticated: no usable `Authorization: Bearer <token>` header.
        Forbidden: token is tampered, expired, malformed or its subject is
          not a user id.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    try:
        subject = tokens.verify(credentials.credentials)
        return uuid.UUID(subject)
    except (InvalidToken, ValueError):
        raise Forbidden() from None


def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> uuid.UUID:
    """
    Gate for protected routes.

    On success the verified user id is attached to `request.state.user_id`
    and returned. Nothing is read from or written to the record store.
    """
    user_id = authenticate_bearer(credentials, tokens)
    request.state.user_id = user_id
    return user_id
