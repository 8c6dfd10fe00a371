"""API dependencies for authentication and shared services.

The token registry, credential store and recipe store are built once in the
application lifespan and kept on ``app.state``. Handlers reach them only
through the dependencies below, so tests can swap any of them with
``app.dependency_overrides``.

Authentication
--------------
Protected routes depend on :func:`require_user`, which expects
``Authorization: Bearer <token>`` and asks the registry whether the token is
currently valid. When ``AUTH_ENABLED`` is false it lets every request
through and resolves to ``None``.
"""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from recipe_api.config import settings
from recipe_api.middleware.monitoring import record_auth_failure
from recipe_api.schemas.auth import Identity
from recipe_api.services.credentials import CredentialStore
from recipe_api.services.token_registry import TokenRegistry
from recipe_api.storage.base import RecipeStore

_bearer_scheme = HTTPBearer(auto_error=False)


def get_token_registry(request: Request) -> TokenRegistry:
    return request.app.state.token_registry


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_recipe_store(request: Request) -> RecipeStore:
    return request.app.state.recipe_store


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> str:
    """Extract the raw bearer token or raise 401."""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    registry: TokenRegistry = Depends(get_token_registry),
) -> Optional[Identity]:
    """Require a valid bearer token when authentication is enabled.

    Returns the identity bound to the token, or ``None`` when
    ``AUTH_ENABLED`` is off.
    """
    if not settings.AUTH_ENABLED:
        return None

    identity = registry.validate(get_bearer_token(credentials))
    if identity is None:
        record_auth_failure("token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    request.state.username = identity.username
    return identity
