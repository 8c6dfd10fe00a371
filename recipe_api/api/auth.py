"""Login and logout endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Request, status

from recipe_api.api.deps import get_bearer_token, get_credential_store, get_token_registry
from recipe_api.middleware.monitoring import active_tokens_gauge, record_auth_failure
from recipe_api.middleware.rate_limit import get_rate_limit, limiter
from recipe_api.schemas.auth import LoginRequest, LoginResponse
from recipe_api.services.credentials import CredentialStore
from recipe_api.services.token_registry import TokenRegistry
from recipe_api.utils.logger import logger

router = APIRouter(prefix="/api", tags=["authentication"])


# ---------------------------------------------------------------------------
# POST /api/login
# ---------------------------------------------------------------------------

@router.post("/login", response_model=LoginResponse)
@limiter.limit(get_rate_limit("login"))
def login(
    request: Request,
    body: LoginRequest,
    credentials: CredentialStore = Depends(get_credential_store),
    registry: TokenRegistry = Depends(get_token_registry),
) -> LoginResponse:
    """Exchange a username and password for a bearer token.

    Use the returned token as `Authorization: Bearer <token>` on every
    recipe endpoint. Tokens expire after `TOKEN_EXPIRY_HOURS` (24 by
    default) or when passed to `/api/logout`.
    """
    if not body.username or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password are required",
        )

    identity = credentials.validate_credentials(body.username, body.password)
    if identity is None:
        record_auth_failure("login")
        logger.info("Login failed", extra={"username": body.username, "action": "login_failed"})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    token = registry.issue(identity)
    active_tokens_gauge.set(registry.active_count())
    info = registry.get_info(token)

    return LoginResponse(
        success=True,
        message="Login successful",
        token=token,
        expires_at=info.expires_at if info else None,
    )


# ---------------------------------------------------------------------------
# POST /api/logout
# ---------------------------------------------------------------------------

@router.post("/logout", response_model=LoginResponse)
@limiter.limit(get_rate_limit("logout"))
def logout(
    request: Request,
    token: str = Depends(get_bearer_token),
    registry: TokenRegistry = Depends(get_token_registry),
) -> LoginResponse:
    """Invalidate the caller's bearer token.

    Any later request presenting the same token is rejected with 401.
    """
    if registry.validate(token) is None or not registry.revoke(token):
        record_auth_failure("token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    active_tokens_gauge.set(registry.active_count())
    return LoginResponse(success=True, message="Logout successful")
