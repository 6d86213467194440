"""Registration, login, token refresh and auth dependencies (get_current_user, require_operation)."""

from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.schemas.auth import (
    CurrentUser,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
)
from app.schemas.users import UserResponse, to_user_response
from app.services import auth as auth_service
from app.services.authorization import authorize
from app.services.credential_store import CredentialStore
from app.services.errors import UnauthorizedError

router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_store(db: Annotated[Session, Depends(get_db)]) -> CredentialStore:
    """Dependency: credential store bound to the request's DB session."""
    return CredentialStore(db)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authenticated")
    return credentials.credentials


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[CredentialStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token and return the caller. Raises 401 otherwise."""
    user, _ = auth_service.authenticate_access_token(
        store, _bearer_token(credentials), settings
    )
    # Roles come from the stored account, not the token claims.
    return CurrentUser(id=user.id, username=user.username, roles=user.role_names)


def require_operation(operation: str) -> Callable[..., CurrentUser]:
    """Dependency factory: 403 unless the caller's current roles permit operation."""

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        authorize(operation, current_user.roles, caller_id=current_user.id)
        return current_user

    return dependency


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    store: Annotated[CredentialStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserResponse:
    """Create an account with the standard user role."""
    user = auth_service.register_user(store, body, settings)
    return to_user_response(user)


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    store: Annotated[CredentialStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """
    Authenticate with username and password; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    return auth_service.login(store, body.username, body.password, settings)


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    body: RefreshTokenRequest,
    store: Annotated[CredentialStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Exchange a refresh token for a new pair reflecting the account's current roles."""
    return auth_service.refresh_tokens(store, body.refresh_token, settings)


@router.get("/me", response_model=UserResponse)
def me(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[CredentialStore, Depends(get_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> UserResponse:
    """Profile and roles of the caller."""
    user = auth_service.current_session(store, _bearer_token(credentials), settings)
    return to_user_response(user)
