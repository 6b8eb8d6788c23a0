from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional
from app.auth import TokenClaims
from app.services.auth_service import AuthService
from app.services.post_service import PostService

# auto_error=False so a missing header reaches AuthService as MissingTokenError
# instead of FastAPI's own 403
_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    """
    Services are built once per application in create_app and kept on
    app.state, so each app instance has its own storage.
    """
    return request.app.state.auth_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenClaims:
    """
    Dependency for protected routes.

    Returns the identity from the bearer token. Raises MissingTokenError
    (401) without a token and InvalidTokenError (403) for a bad one.
    """
    token = credentials.credentials if credentials else None
    return auth_service.authenticate(token)
