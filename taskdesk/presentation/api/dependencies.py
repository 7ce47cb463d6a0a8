from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.token_service import TokenService
from ...core.dependencies import get_token_service
from ...domain.errors import InsufficientPermissionsError, TokenInvalidError
from ...domain.models import User, UserRole

_bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
    token_service: TokenService = Depends(get_token_service),
) -> User:
    """Resolve the bearer token to an active account and expose it on ``request.state.user``."""
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise TokenInvalidError("Access denied. No token provided.")
    user = token_service.verify_token(credentials.credentials)
    request.state.user = user
    return user


def require_roles(*roles: UserRole) -> Callable[..., User]:
    allowed = frozenset(roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise InsufficientPermissionsError()
        return user

    return dependency


require_admin = require_roles(UserRole.ADMIN)
require_admin_or_manager = require_roles(UserRole.ADMIN, UserRole.MANAGER)
