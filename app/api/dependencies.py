from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.auth.jwt_handler import decode_access_token
from app.auth.permissions import PermissionChecker, format_permission_name
from app.schemas.auth.user import CurrentUser
import logging

security = HTTPBearer()
logger = logging.getLogger(__name__)

def _unauthorized(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Get the caller from the platform-issued bearer token"""
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized()

    user = CurrentUser(
        id=str(payload["sub"]),
        email=payload.get("email"),
        permissions=payload.get("permissions") or [],
    )

    # Add request info to context
    request.state.current_user = user
    request.state.user_permissions = user.permissions

    return user

async def get_permission_checker_dependency(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user)
) -> PermissionChecker:
    """
    Get permission checker for current user

    The permissions are already set in request.state by get_current_user
    """
    user_permissions = getattr(request.state, "user_permissions", current_user.permissions)
    return PermissionChecker(user_permissions)

def require_permission(resource: str, action: str):
    """
    Dependency to require specific permission for an endpoint

    Examples:
        require_permission("pharmacy", "create")      # pharmacy:create
    """
    async def permission_dependency(
        checker: PermissionChecker = Depends(get_permission_checker_dependency)
    ):
        checker.require(resource, action)
        return True

    return permission_dependency

def require_any_permission(*permissions: tuple):
    """
    Require any one of the given permissions (OR logic)
    """
    async def permission_dependency(
        checker: PermissionChecker = Depends(get_permission_checker_dependency)
    ):
        if checker.has_any(*permissions):
            return True

        perm_names = [format_permission_name(r, a) for r, a in permissions]
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient permissions. Required one of: {', '.join(perm_names)}"
        )

    return permission_dependency
