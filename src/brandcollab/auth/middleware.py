"""Authentication dependencies for FastAPI."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from brandcollab.admin.models import Admin, AdminRole
from brandcollab.auth.models import Brand, Influencer
from brandcollab.auth.tokens import load_account, token_service
from brandcollab.logging_config import get_logger
from brandcollab.storage.db import db
from brandcollab.storage.models import UserType

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Influencer | Brand | Admin | None:
    """Get the account behind the bearer access token.

    Args:
        request: FastAPI request
        credentials: Bearer token

    Returns:
        Influencer, Brand or Admin, or None if not authenticated
    """
    if not credentials:
        return None

    payload = token_service.decode(credentials.credentials)
    if not payload or payload.get("type") is not None:
        # Refresh, verification and reset tokens are not access tokens
        return None

    try:
        user_type = UserType(payload.get("userType"))
        user_id = int(payload.get("id"))
    except (TypeError, ValueError):
        return None

    with db.session() as session:
        user = load_account(session, user_type, user_id)

    if user:
        request.state.user = user
        request.state.user_type = user_type

    return user


def require_auth(
    user: Influencer | Brand | Admin | None = Depends(get_current_user),
) -> Influencer | Brand | Admin:
    """Require authentication - raises 401 if not authenticated."""
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_influencer(user=Depends(require_auth)) -> Influencer:
    """Require an influencer account."""
    if not isinstance(user, Influencer):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Influencer access required",
        )
    return user


def require_brand(user=Depends(require_auth)) -> Brand:
    """Require a brand account."""
    if not isinstance(user, Brand):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Brand access required",
        )
    return user


class AdminRoleChecker:
    """Dependency restricting an endpoint to admins with given roles."""

    def __init__(self, allowed_roles: list[AdminRole] | None = None):
        """Initialize checker.

        Args:
            allowed_roles: Roles allowed in addition to super_admin.
                None allows every admin role.
        """
        self.allowed_roles = allowed_roles

    def __call__(self, user=Depends(require_auth)) -> Admin:
        if not isinstance(user, Admin):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required",
            )

        if self.allowed_roles is not None and user.role != AdminRole.SUPER_ADMIN:
            if user.role not in self.allowed_roles:
                logger.warning("admin_role_denied", admin_id=user.id, role=user.role.value)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Insufficient admin role",
                )

        return user


def require_admin(roles: list[AdminRole] | None = None) -> AdminRoleChecker:
    """Build an admin dependency for the given roles."""
    return AdminRoleChecker(roles)


# Pre-configured checkers
require_any_admin = require_admin()
require_profile_reviewer = require_admin([AdminRole.PROFILE_REVIEWER])
require_super_admin = require_admin([])


def user_type_of(user: Influencer | Brand | Admin) -> UserType:
    """Account type of a loaded account row."""
    if isinstance(user, Influencer):
        return UserType.INFLUENCER
    if isinstance(user, Brand):
        return UserType.BRAND
    return UserType.ADMIN
