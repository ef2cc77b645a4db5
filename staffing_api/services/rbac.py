"""Role-based access control for API endpoints."""

from typing import Any, Callable

from fastapi import HTTPException, Request
import structlog

logger = structlog.get_logger()


# Role hierarchy - admin can act on every surface, clients and candidates only on their own
ROLE_HIERARCHY = {
    "admin": ["admin", "client", "candidate"],
    "client": ["client"],
    "candidate": ["candidate"],
}


def has_role(user_role: str | None, required_role: str) -> bool:
    """Check if user role grants the required role."""
    return required_role in ROLE_HIERARCHY.get(user_role or "", [])


def get_current_user(request: Request) -> dict[str, Any]:
    """
    Get current user from request state.

    Usage:
        @router.get("/me")
        def get_me(user: dict = Depends(get_current_user)):
            return user
    """
    if not hasattr(request.state, "user"):
        raise HTTPException(status_code=401, detail="Not authenticated")
    return request.state.user


def require_role(allowed_roles: list[str]) -> Callable:
    """
    Dependency that requires user to have one of the specified roles.

    Usage:
        @router.post("/admin-only")
        def admin_endpoint(user: dict = Depends(require_role(["admin"]))):
            return {"message": "Admin access granted"}
    """
    def check_role(request: Request) -> dict[str, Any]:
        user = get_current_user(request)
        user_role = user.get("role")

        if any(has_role(user_role, role) for role in allowed_roles):
            return user

        logger.warning(
            "Role check failed",
            user=user.get("sub"),
            required=allowed_roles,
            user_role=user_role,
        )
        raise HTTPException(
            status_code=403,
            detail="You don't have permission to access this resource",
        )

    return check_role


def is_admin(user: dict[str, Any]) -> bool:
    return user.get("role") == "admin"
