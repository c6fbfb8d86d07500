# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides Discord-session authentication and role guards.
#
# Usage:
#   from app.auth import StaffUser, scoped_guild
#
#   @router.get("/admin-only")
#   async def admin_only(user: StaffUser):
#       return {"guild": scoped_guild(user)}
# =============================================================================

from app.auth.dependencies import (
    AdminUser,
    CurrentUser,
    OptionalUser,
    StaffUser,
    get_current_user,
    get_current_user_optional,
    require_admin,
    require_staff,
    scoped_guild,
    session_id_from,
)
from app.auth.models import MeResponse, MeUser, SessionUser

__all__ = [
    "AdminUser",
    "CurrentUser",
    "OptionalUser",
    "StaffUser",
    "get_current_user",
    "get_current_user_optional",
    "require_admin",
    "require_staff",
    "scoped_guild",
    "session_id_from",
    "MeResponse",
    "MeUser",
    "SessionUser",
]
