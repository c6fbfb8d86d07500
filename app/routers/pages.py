# =============================================================================
# app/routers/pages.py - Dashboard Page Shells
# =============================================================================
# Minimal HTML for the three entry pages. The dashboards themselves are a
# separate frontend; these exist so login redirects and the page gate
# have real targets.
# =============================================================================

from html import escape

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.auth import OptionalUser

router = APIRouter()

LOGIN_ERRORS = {
    "missing_code": "Discord did not return an authorization code.",
    "auth_failed": "Discord sign-in failed. Please try again.",
    "not_in_guild": "Your Discord account is not a member of an Inferno guild.",
}


def _page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(
        f"<!doctype html><html><head><meta charset=\"utf-8\">"
        f"<title>{escape(title)} - Inferno</title></head>"
        f"<body><main>{body}</main></body></html>"
    )


@router.get("/login", response_class=HTMLResponse)
async def login_page(error: str | None = None, next: str | None = None):
    message = LOGIN_ERRORS.get(error or "", "")
    notice = f"<p role=\"alert\">{escape(message)}</p>" if message else ""
    return _page(
        "Sign in",
        f"<h1>Inferno Guild</h1>{notice}"
        f"<a href=\"/api/auth/discord/start\">Sign in with Discord</a>",
    )


@router.get("/me", response_class=HTMLResponse)
async def member_page(user: OptionalUser, error: str | None = None):
    """Member home (the page gate guarantees a session)."""
    name = escape(user.display_name) if user else ""
    notice = "<p role=\"alert\">You do not have access to the admin area.</p>" if error == "forbidden" else ""
    return _page("Me", f"<h1>{name}</h1>{notice}<div id=\"member-app\"></div>")


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(user: OptionalUser):
    guild = f"Guild {user.guild}" if user else ""
    return _page("Admin", f"<h1>Admin</h1><p>{guild}</p><div id=\"admin-app\"></div>")
