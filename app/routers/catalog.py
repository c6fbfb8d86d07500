# =============================================================================
# app/routers/catalog.py - Public Catalog Endpoints
# =============================================================================
# Read-only lookup lists for the member pages. Staff edit them through the
# admin router.
# =============================================================================

from fastapi import APIRouter

from app.auth import CurrentUser
from core.services.catalog_service import CatalogService
from core.services.member_service import MemberService

router = APIRouter()


@router.get("/class")
async def list_classes():
    """All character classes (no sign-in needed)."""
    return {"ok": True, "classes": CatalogService.list_classes()}


@router.get("/ultimate-skill")
async def list_ultimate_skills(user: CurrentUser):
    return {"ok": True, "skills": CatalogService.list_ultimate_skills(with_created_at=True)}


@router.get("/club/members")
async def list_club_members(user: CurrentUser):
    """Club roster and leaves, visible to every signed-in member."""
    return {"ok": True, **MemberService.list_club_members()}
