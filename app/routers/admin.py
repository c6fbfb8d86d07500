# =============================================================================
# app/routers/admin.py - Admin Dashboard Endpoints
# =============================================================================
# Staff-only endpoints behind /admin. Two tiers:
# - StaffUser: super admin or guild head. Heads only ever see and change
#   their own guild (see scoped_guild).
# - AdminUser: super admin only.
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query

from app.auth import AdminUser, StaffUser, scoped_guild
from app.exceptions import BadRequestError
from core.services.catalog_service import CatalogService
from core.services.member_service import MemberService
from core.services.note_service import NoteService
from core.services.party_plan_service import DEFAULT_PAGE_SIZE, PartyPlanService
from lib.utils import to_positive_int

logger = logging.getLogger(__name__)

router = APIRouter()

JsonBody = Annotated[dict[str, Any], Body()]


def _required_guild(user, body: dict[str, Any]) -> int:
    """Guild named in a write body, scoped to what the caller may touch."""
    if to_positive_int(body.get("guild")) is None:
        raise BadRequestError("guild_required")
    return scoped_guild(user, body.get("guild"))


# =============================================================================
# Members
# =============================================================================

@router.get("/members")
async def list_members(user: StaffUser, guild: str | None = None):
    """
    Roster of active members with their leaves.

    Admins see every guild unless `?guild=` picks one; heads always get
    their own guild.
    """
    if user.is_admin and to_positive_int(guild) not in (1, 2, 3):
        selected = None
    else:
        selected = scoped_guild(user, guild)

    return {"ok": True, **MemberService.list_roster(selected)}


@router.get("/members/{member_id}/detail")
async def member_detail(member_id: str, user: AdminUser):
    """
    Profile, ultimate skills, equipment sets and skill stones of one member.

    Raises:
        400: invalid_member_id
        404: member_not_found
    """
    return {"ok": True, **MemberService.get_member_detail(member_id)}


@router.post("/members/assign-party")
async def assign_party(user: AdminUser, body: JsonBody):
    """
    Save party / position assignments for one war round.

    Raises:
        400: guild_required
    """
    result = MemberService.assign_party(body)
    return {"ok": True, **result}


@router.post("/members/set-color")
async def set_color(user: StaffUser, body: JsonBody):
    """
    Set highlight colors.

    Body is {guild, colors: [{memberId, color}]} or {guild, memberIds, color}.
    """
    guild = _required_guild(user, body)
    updated = MemberService.set_colors(guild, body)
    return {"ok": True, "updated": updated}


@router.post("/members/set-remark")
async def set_remark(user: StaffUser, body: JsonBody):
    guild = _required_guild(user, body)
    updated = MemberService.set_remarks(guild, body)
    return {"ok": True, "updated": updated}


# =============================================================================
# Guild Note
# =============================================================================

@router.get("/note")
async def get_note(user: StaffUser, guild: str | None = None):
    return {"ok": True, "data": NoteService.get_note(scoped_guild(user, guild))}


@router.post("/note")
async def save_note(user: StaffUser, body: JsonBody):
    guild = scoped_guild(user, body.get("guild"))
    return {"ok": True, "data": NoteService.save_note(guild, body.get("note"))}


# =============================================================================
# Club
# =============================================================================

@router.get("/club-members")
async def club_members(user: AdminUser):
    return {"ok": True, **MemberService.list_club_members()}


@router.get("/club-roster")
async def club_roster(user: StaffUser):
    """Club members with their ultimate skill ids, for the war builder."""
    return {"ok": True, "members": MemberService.club_roster()}


@router.get("/club-party-plans")
async def list_party_plans(
    user: StaffUser,
    page: int = Query(default=1),
    page_size: int = Query(default=DEFAULT_PAGE_SIZE, alias="pageSize"),
):
    """Saved club war plans, newest first (pageSize capped at 50)."""
    return {"ok": True, **PartyPlanService.list_plans(page, page_size)}


@router.post("/club-party-plans")
async def create_party_plan(user: StaffUser, body: JsonBody):
    """
    Save a club war plan.

    Raises:
        400: opponent_name_required, match_date_required, parties_must_be_array
    """
    return {"ok": True, "id": PartyPlanService.create_plan(user, body)}


@router.delete("/club-party-plans/{plan_id}")
async def delete_party_plan(plan_id: str, user: StaffUser):
    """
    Delete a club war plan.

    Raises:
        404: plan_not_found
    """
    deleted = PartyPlanService.delete_plan(plan_id)
    return {"ok": True, "id": plan_id, "deletedCount": deleted}


# =============================================================================
# Catalog Maintenance
# =============================================================================

@router.get("/ultimate-skills")
async def list_ultimate_skills(user: StaffUser):
    return {"ok": True, "skills": CatalogService.list_ultimate_skills(with_created_at=True)}


@router.post("/ultimate-skills")
async def create_ultimate_skill(user: StaffUser, body: JsonBody):
    return {"ok": True, "row": CatalogService.create_ultimate_skill(body)}


@router.put("/ultimate-skills")
async def update_ultimate_skill(user: StaffUser, body: JsonBody):
    return {"ok": True, "row": CatalogService.update_ultimate_skill(body)}


@router.get("/skill-stones")
async def list_skill_stones(user: AdminUser):
    return {"ok": True, "skill_stones": CatalogService.list_skill_stones()}


@router.post("/skill-stones")
async def create_skill_stone(user: AdminUser, body: JsonBody):
    """
    Add a skill stone.

    Raises:
        400: name_required, invalid_type
    """
    return {"ok": True, "row": CatalogService.create_skill_stone(body)}


@router.put("/skill-stones")
async def update_skill_stone(user: AdminUser, body: JsonBody):
    return {"ok": True, "row": CatalogService.update_skill_stone(body)}
