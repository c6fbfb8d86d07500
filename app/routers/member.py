# =============================================================================
# app/routers/member.py - Member Self-Service Endpoints
# =============================================================================
# Everything a signed-in member edits about themselves:
# - /member/me                   profile (name, power, class, special flag)
# - /member/me/ultimate          chosen ultimate skills
# - /member/me/skill-stones      equipped skill stones per slot
# - /member/me/equipment         "internal power" equipment sets
# - /member/me/equipment/upload  equipment screenshot upload
# =============================================================================

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, File, UploadFile

from app.auth import CurrentUser
from app.exceptions import BadRequestError
from core.services.loadout_service import LoadoutService
from core.services.member_service import MemberService

logger = logging.getLogger(__name__)

router = APIRouter()

JsonBody = Annotated[dict[str, Any], Body()]


# =============================================================================
# Profile
# =============================================================================

@router.get("/me")
async def get_my_member(user: CurrentUser):
    """
    Get the signed-in user's member row.

    A placeholder row is created on first visit.
    """
    return {"ok": True, "member": MemberService.get_or_create_me(user)}


@router.put("/me")
async def update_my_member(user: CurrentUser, body: JsonBody):
    """
    Update profile fields.

    Accepted keys: name, power, is_special, class_id, class (by name).

    Raises:
        400: no_fields_to_update if none of the keys are usable
    """
    return {"ok": True, "member": MemberService.update_me(user, body)}


# =============================================================================
# Ultimate Skills
# =============================================================================

@router.get("/me/ultimate")
async def get_my_ultimate_skills(user: CurrentUser):
    return {"ok": True, "ultimate_skill_ids": LoadoutService.get_ultimate_ids(user)}


@router.put("/me/ultimate")
async def set_my_ultimate_skills(user: CurrentUser, body: JsonBody):
    """Replace the chosen ultimate skills with `ultimate_skill_ids`."""
    ids = LoadoutService.set_ultimate_ids(user, body.get("ultimate_skill_ids"))
    return {"ok": True, "ultimate_skill_ids": ids}


# =============================================================================
# Skill Stones
# =============================================================================

@router.get("/me/skill-stones")
async def get_my_skill_stones(user: CurrentUser):
    """Stone catalog and the stones equipped in each of the four slots."""
    return {"ok": True, **LoadoutService.get_skill_stones(user)}


@router.put("/me/skill-stones")
async def set_my_skill_stones(user: CurrentUser, body: JsonBody):
    """
    Replace the equipped stones with `selected_by_type`.

    Raises:
        400: equipment_not_found / equipment_type_mismatch
    """
    selected = LoadoutService.set_skill_stones(user, body.get("selected_by_type"))
    return {"ok": True, "selected_by_type": selected}


# =============================================================================
# Equipment Sets
# =============================================================================

@router.get("/me/equipment")
async def list_my_equipment(user: CurrentUser):
    return {"ok": True, "sets": LoadoutService.list_equipment_sets(user)}


@router.post("/me/equipment")
async def create_my_equipment(user: CurrentUser, body: JsonBody):
    """
    Add an equipment set.

    Raises:
        400: max_2_sets, element_level_out_of_range, sum_level_exceed_7
    """
    return {"ok": True, "set": LoadoutService.create_equipment_set(user, body)}


@router.put("/me/equipment")
async def update_my_equipment(user: CurrentUser, body: JsonBody):
    return {"ok": True, "set": LoadoutService.update_equipment_set(user, body)}


@router.delete("/me/equipment")
async def delete_my_equipment(user: CurrentUser, body: JsonBody):
    LoadoutService.delete_equipment_set(user, body)
    return {"ok": True}


@router.post("/me/equipment/upload")
async def upload_my_equipment_image(
    user: CurrentUser,
    file: UploadFile | None = File(default=None),
):
    """
    Upload an equipment screenshot.

    Returns the public URL to store on an equipment set.

    Raises:
        400: missing_file, invalid_mime, file_too_large
    """
    if file is None:
        raise BadRequestError("missing_file")

    content = await file.read()
    result = LoadoutService.upload_equipment_image(
        user,
        content=content,
        filename=file.filename,
        content_type=file.content_type,
    )
    return {"ok": True, **result}
