# =============================================================================
# app/routers/leave.py - Leave Request Endpoints
# =============================================================================
# The signed-in member's own leave requests.
# =============================================================================

from fastapi import APIRouter

from app.auth import CurrentUser
from app.exceptions import MethodNotAllowedError
from core.models.leave import LeaveCancelRequest, LeaveCreateRequest
from core.services.leave_service import LeaveService

router = APIRouter()


@router.get("/me")
async def list_my_leaves(user: CurrentUser):
    """Active leaves, oldest date first."""
    return {"ok": True, "leaves": LeaveService.list_my_leaves(user)}


@router.post("/me")
async def create_my_leaves(user: CurrentUser, request: LeaveCreateRequest):
    """
    Request leave for one or more dates.

    Raises:
        400: member_not_found, rows_required, invalid_rows
    """
    upserted = LeaveService.create_my_leaves(user, request.rows)
    return {"ok": True, "upserted": upserted}


@router.patch("/me")
async def cancel_my_leaves(user: CurrentUser, request: LeaveCancelRequest):
    """
    Cancel leaves by id.

    Today's leaves can only be cancelled before the daily cut-off; past
    leaves never.

    Raises:
        400: member_not_found, leave_ids_required,
             cannot_cancel_today_after_20, cannot_cancel_past_leave
    """
    ids = LeaveService.cancel_my_leaves(user, request.leave_ids)
    return {"ok": True, "canceled": len(ids), "ids": ids}


@router.delete("/me")
async def delete_my_leaves():
    """Leaves are cancelled with PATCH, never deleted."""
    raise MethodNotAllowedError()
