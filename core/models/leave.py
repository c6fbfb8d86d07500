# =============================================================================
# core/models/leave.py - Leave Request Schemas
# =============================================================================
# A leave row marks one war date a member will miss. Rows are never deleted:
# cancelling sets status to "Cancel", re-requesting the same date flips it
# back to "Active".
# =============================================================================

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LeaveStatus(str, Enum):
    """Leave state as stored in the `leave` table (capitalized)."""
    ACTIVE = "Active"
    CANCEL = "Cancel"


class LeaveRow(BaseModel):
    """One requested leave in POST /api/leave/me."""
    date_time: str | None = None
    reason: str | None = None


class LeaveCreateRequest(BaseModel):
    """
    Body of POST /api/leave/me.

    Example:
        {"rows": [{"date_time": "2025-01-15T20:00:00+07:00", "reason": "Work"}]}
    """
    rows: list[LeaveRow] | None = None


class LeaveCancelRequest(BaseModel):
    """Body of PATCH /api/leave/me."""
    leave_ids: list[int | str] | None = Field(default=None, alias="leaveIds")

    model_config = ConfigDict(populate_by_name=True)
