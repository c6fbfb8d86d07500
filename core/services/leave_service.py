# =============================================================================
# core/services/leave_service.py - Leave Request Business Logic
# =============================================================================
# Members request leave for war dates and may cancel them again:
# - Requests upsert on (member_id, date_time), reviving cancelled rows
# - Cancels are soft (status -> "Cancel") and time-boxed:
#     past dates      never
#     future dates    always
#     today           only before LEAVE_CANCEL_CUTOFF in GUILD_TIMEZONE
# =============================================================================

import logging
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from app.config import settings
from app.exceptions import BadRequestError, MemberNotFoundError
from core.models.leave import LeaveRow, LeaveStatus
from lib.session_store import SessionUser
from lib.supabase_client import LEAVE_COLUMNS, SupabaseClient
from lib.utils import normalize_ids, normalize_snowflake, to_positive_int

logger = logging.getLogger(__name__)


def guild_tz() -> ZoneInfo:
    return ZoneInfo(settings.GUILD_TIMEZONE)


def leave_date_of(date_time: Any, tz: ZoneInfo) -> date | None:
    """
    Calendar day a leave falls on, in the guild timezone.

    Naive timestamps and bare dates are read as UTC. Returns None for
    values that don't parse.
    """
    text = str(date_time if date_time is not None else "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(tz).date()


def is_after_cutoff(now: datetime, tz: ZoneInfo, cutoff: str | None = None) -> bool:
    """True once the guild clock has reached the same-day cancel cut-off (HH:MM)."""
    cutoff = cutoff or settings.LEAVE_CANCEL_CUTOFF
    return now.astimezone(tz).strftime("%H:%M") >= cutoff


def can_cancel(leave_day: date | None, today: date, after_cutoff: bool) -> bool:
    if leave_day is None or leave_day < today:
        return False
    if leave_day > today:
        return True
    return not after_cutoff


class LeaveService:
    """Service for the signed-in member's own leave requests."""

    @staticmethod
    def _member_id(user: SessionUser) -> int | None:
        member = SupabaseClient.fetch_member_by_discord_id(normalize_snowflake(user.discord_user_id))
        return to_positive_int(member.get("id")) if member else None

    @staticmethod
    def _require_member_id(user: SessionUser) -> int:
        member_id = LeaveService._member_id(user)
        if member_id is None:
            raise MemberNotFoundError(user.discord_user_id)
        return member_id

    @staticmethod
    def list_my_leaves(user: SessionUser) -> list[dict[str, Any]]:
        """
        Active leaves of the signed-in member, oldest date first.

        A user without a member row simply has no leaves.
        """
        member_id = LeaveService._member_id(user)
        if member_id is None:
            return []

        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("leave")
            .select(LEAVE_COLUMNS)
            .eq("member_id", member_id)
            .eq("status", LeaveStatus.ACTIVE.value)
            .order("date_time"),
            action="list my leaves",
        )

    @staticmethod
    def create_my_leaves(
        user: SessionUser,
        rows: list[LeaveRow] | None,
        now: datetime | None = None,
    ) -> int:
        """
        Request leave for one or more dates.

        Blank dates are dropped and repeated dates collapse to the last
        one sent. Existing rows for the same date (even cancelled ones)
        become Active again.

        Returns:
            Number of rows upserted

        Raises:
            MemberNotFoundError: If the user has no member row
            BadRequestError: rows_required / invalid_rows
        """
        member_id = LeaveService._require_member_id(user)

        if not rows:
            raise BadRequestError("rows_required")

        wanted: dict[str, str | None] = {}
        for row in rows:
            date_time = (row.date_time or "").strip()
            if date_time:
                wanted[date_time] = row.reason

        if not wanted:
            raise BadRequestError("invalid_rows")

        stamp = (now or datetime.now(timezone.utc)).isoformat()
        payload = [
            {
                "member_id": member_id,
                "date_time": date_time,
                "reason": reason,
                "status": LeaveStatus.ACTIVE.value,
                "update_date": stamp,
            }
            for date_time, reason in wanted.items()
        ]

        client = SupabaseClient.get_client()
        SupabaseClient.execute(
            client.table("leave").upsert(payload, on_conflict="member_id,date_time"),
            action="create leaves",
        )
        logger.info(f"Member {member_id} requested {len(payload)} leave(s)")
        return len(payload)

    @staticmethod
    def cancel_my_leaves(
        user: SessionUser,
        leave_ids: list[Any] | None,
        now: datetime | None = None,
    ) -> list[int]:
        """
        Soft-cancel some of the signed-in member's Active leaves.

        Ids that are not the member's own Active leaves are ignored.

        Args:
            user: Signed-in user
            leave_ids: Leave ids to cancel
            now: Current time (injectable for tests)

        Returns:
            Sorted ids that were cancelled

        Raises:
            MemberNotFoundError: If the user has no member row
            BadRequestError: leave_ids_required, or
                cannot_cancel_today_after_20 / cannot_cancel_past_leave when
                none of the leaves may be cancelled
        """
        member_id = LeaveService._require_member_id(user)

        ids = normalize_ids(leave_ids)
        if not ids:
            raise BadRequestError("leave_ids_required")

        client = SupabaseClient.get_client()
        leaves = SupabaseClient.rows(
            client.table("leave")
            .select("id, date_time, status")
            .eq("member_id", member_id)
            .eq("status", LeaveStatus.ACTIVE.value)
            .in_("id", ids),
            action="load leaves to cancel",
        )

        tz = guild_tz()
        now = now or datetime.now(timezone.utc)
        today = now.astimezone(tz).date()
        after_cutoff = is_after_cutoff(now, tz)

        allowed = sorted({
            leave_id
            for leave_id, leave in ((to_positive_int(l.get("id")), l) for l in leaves)
            if leave_id is not None and can_cancel(leave_date_of(leave.get("date_time"), tz), today, after_cutoff)
        })

        if not allowed:
            raise BadRequestError(
                "cannot_cancel_today_after_20" if after_cutoff else "cannot_cancel_past_leave"
            )

        SupabaseClient.execute(
            client.table("leave")
            .update({"status": LeaveStatus.CANCEL.value, "update_date": now.isoformat()})
            .eq("member_id", member_id)
            .in_("id", allowed),
            action="cancel leaves",
        )
        logger.info(f"Member {member_id} cancelled leaves {allowed}")
        return allowed
