# =============================================================================
# core/services/party_plan_service.py - Club War Party Plans
# =============================================================================
# Saved line-ups for club wars: who plays in which party against which
# opponent on which date. Staff create, page through and delete them.
# =============================================================================

import logging
from typing import Any

from app.exceptions import BadRequestError, NotFoundError
from lib.session_store import SessionUser
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

PARTY_PLAN_COLUMNS = "id, created_at, our_name, opponent_name, match_date, parties, note"

DEFAULT_OUR_NAME = "Inferno"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


def _text(value: Any) -> str:
    return str(value if value is not None else "").strip()


class PartyPlanService:
    """Service for club_party_plan rows."""

    @staticmethod
    def list_plans(page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> dict[str, Any]:
        """
        One page of plans, newest first, with the exact total count.

        Args:
            page: 1-based page number (values below 1 become 1)
            page_size: Clamped to 1..50
        """
        page = max(1, page)
        page_size = min(MAX_PAGE_SIZE, max(1, page_size))
        start = (page - 1) * page_size

        client = SupabaseClient.get_client()
        response = SupabaseClient.execute(
            client.table("club_party_plan")
            .select(PARTY_PLAN_COLUMNS, count="exact")
            .order("created_at", desc=True)
            .range(start, start + page_size - 1),
            action="list party plans",
        )

        return {
            "items": response.data or [],
            "total": response.count or 0,
            "page": page,
            "pageSize": page_size,
        }

    @staticmethod
    def create_plan(user: SessionUser, body: dict[str, Any]) -> Any:
        """
        Save a new plan.

        Returns:
            The new plan id

        Raises:
            BadRequestError: opponent_name_required / match_date_required /
                parties_must_be_array
        """
        opponent_name = _text(body.get("opponent_name"))
        match_date = _text(body.get("match_date"))
        parties = body.get("parties")

        if not opponent_name:
            raise BadRequestError("opponent_name_required")
        if not match_date:
            raise BadRequestError("match_date_required")
        if not isinstance(parties, list):
            raise BadRequestError("parties_must_be_array")

        payload = {
            "our_name": _text(body.get("our_name")) or DEFAULT_OUR_NAME,
            "opponent_name": opponent_name,
            "match_date": match_date,
            "parties": parties,
            "created_by": user.discord_user_id,
        }
        if "note" in body:
            payload["note"] = body.get("note")

        client = SupabaseClient.get_client()
        row = SupabaseClient.first(
            client.table("club_party_plan").insert(payload),
            action="create party plan",
        )
        plan_id = row.get("id") if row else None
        logger.info(f"Party plan {plan_id} vs {opponent_name!r} created by {user.discord_user_id}")
        return plan_id

    @staticmethod
    def delete_plan(plan_id: Any) -> int:
        """
        Delete a plan.

        Returns:
            Number of rows deleted

        Raises:
            NotFoundError: plan_not_found when nothing matched
        """
        plan_key = _text(plan_id)
        if not plan_key:
            raise BadRequestError("id_required")

        client = SupabaseClient.get_client()
        deleted = SupabaseClient.rows(
            client.table("club_party_plan").delete().eq("id", plan_key),
            action="delete party plan",
        )
        if not deleted:
            raise NotFoundError("plan_not_found", resource_id=plan_key)

        logger.info(f"Deleted party plan {plan_key}")
        return len(deleted)
