# =============================================================================
# core/services/note_service.py - Guild Notes
# =============================================================================
# One free-text note per guild, shown on the admin dashboard.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class NoteService:

    @staticmethod
    def get_note(guild: int) -> dict[str, Any]:
        """
        Note of a guild; an empty note row is created on first read.

        Returns:
            {"guild": int, "note": str}
        """
        client = SupabaseClient.get_client()
        row = SupabaseClient.first(
            client.table("note").select("guild, note").eq("guild", guild).limit(1),
            action="fetch guild note",
        )
        if row:
            return row

        logger.info(f"Creating empty note for guild {guild}")
        return NoteService.save_note(guild, "")

    @staticmethod
    def save_note(guild: int, note: Any) -> dict[str, Any]:
        text = "" if note is None else str(note)
        client = SupabaseClient.get_client()
        row = SupabaseClient.first(
            client.table("note").upsert({"guild": guild, "note": text}, on_conflict="guild"),
            action="save guild note",
        )
        return row or {"guild": guild, "note": text}
