# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for the lookups shared by several
# services:
# - Member rows by Discord id or primary key
# - Ultimate-skill mappings for a batch of members
# - Leave rows for a batch of members
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   member = SupabaseClient.fetch_member_by_discord_id("1234", guild=1)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from supabase import create_client, Client

from app.config import settings
from lib.utils import ApplicationError, to_positive_int

# Set up logging for this module
logger = logging.getLogger(__name__)

# Columns shared by every leave listing
LEAVE_COLUMNS = "id, member_id, date_time, reason, status, update_date"


class SupabaseClientError(ApplicationError):
    """
    Error during Supabase operations.

    Raised for any failed query so that the HTTP layer can turn it into a
    500 response with the underlying PostgREST message.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        client = SupabaseClient.get_client()
        rows = SupabaseClient.rows(
            client.table("class").select("id, name").order("id"),
            action="list classes",
        )
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Every ownership check therefore happens in the service layer.

        Returns:
            Client: Supabase client instance

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    # -------------------------------------------------------------------------
    # Query Execution
    # -------------------------------------------------------------------------

    @classmethod
    def execute(cls, query: Any, action: str) -> Any:
        """
        Execute a PostgREST query builder, wrapping failures.

        Args:
            query: A built query (table(...).select(...)... etc.)
            action: Short description used in error messages and logs

        Returns:
            The APIResponse (with .data and .count)

        Raises:
            SupabaseClientError: If the request fails
        """
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Supabase query failed ({action}): {e}")
            raise SupabaseClientError(
                message=f"Failed to {action}: {e}",
                code="QUERY_FAILED",
                details={"action": action},
            )

    @classmethod
    def rows(cls, query: Any, action: str) -> list[dict[str, Any]]:
        """Execute a query and return its rows as a list (never None)."""
        response = cls.execute(query, action)
        data = getattr(response, "data", None) if response is not None else None
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            return [data]
        return []

    @classmethod
    def first(cls, query: Any, action: str) -> dict[str, Any] | None:
        """Execute a query and return its first row, or None."""
        rows = cls.rows(query, action)
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Member Lookups
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_member_by_discord_id(
        cls,
        discord_user_id: str,
        guild: int | None = None,
        columns: str = "id",
    ) -> dict[str, Any] | None:
        """
        Fetch the member row linked to a Discord user.

        Args:
            discord_user_id: Canonical decimal snowflake
            guild: If provided, the row must also belong to this guild
            columns: Columns to select

        Returns:
            Member dict, or None if no row matches
        """
        client = cls.get_client()
        query = (
            client.table("member")
            .select(columns)
            .eq("discord_user_id", discord_user_id)
        )
        if guild is not None:
            query = query.eq("guild", guild)

        return cls.first(query.limit(1), action="fetch member by discord id")

    @classmethod
    def fetch_member(cls, member_id: int, columns: str = "*") -> dict[str, Any] | None:
        """Fetch a member by primary key, or None if it doesn't exist."""
        client = cls.get_client()
        return cls.first(
            client.table("member").select(columns).eq("id", member_id).limit(1),
            action="fetch member",
        )

    # -------------------------------------------------------------------------
    # Batch Lookups
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_ultimate_ids_by_member(cls, member_ids: list[int]) -> dict[int, list[int]]:
        """
        Map member id -> sorted, unique ultimate skill ids.

        Source of truth is the member_ultimate_skill link table. Members
        without any mapping are absent from the result.
        """
        if not member_ids:
            return {}

        client = cls.get_client()
        rows = cls.rows(
            client.table("member_ultimate_skill")
            .select("member_id, ultimate_skill_id")
            .in_("member_id", member_ids),
            action="fetch member ultimate skills",
        )

        mapping: dict[int, set[int]] = {}
        for row in rows:
            member_id = to_positive_int(row.get("member_id"))
            skill_id = to_positive_int(row.get("ultimate_skill_id"))
            if member_id is None or skill_id is None:
                continue
            mapping.setdefault(member_id, set()).add(skill_id)

        return {mid: sorted(ids) for mid, ids in mapping.items()}

    @classmethod
    def fetch_leaves_for_members(cls, member_ids: list[int]) -> list[dict[str, Any]]:
        """
        Fetch every leave row (any status) for the given members, newest first.
        """
        if not member_ids:
            return []

        client = cls.get_client()
        return cls.rows(
            client.table("leave")
            .select(LEAVE_COLUMNS)
            .in_("member_id", member_ids)
            .order("date_time", desc=True),
            action="fetch leaves",
        )
