# =============================================================================
# core/services/member_service.py - Member Business Logic
# =============================================================================
# Handles the `member` table for two audiences:
# - Self-service: a signed-in member reads / edits their own row
# - Admin roster: staff list members, edit colors / remarks / party slots
#
# Separates HTTP concerns from database/business logic.
# =============================================================================

import logging
import math
import re
from typing import Any

from app.exceptions import BadRequestError, MemberNotFoundError, NotFoundError
from core.models.member import (
    CLUB_ROSTER_COLUMNS,
    MEMBER_DETAIL_COLUMNS,
    MEMBER_SELF_COLUMNS,
    MEMBER_WITH_CLASS_COLUMNS,
    MemberStatus,
    WarTime,
)
from core.models.loadout import EQUIPMENT_SET_COLUMNS
from lib.session_store import SessionUser
from lib.supabase_client import SupabaseClient
from lib.utils import first_row, normalize_snowflake, to_positive_int

logger = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints too large for a float
        return False


def _is_active(member: dict[str, Any]) -> bool:
    # Rows created before the Discord sync carry no status at all.
    status = member.get("status")
    if status is None:
        return True
    return str(status).lower() != MemberStatus.INACTIVE.value


def _group_ids(pairs: list[tuple[int, Any]]) -> dict[Any, list[int]]:
    """Group member ids by the value they should be set to."""
    groups: dict[Any, list[int]] = {}
    for member_id, value in pairs:
        groups.setdefault(value, []).append(member_id)
    return groups


class MemberService:
    """
    Service for member operations.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Self-Service
    # -------------------------------------------------------------------------

    @staticmethod
    def find_my_member(user: SessionUser, columns: str = MEMBER_SELF_COLUMNS) -> dict[str, Any] | None:
        """Member row of the signed-in user within their own guild."""
        return SupabaseClient.fetch_member_by_discord_id(
            normalize_snowflake(user.discord_user_id),
            guild=user.guild,
            columns=columns,
        )

    @staticmethod
    def require_my_member_id(user: SessionUser) -> int:
        """
        Primary key of the signed-in user's member row.

        Raises:
            MemberNotFoundError: If the user has no row in their guild
        """
        member = MemberService.find_my_member(user, columns="id")
        member_id = to_positive_int(member.get("id")) if member else None
        if member_id is None:
            raise MemberNotFoundError(user.discord_user_id)
        return member_id

    @staticmethod
    def get_or_create_me(user: SessionUser) -> dict[str, Any]:
        """
        Get the signed-in user's member row, creating a placeholder if needed.

        The placeholder uses the Discord display name with zero power and
        no class, so the profile page always has something to edit.

        Returns:
            Member dict (MEMBER_SELF_COLUMNS)
        """
        existing = MemberService.find_my_member(user)
        if existing:
            return existing

        client = SupabaseClient.get_client()
        payload = {
            "discord_user_id": normalize_snowflake(user.discord_user_id),
            "name": user.display_name or "Member",
            "power": 0,
            "is_special": False,
            "guild": user.guild,
            "class_id": 0,
        }
        created = SupabaseClient.first(
            client.table("member").insert(payload),
            action="create member placeholder",
        )
        logger.info(f"Created placeholder member for Discord user {user.discord_user_id} in guild {user.guild}")
        return created or payload

    @staticmethod
    def resolve_class_id(class_name: Any) -> int:
        """Look up a class id by its name; unknown or blank names map to 0."""
        name = str(class_name if class_name is not None else "").strip()
        if not name:
            return 0

        client = SupabaseClient.get_client()
        row = SupabaseClient.first(
            client.table("class").select("id").eq("name", name).limit(1),
            action="resolve class by name",
        )
        if not row:
            return 0
        return to_positive_int(row.get("id")) or 0

    @staticmethod
    def build_profile_patch(body: dict[str, Any]) -> dict[str, Any]:
        """
        Allow-list the editable profile fields of a PUT /api/member/me body.

        - name: trimmed string
        - power: number, floored, never below 0
        - is_special: boolean
        - class_id: number or numeric string (invalid -> 0); a legacy
          `class` name is resolved through the class table instead

        Raises:
            BadRequestError: no_fields_to_update if nothing usable was sent
        """
        patch: dict[str, Any] = {}

        if isinstance(body.get("name"), str):
            patch["name"] = body["name"].strip()

        if _is_finite_number(body.get("power")):
            patch["power"] = max(0, int(body["power"] // 1))

        if isinstance(body.get("is_special"), bool):
            patch["is_special"] = body["is_special"]

        class_id = body.get("class_id")
        if _is_number(class_id) or isinstance(class_id, str):
            patch["class_id"] = to_positive_int(class_id) or 0
        elif isinstance(body.get("class"), str):
            patch["class_id"] = MemberService.resolve_class_id(body["class"])

        if not patch:
            raise BadRequestError("no_fields_to_update")
        return patch

    @staticmethod
    def update_me(user: SessionUser, body: dict[str, Any]) -> dict[str, Any]:
        """
        Apply an allow-listed patch to the signed-in user's member row.

        Raises:
            BadRequestError: If the body holds no editable field
            MemberNotFoundError: If the user has no member row in their guild
        """
        patch = MemberService.build_profile_patch(body)

        client = SupabaseClient.get_client()
        updated = SupabaseClient.first(
            client.table("member")
            .update(patch)
            .eq("discord_user_id", normalize_snowflake(user.discord_user_id))
            .eq("guild", user.guild),
            action="update member profile",
        )
        if not updated:
            raise MemberNotFoundError(user.discord_user_id)

        logger.info(f"Member {updated.get('id')} updated fields: {sorted(patch)}")
        return {key: updated.get(key) for key in MEMBER_SELF_COLUMNS.split(", ")}

    # -------------------------------------------------------------------------
    # Admin Roster
    # -------------------------------------------------------------------------

    @staticmethod
    def list_roster(guild: int | None) -> dict[str, list[dict[str, Any]]]:
        """
        Members (with class join) and the leaves of those members.

        Inactive members are left out; every member carries
        `ultimate_skill_ids`.

        Args:
            guild: Restrict to one guild, or None for all guilds
        """
        client = SupabaseClient.get_client()
        query = client.table("member").select(MEMBER_WITH_CLASS_COLUMNS)
        if guild is not None:
            query = query.eq("guild", guild)

        rows = SupabaseClient.rows(query.order("id"), action="list members")
        members = [m for m in rows if _is_active(m)]

        ids = [i for i in (to_positive_int(m.get("id")) for m in members) if i is not None]
        ultimate_ids = SupabaseClient.fetch_ultimate_ids_by_member(ids)
        for member in members:
            member["ultimate_skill_ids"] = ultimate_ids.get(to_positive_int(member.get("id")), [])

        leaves = SupabaseClient.fetch_leaves_for_members(ids)
        return {"members": members, "leaves": leaves}

    @staticmethod
    def get_member_detail(member_id: Any) -> dict[str, Any]:
        """
        Everything the admin detail drawer shows for one member.

        Returns:
            {"member", "ultimate_skills", "equipment_sets", "skill_stones"}

        Raises:
            BadRequestError: invalid_member_id for a non-positive id
            NotFoundError: member_not_found if no such row
        """
        mid = to_positive_int(member_id)
        if mid is None:
            raise BadRequestError("invalid_member_id")

        member = SupabaseClient.fetch_member(mid, columns=MEMBER_DETAIL_COLUMNS)
        if not member:
            raise NotFoundError("member_not_found", resource_id=mid)

        client = SupabaseClient.get_client()

        ultimate_rows = SupabaseClient.rows(
            client.table("member_ultimate_skill")
            .select("ultimate_skill_id, ultimate_skill:ultimate_skill(id, name, ultimate_skill_url)")
            .eq("member_id", mid)
            .order("ultimate_skill_id"),
            action="fetch member ultimate skills",
        )
        ultimate_skills = [
            skill for skill in (first_row(r.get("ultimate_skill")) for r in ultimate_rows)
            if skill and isinstance(skill.get("id"), int)
        ]

        set_rows = SupabaseClient.rows(
            client.table("member_equipment")
            .select(EQUIPMENT_SET_COLUMNS)
            .eq("member_id", mid)
            .order("created_at"),
            action="fetch member equipment sets",
        )
        equipment_sets = [
            {
                "id": int(s["id"]),
                "member_id": int(s["member_id"]),
                "element": s.get("element") or {},
                "image": s.get("image"),
                "image_2": s.get("image_2"),
                "created_at": s.get("created_at"),
                "update_date": s.get("update_date"),
            }
            for s in set_rows
        ]

        stone_rows = SupabaseClient.rows(
            client.table("member_equipment_create")
            .select(
                "id, member_id, equipment_create_id, color, created_at, "
                "equipment_create:equipment_create(id, name, image_url, type)"
            )
            .eq("member_id", mid)
            .order("created_at"),
            action="fetch member skill stones",
        )
        skill_stones = []
        for row in stone_rows:
            stone = first_row(row.get("equipment_create"))
            skill_stones.append({
                "id": int(row["id"]),
                "member_id": int(row["member_id"]),
                "equipment_create_id": int(row["equipment_create_id"]),
                "color": row.get("color"),
                "created_at": row.get("created_at"),
                "equipment_create": {
                    "id": int(stone["id"]),
                    "name": str(stone.get("name") or ""),
                    "image_url": stone.get("image_url"),
                    "type": int(stone.get("type") or 0),
                } if stone else None,
            })

        return {
            "member": member,
            "ultimate_skills": ultimate_skills,
            "equipment_sets": equipment_sets,
            "skill_stones": skill_stones,
        }

    @staticmethod
    def assign_party(body: dict[str, Any]) -> dict[str, Any]:
        """
        Write party / position assignments for one war round.

        The body's `warTime` picks the column pair; only keys present on a
        row are written, so a row without `pos` keeps its position.

        Raises:
            BadRequestError: guild_required if the body names no guild
        """
        guild = to_positive_int(body.get("guild"))
        if guild is None:
            raise BadRequestError("guild_required")

        war_time = WarTime.parse(body.get("warTime"))
        raw_rows = body.get("rows")
        if not isinstance(raw_rows, list):
            raw_rows = body.get("assignments")
        if not isinstance(raw_rows, list):
            raw_rows = []

        updates: list[dict[str, Any]] = []
        for row in raw_rows:
            if not isinstance(row, dict):
                continue
            member_id = to_positive_int(row.get("memberId") if row.get("memberId") is not None else row.get("id"))
            if member_id is None:
                continue

            update: dict[str, Any] = {"id": member_id, "guild": guild}
            if "party" in row:
                update[war_time.party_column] = row["party"]
            if "pos" in row:
                update[war_time.position_column] = row["pos"]
            if isinstance(row.get("name"), str) and row["name"].strip():
                update["name"] = row["name"].strip()
            updates.append(update)

        if updates:
            # PostgREST takes the column list of a bulk upsert from its rows,
            # so rows with different key sets go in separate requests.
            batches: dict[tuple[str, ...], list[dict[str, Any]]] = {}
            for update in updates:
                batches.setdefault(tuple(sorted(update)), []).append(update)

            client = SupabaseClient.get_client()
            for batch in batches.values():
                SupabaseClient.execute(
                    client.table("member").upsert(batch, on_conflict="id"),
                    action="assign party",
                )
            logger.info(f"Assigned {len(updates)} members for war time {war_time.value} in guild {guild}")

        return {"updated": len(updates), "warTime": war_time.value}

    @staticmethod
    def set_colors(guild: int, body: dict[str, Any]) -> int:
        """
        Set the highlight color of members within one guild.

        Accepts {"colors": [{"memberId", "color"}]} or the older
        {"memberIds": [...], "color"}. Colors are #RRGGBB or null.

        Returns:
            Number of member ids the update was applied to

        Raises:
            BadRequestError: For a malformed item or an unrecognized body
        """
        pairs: list[tuple[int, Any]] = []

        if isinstance(body.get("colors"), list):
            for item in body["colors"]:
                item = item if isinstance(item, dict) else {}
                member_id = to_positive_int(item.get("memberId"))
                color = item.get("color")
                if member_id is None or not (color is None or (isinstance(color, str) and HEX_COLOR.match(color))):
                    raise BadRequestError("invalid_colors", details={"item": item})
                pairs.append((member_id, color))

        elif isinstance(body.get("memberIds"), list):
            color = body.get("color")
            if not (color is None or (isinstance(color, str) and HEX_COLOR.match(color))):
                raise BadRequestError("invalid_color")
            pairs = [
                (member_id, color)
                for member_id in (to_positive_int(x) for x in body["memberIds"])
                if member_id is not None
            ]

        else:
            raise BadRequestError(
                "invalid_payload",
                message="Expected {memberIds, color} or {colors: [...]}",
            )

        MemberService._apply_grouped(guild, "color", pairs)
        return len(pairs)

    @staticmethod
    def set_remarks(guild: int, body: dict[str, Any]) -> int:
        """
        Set the free-text remark of members within one guild.

        Accepts {"remarks": [{"memberId", "remark"}]} or the older
        {"memberIds": [...], "remark"}. A blank remark clears it.
        """

        def normalize(value: Any) -> str | None:
            if value is None:
                return None
            text = str(value).strip()
            return text or None

        if isinstance(body.get("remarks"), list):
            pairs = []
            for item in body["remarks"]:
                item = item if isinstance(item, dict) else {}
                member_id = to_positive_int(item.get("memberId"))
                if member_id is not None:
                    pairs.append((member_id, normalize(item.get("remark"))))

        elif isinstance(body.get("memberIds"), list):
            remark = normalize(body.get("remark"))
            pairs = [
                (member_id, remark)
                for member_id in (to_positive_int(x) for x in body["memberIds"])
                if member_id is not None
            ]

        else:
            raise BadRequestError(
                "invalid_payload",
                message="Expected {memberIds, remark} or {remarks: [...]}",
            )

        MemberService._apply_grouped(guild, "remark", pairs)
        return len(pairs)

    @staticmethod
    def _apply_grouped(guild: int, column: str, pairs: list[tuple[int, Any]]) -> None:
        """One UPDATE per distinct value, always filtered to the guild."""
        if not pairs:
            return

        client = SupabaseClient.get_client()
        for value, member_ids in _group_ids(pairs).items():
            SupabaseClient.execute(
                client.table("member")
                .update({column: value})
                .in_("id", member_ids)
                .eq("guild", guild),
                action=f"set member {column}",
            )
        logger.info(f"Set {column} on {len(pairs)} members in guild {guild}")

    # -------------------------------------------------------------------------
    # Club
    # -------------------------------------------------------------------------

    @staticmethod
    def list_club_members() -> dict[str, list[dict[str, Any]]]:
        """Club members (strongest first) and their leaves."""
        client = SupabaseClient.get_client()
        members = SupabaseClient.rows(
            client.table("member")
            .select(MEMBER_WITH_CLASS_COLUMNS)
            .eq("club", True)
            .order("power", desc=True)
            .order("id"),
            action="list club members",
        )

        ids = [i for i in (to_positive_int(m.get("id")) for m in members) if i is not None]
        return {"members": members, "leaves": SupabaseClient.fetch_leaves_for_members(ids)}

    @staticmethod
    def club_roster() -> list[dict[str, Any]]:
        """Club members with their ultimate skill ids, for the club war builder."""
        client = SupabaseClient.get_client()
        members = SupabaseClient.rows(
            client.table("member")
            .select(CLUB_ROSTER_COLUMNS)
            .eq("club", True)
            .order("power", desc=True)
            .order("id"),
            action="list club roster",
        )

        ids = [i for i in (to_positive_int(m.get("id")) for m in members) if i is not None]
        ultimate_ids = SupabaseClient.fetch_ultimate_ids_by_member(ids)
        for member in members:
            member["ultimate_skill_ids"] = ultimate_ids.get(to_positive_int(member.get("id")), [])
        return members
