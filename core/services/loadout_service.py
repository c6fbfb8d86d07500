# =============================================================================
# core/services/loadout_service.py - Member Loadout Business Logic
# =============================================================================
# What a member brings to war, all scoped to their own member row:
# - Ultimate skills     (member_ultimate_skill link table)
# - Skill stones        (member_equipment_create -> equipment_create catalog)
# - Equipment sets      (member_equipment, "internal power" element levels)
# - Equipment screenshots uploaded to Supabase Storage
#
# Writes are diff-based: only rows that actually change are touched.
# =============================================================================

import logging
import math
import uuid
from typing import Any

from app.config import settings
from app.exceptions import BadRequestError, NotFoundError, StorageUploadError
from core.models.loadout import (
    ELEMENT_KEYS,
    EQUIPMENT_SET_COLUMNS,
    MAX_ELEMENT_LEVEL,
    MAX_ELEMENT_SUM,
    MAX_EQUIPMENT_SETS,
    ElementLevels,
    EquipmentType,
    SelectedStone,
    StoneColor,
)
from core.services.member_service import MemberService
from lib.session_store import SessionUser
from lib.supabase_client import SupabaseClient
from lib.utils import first_row, normalize_ids, normalize_snowflake, to_positive_int

logger = logging.getLogger(__name__)

SelectedByType = dict[int, list[SelectedStone]]


# =============================================================================
# Normalization Helpers
# =============================================================================

def normalize_selected(raw: Any) -> list[SelectedStone]:
    """
    Clean one slot's stone list.

    Items without a positive id or a known color are dropped, repeated
    ids keep their first occurrence, and the result is sorted by id.
    """
    seen: dict[int, SelectedStone] = {}
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        stone_id = to_positive_int(item.get("equipment_create_id"))
        color = StoneColor.parse(item.get("color"))
        if stone_id is None or color is None or stone_id in seen:
            continue
        seen[stone_id] = SelectedStone(equipment_create_id=stone_id, color=color)
    return [seen[i] for i in sorted(seen)]


def normalize_selected_by_type(raw: Any) -> SelectedByType:
    """Clean a {1..4: [...]} mapping; JSON object keys may be strings."""
    data = raw if isinstance(raw, dict) else {}
    return {
        t.value: normalize_selected(data.get(str(t.value), data.get(t.value)))
        for t in EquipmentType
    }


def validate_element(raw: Any) -> ElementLevels:
    """
    Validate element levels of an equipment set.

    Missing or non-numeric levels count as 0; numbers are floored.

    Raises:
        BadRequestError: element_level_out_of_range / sum_level_exceed_7
    """
    data = raw if isinstance(raw, dict) else {}

    def level(value: Any) -> int:
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0
        return math.floor(number) if math.isfinite(number) else 0

    levels = ElementLevels(**{key: level(data.get(key)) for key in ELEMENT_KEYS})

    for key in ELEMENT_KEYS:
        if not 0 <= getattr(levels, key) <= MAX_ELEMENT_LEVEL:
            raise BadRequestError("element_level_out_of_range", details={"element": key})

    if levels.total > MAX_ELEMENT_SUM:
        raise BadRequestError("sum_level_exceed_7")

    return levels


def _image(value: Any) -> str | None:
    text = value.strip() if isinstance(value, str) else ""
    return text or None


def _joined_type(row: dict[str, Any]) -> EquipmentType | None:
    # equipment_create comes back as an object or a one-element list
    joined = first_row(row.get("equipment_create"))
    return EquipmentType.parse(joined.get("type")) if joined else None


class LoadoutService:
    """Service for the signed-in member's war loadout."""

    # -------------------------------------------------------------------------
    # Ultimate Skills
    # -------------------------------------------------------------------------

    @staticmethod
    def get_ultimate_ids(user: SessionUser) -> list[int]:
        member_id = MemberService.require_my_member_id(user)
        client = SupabaseClient.get_client()
        rows = SupabaseClient.rows(
            client.table("member_ultimate_skill")
            .select("ultimate_skill_id")
            .eq("member_id", member_id)
            .order("ultimate_skill_id"),
            action="fetch my ultimate skills",
        )
        return normalize_ids([r.get("ultimate_skill_id") for r in rows])

    @staticmethod
    def set_ultimate_ids(user: SessionUser, raw_ids: Any) -> list[int]:
        """
        Replace the member's ultimate skills with the given ids.

        Only the difference is written: removed links are deleted and new
        ones inserted.

        Returns:
            The normalized id list now stored
        """
        member_id = MemberService.require_my_member_id(user)
        wanted = normalize_ids(raw_ids)

        client = SupabaseClient.get_client()
        existing = set(normalize_ids([
            r.get("ultimate_skill_id")
            for r in SupabaseClient.rows(
                client.table("member_ultimate_skill")
                .select("ultimate_skill_id")
                .eq("member_id", member_id),
                action="load my ultimate skills",
            )
        ]))

        to_delete = sorted(existing - set(wanted))
        to_insert = [i for i in wanted if i not in existing]

        if to_delete:
            SupabaseClient.execute(
                client.table("member_ultimate_skill")
                .delete()
                .eq("member_id", member_id)
                .in_("ultimate_skill_id", to_delete),
                action="remove ultimate skills",
            )

        if to_insert:
            SupabaseClient.execute(
                client.table("member_ultimate_skill").insert(
                    [{"member_id": member_id, "ultimate_skill_id": i} for i in to_insert]
                ),
                action="add ultimate skills",
            )

        logger.info(f"Member {member_id} ultimate skills: +{to_insert} -{to_delete}")
        return wanted

    # -------------------------------------------------------------------------
    # Skill Stones
    # -------------------------------------------------------------------------

    @staticmethod
    def list_stone_catalog() -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("equipment_create")
            .select("id, name, image_url, type")
            .in_("type", [t.value for t in EquipmentType])
            .order("type")
            .order("id"),
            action="list skill stone catalog",
        )

    @staticmethod
    def _load_my_stones(member_id: int) -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("member_equipment_create")
            .select("id, equipment_create_id, color, equipment_create(type)")
            .eq("member_id", member_id)
            .order("id"),
            action="load my skill stones",
        )

    @staticmethod
    def get_skill_stones(user: SessionUser) -> dict[str, Any]:
        """
        Stone catalog plus what the member has equipped per slot.

        Returns:
            {"equipment": [...catalog], "selected_by_type": {1: [...], ..., 4: [...]}}
        """
        member_id = MemberService.require_my_member_id(user)
        equipment = LoadoutService.list_stone_catalog()

        raw: dict[int, list[dict[str, Any]]] = {t.value: [] for t in EquipmentType}
        for row in LoadoutService._load_my_stones(member_id):
            slot = _joined_type(row)
            if slot is not None:
                raw[slot.value].append(row)

        selected = {slot: normalize_selected(rows) for slot, rows in raw.items()}
        return {"equipment": equipment, "selected_by_type": selected}

    @staticmethod
    def set_skill_stones(user: SessionUser, raw_selected: Any) -> SelectedByType:
        """
        Make the member's equipped stones match the desired selection.

        Every desired stone must exist in the catalog and belong to the
        slot it is listed under. Existing duplicate links are removed.

        Raises:
            BadRequestError: equipment_not_found / equipment_type_mismatch
        """
        member_id = MemberService.require_my_member_id(user)
        desired = normalize_selected_by_type(raw_selected)
        client = SupabaseClient.get_client()

        all_ids = sorted({s.equipment_create_id for stones in desired.values() for s in stones})
        if all_ids:
            catalog = SupabaseClient.rows(
                client.table("equipment_create").select("id, type").in_("id", all_ids),
                action="check skill stones",
            )
            type_by_id = {
                int(r["id"]): EquipmentType.parse(r.get("type"))
                for r in catalog
                if to_positive_int(r.get("id")) is not None
            }
            for slot, stones in desired.items():
                for stone in stones:
                    actual = type_by_id.get(stone.equipment_create_id)
                    if actual is None:
                        raise BadRequestError(
                            "equipment_not_found",
                            details={"equipment_create_id": stone.equipment_create_id},
                        )
                    if actual.value != slot:
                        raise BadRequestError(
                            "equipment_type_mismatch",
                            details={"equipment_create_id": stone.equipment_create_id, "type": slot},
                        )

        # slot -> stone id -> (link row id, color); later duplicates get deleted
        existing: dict[int, dict[int, tuple[int, StoneColor]]] = {t.value: {} for t in EquipmentType}
        to_delete: list[int] = []

        for row in LoadoutService._load_my_stones(member_id):
            row_id = to_positive_int(row.get("id"))
            stone_id = to_positive_int(row.get("equipment_create_id"))
            slot = _joined_type(row)
            color = StoneColor.parse(row.get("color"))
            if row_id is None or stone_id is None or slot is None or color is None:
                continue
            if stone_id in existing[slot.value]:
                to_delete.append(row_id)
            else:
                existing[slot.value][stone_id] = (row_id, color)

        updates: list[tuple[int, StoneColor]] = []
        inserts: list[dict[str, Any]] = []

        for slot, stones in desired.items():
            wanted = {s.equipment_create_id: s.color for s in stones}
            for stone_id, (row_id, _) in existing[slot].items():
                if stone_id not in wanted:
                    to_delete.append(row_id)
            for stone_id, color in wanted.items():
                current = existing[slot].get(stone_id)
                if current is None:
                    inserts.append({
                        "member_id": member_id,
                        "equipment_create_id": stone_id,
                        "color": color.value,
                    })
                elif current[1] != color:
                    updates.append((current[0], color))

        if to_delete:
            SupabaseClient.execute(
                client.table("member_equipment_create").delete().in_("id", sorted(set(to_delete))),
                action="remove skill stones",
            )

        for row_id, color in updates:
            SupabaseClient.execute(
                client.table("member_equipment_create").update({"color": color.value}).eq("id", row_id),
                action="recolor skill stone",
            )

        if inserts:
            SupabaseClient.execute(
                client.table("member_equipment_create").insert(inserts),
                action="add skill stones",
            )

        logger.info(
            f"Member {member_id} skill stones: {len(inserts)} added, "
            f"{len(updates)} recolored, {len(set(to_delete))} removed"
        )
        return desired

    # -------------------------------------------------------------------------
    # Equipment Sets
    # -------------------------------------------------------------------------

    @staticmethod
    def _my_member_id_or_create(user: SessionUser) -> int:
        member = MemberService.get_or_create_me(user)
        member_id = to_positive_int(member.get("id"))
        if member_id is None:
            raise NotFoundError("member_not_found")
        return member_id

    @staticmethod
    def list_equipment_sets(user: SessionUser) -> list[dict[str, Any]]:
        member_id = LoadoutService._my_member_id_or_create(user)
        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("member_equipment")
            .select(EQUIPMENT_SET_COLUMNS)
            .eq("member_id", member_id)
            .order("created_at"),
            action="list equipment sets",
        )

    @staticmethod
    def create_equipment_set(user: SessionUser, body: dict[str, Any]) -> dict[str, Any] | None:
        """
        Add an equipment set (at most two per member).

        Raises:
            BadRequestError: max_2_sets, or an element validation error
        """
        member_id = LoadoutService._my_member_id_or_create(user)
        client = SupabaseClient.get_client()

        existing = SupabaseClient.rows(
            client.table("member_equipment").select("id").eq("member_id", member_id),
            action="count equipment sets",
        )
        if len(existing) >= MAX_EQUIPMENT_SETS:
            raise BadRequestError("max_2_sets")

        levels = validate_element(body.get("element"))
        created = SupabaseClient.first(
            client.table("member_equipment").insert({
                "member_id": member_id,
                "element": levels.model_dump(),
                "image": _image(body.get("image")),
                "image_2": _image(body.get("image_2")),
            }),
            action="create equipment set",
        )
        logger.info(f"Member {member_id} added equipment set {created.get('id') if created else None}")
        return created

    @staticmethod
    def update_equipment_set(user: SessionUser, body: dict[str, Any]) -> dict[str, Any]:
        """
        Patch one of the member's equipment sets.

        Raises:
            BadRequestError: invalid_id, no_fields_to_update, element errors
            NotFoundError: equipment_set_not_found if the set isn't the member's
        """
        member_id = LoadoutService._my_member_id_or_create(user)
        set_id = to_positive_int(body.get("id"))
        if set_id is None:
            raise BadRequestError("invalid_id")

        patch: dict[str, Any] = {}
        if "element" in body and body["element"] is not None:
            patch["element"] = validate_element(body["element"]).model_dump()
        for key in ("image", "image_2"):
            if key in body:
                patch[key] = _image(body[key])

        if not patch:
            raise BadRequestError("no_fields_to_update")

        client = SupabaseClient.get_client()
        updated = SupabaseClient.first(
            client.table("member_equipment")
            .update(patch)
            .eq("id", set_id)
            .eq("member_id", member_id),
            action="update equipment set",
        )
        if not updated:
            raise NotFoundError("equipment_set_not_found", resource_id=set_id)
        return updated

    @staticmethod
    def delete_equipment_set(user: SessionUser, body: dict[str, Any]) -> int:
        member_id = LoadoutService._my_member_id_or_create(user)
        set_id = to_positive_int(body.get("id"))
        if set_id is None:
            raise BadRequestError("invalid_id")

        client = SupabaseClient.get_client()
        SupabaseClient.execute(
            client.table("member_equipment").delete().eq("id", set_id).eq("member_id", member_id),
            action="delete equipment set",
        )
        logger.info(f"Member {member_id} deleted equipment set {set_id}")
        return set_id

    # -------------------------------------------------------------------------
    # Screenshot Upload
    # -------------------------------------------------------------------------

    @staticmethod
    def upload_equipment_image(
        user: SessionUser,
        content: bytes,
        filename: str | None,
        content_type: str | None,
    ) -> dict[str, str]:
        """
        Store an equipment screenshot and return its public URL.

        Stored at me/<discord id>/<uuid>.<ext> in EQUIPMENT_BUCKET.

        Raises:
            BadRequestError: invalid_mime / file_too_large
            StorageUploadError: If Supabase Storage rejects the upload
        """
        mime = content_type or ""
        if not mime.startswith("image/"):
            raise BadRequestError("invalid_mime", details={"content_type": mime})

        if len(content) > settings.max_upload_size_bytes:
            raise BadRequestError(
                "file_too_large",
                message=f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit",
            )

        name = filename or "image"
        ext = name.rsplit(".", 1)[-1] if "." in name else "jpg"
        ext = "".join(c for c in ext.lower() if c.isascii() and c.isalnum()) or "jpg"
        path = f"me/{normalize_snowflake(user.discord_user_id)}/{uuid.uuid4()}.{ext}"

        bucket = SupabaseClient.get_client().storage.from_(settings.EQUIPMENT_BUCKET)
        try:
            bucket.upload(
                path=path,
                file=content,
                file_options={"content-type": mime, "cache-control": "3600", "upsert": "true"},
            )
            url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

        logger.info(f"Uploaded equipment image to storage: {path}")
        return {"url": url, "path": path}
