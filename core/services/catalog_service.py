# =============================================================================
# core/services/catalog_service.py - Master Data Catalogs
# =============================================================================
# Read and maintain the small lookup tables the dashboards pick from:
# - class            (public, read-only here)
# - ultimate_skill   (staff maintain it)
# - equipment_create (skill stones, admins maintain it)
# =============================================================================

import logging
from typing import Any

from app.exceptions import BadRequestError
from core.models.loadout import EquipmentType
from lib.supabase_client import SupabaseClient
from lib.utils import to_positive_int

logger = logging.getLogger(__name__)

ULTIMATE_SKILL_COLUMNS = "id, name, ultimate_skill_url"
SKILL_STONE_COLUMNS = "id, name, image_url, type"


def _required_name(body: dict[str, Any]) -> str:
    name = str(body.get("name") if body.get("name") is not None else "").strip()
    if not name:
        raise BadRequestError("name_required")
    return name


def _required_id(body: dict[str, Any]) -> int:
    row_id = to_positive_int(body.get("id"))
    if row_id is None:
        raise BadRequestError("invalid_id")
    return row_id


class CatalogService:
    """Service for catalog tables."""

    @staticmethod
    def list_classes() -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("class").select("id, name, icon_url").order("id"),
            action="list classes",
        )

    # -------------------------------------------------------------------------
    # Ultimate Skills
    # -------------------------------------------------------------------------

    @staticmethod
    def list_ultimate_skills(with_created_at: bool = False) -> list[dict[str, Any]]:
        columns = ULTIMATE_SKILL_COLUMNS + (", created_at" if with_created_at else "")
        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("ultimate_skill").select(columns).order("id"),
            action="list ultimate skills",
        )

    @staticmethod
    def create_ultimate_skill(body: dict[str, Any]) -> dict[str, Any] | None:
        """
        Add an ultimate skill.

        Raises:
            BadRequestError: name_required
        """
        name = _required_name(body)
        url = str(body.get("ultimate_skill_url") or "").strip()

        client = SupabaseClient.get_client()
        row = SupabaseClient.first(
            client.table("ultimate_skill").insert({"name": name, "ultimate_skill_url": url}),
            action="create ultimate skill",
        )
        logger.info(f"Created ultimate skill {name!r}")
        return row

    @staticmethod
    def update_ultimate_skill(body: dict[str, Any]) -> dict[str, Any] | None:
        """
        Rename an ultimate skill and/or change its icon URL.

        Raises:
            BadRequestError: invalid_id / name_required
        """
        skill_id = _required_id(body)
        patch = {"name": _required_name(body)}
        if isinstance(body.get("ultimate_skill_url"), str):
            patch["ultimate_skill_url"] = body["ultimate_skill_url"].strip()

        client = SupabaseClient.get_client()
        return SupabaseClient.first(
            client.table("ultimate_skill").update(patch).eq("id", skill_id),
            action="update ultimate skill",
        )

    # -------------------------------------------------------------------------
    # Skill Stones
    # -------------------------------------------------------------------------

    @staticmethod
    def _skill_stone_fields(body: dict[str, Any]) -> dict[str, Any]:
        name = _required_name(body)
        stone_type = EquipmentType.parse(body.get("type"))
        if stone_type is None:
            raise BadRequestError("invalid_type")

        image_url = body.get("image_url")
        image_url = str(image_url).strip() or None if image_url is not None else None
        return {"name": name, "image_url": image_url, "type": stone_type.value}

    @staticmethod
    def list_skill_stones() -> list[dict[str, Any]]:
        client = SupabaseClient.get_client()
        return SupabaseClient.rows(
            client.table("equipment_create")
            .select(SKILL_STONE_COLUMNS)
            .in_("type", [t.value for t in EquipmentType])
            .order("type")
            .order("id"),
            action="list skill stones",
        )

    @staticmethod
    def create_skill_stone(body: dict[str, Any]) -> dict[str, Any] | None:
        """
        Add a skill stone to the catalog.

        Raises:
            BadRequestError: name_required / invalid_type
        """
        fields = CatalogService._skill_stone_fields(body)
        client = SupabaseClient.get_client()
        row = SupabaseClient.first(
            client.table("equipment_create").insert(fields),
            action="create skill stone",
        )
        logger.info(f"Created skill stone {fields['name']!r} (type {fields['type']})")
        return row

    @staticmethod
    def update_skill_stone(body: dict[str, Any]) -> dict[str, Any] | None:
        """
        Replace a skill stone's name, image and type.

        Raises:
            BadRequestError: invalid_id / name_required / invalid_type
        """
        stone_id = _required_id(body)
        fields = CatalogService._skill_stone_fields(body)
        client = SupabaseClient.get_client()
        return SupabaseClient.first(
            client.table("equipment_create").update(fields).eq("id", stone_id),
            action="update skill stone",
        )
