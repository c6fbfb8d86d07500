# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .member_service import MemberService
from .leave_service import LeaveService
from .loadout_service import LoadoutService
from .catalog_service import CatalogService
from .note_service import NoteService
from .party_plan_service import PartyPlanService
from .member_sync_service import MemberSyncService

__all__ = [
    "MemberService",
    "LeaveService",
    "LoadoutService",
    "CatalogService",
    "NoteService",
    "PartyPlanService",
    "MemberSyncService",
]
