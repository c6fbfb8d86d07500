# =============================================================================
# app/routers/sync.py - Discord Member Sync Endpoints
# =============================================================================
# Machine-to-machine triggers for the Discord -> member table sync. Both
# are protected by shared secrets instead of a session:
# - POST /admin/syncmember          header x-admin-secret = ADMIN_SYNC_SECRET
# - GET  /cron/sync-discord-members ?secret= or header x-cron-secret, either
#                                   CRON_SECRET or ADMIN_SYNC_SECRET
#
# Handlers are plain functions so the blocking Discord paging runs in
# FastAPI's threadpool, off the event loop.
# =============================================================================

import logging
import secrets

from fastapi import APIRouter, Header, Query

from app.config import settings
from app.exceptions import InvalidSecretError
from core.services.member_sync_service import MemberSyncService

logger = logging.getLogger(__name__)

router = APIRouter()


def _secret_matches(given: str | None, accepted: list[str]) -> bool:
    if not given:
        return False
    return any(secrets.compare_digest(given.encode(), expected.encode()) for expected in accepted if expected)


@router.post("/admin/syncmember")
def admin_sync_members(
    x_admin_secret: str | None = Header(default=None),
):
    """
    Run the member sync now.

    Raises:
        401: If x-admin-secret is missing or wrong
    """
    if not _secret_matches(x_admin_secret, [settings.ADMIN_SYNC_SECRET]):
        logger.warning("Rejected admin member sync: bad secret")
        raise InvalidSecretError()

    return MemberSyncService.sync()


@router.get("/cron/sync-discord-members")
def cron_sync_members(
    secret: str | None = Query(default=None),
    x_cron_secret: str | None = Header(default=None),
):
    """
    Scheduled member sync (for external cron services).

    Raises:
        401: If neither ?secret= nor x-cron-secret matches
    """
    if not _secret_matches(secret or x_cron_secret, settings.sync_secrets):
        logger.warning("Rejected cron member sync: bad secret")
        raise InvalidSecretError()

    return MemberSyncService.sync()
