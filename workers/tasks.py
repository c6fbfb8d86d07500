# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Defines background tasks.
#
# Tasks:
# - sync_discord_members: Mirror the Discord server into the member table
#   (run by Celery beat every MEMBER_SYNC_INTERVAL_MINUTES)
# =============================================================================

import logging
from typing import Any

from celery import shared_task

logger = logging.getLogger(__name__)


# =============================================================================
# Member Sync Task
# =============================================================================

@shared_task(bind=True, name="workers.tasks.sync_discord_members")
def sync_discord_members(self) -> dict[str, Any]:
    """
    Run the Discord member sync.

    Discord and Supabase failures are retried (max_retries from the
    worker config); a missing bot configuration is reported and not
    retried.

    Returns:
        {"ok": True, "eligible": int, "inactivated": int} on success,
        {"ok": False, "error": str} when the sync is not configured
    """
    from app.exceptions import ConfigurationError
    from core.services.member_sync_service import MemberSyncService
    from lib.discord_client import DiscordApiError
    from lib.supabase_client import SupabaseClientError

    logger.info("Starting scheduled Discord member sync")

    try:
        return MemberSyncService.sync()

    except ConfigurationError as e:
        logger.error(f"Member sync skipped: {e.message}")
        return {"ok": False, "error": e.message}

    except (DiscordApiError, SupabaseClientError) as e:
        logger.warning(f"Member sync failed, will retry: {e.message}")
        raise self.retry(exc=e)
