# =============================================================================
# workers/ - Celery Background Task Workers
# =============================================================================
# This package contains the Celery configuration and the scheduled
# Discord member sync.
#
# Components:
# - celery_app.py: Celery application configuration and lifecycle logging
# - tasks.py: Task definitions (Discord member sync)
# - config.py: Worker settings and the beat schedule
#
# Usage:
#   # Start worker with the embedded beat scheduler
#   celery -A workers.celery_app worker --beat --loglevel=info
#
#   # Run a sync now (from the API or a shell)
#   from workers.tasks import sync_discord_members
#   result = sync_discord_members.delay()
# =============================================================================

from .celery_app import celery_app
from . import tasks

__all__ = [
    "celery_app",
    "tasks",
]
