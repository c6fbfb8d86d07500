# =============================================================================
# workers/celery_app.py - Celery Application for the Member Sync
# =============================================================================
# Builds the Celery app that runs the scheduled Discord member sync.
# Broker, result backend, queues and the beat schedule all come from
# workers.config.CeleryConfig, which reads app.config.settings.
#
# Usage:
#   celery -A workers.celery_app worker --beat --queues=default,sync --loglevel=info
# =============================================================================

import logging

from celery import Celery
from celery.signals import beat_init, task_failure, task_postrun, task_retry
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from app.config import settings  # noqa: E402
from workers.config import CeleryConfig  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def redacted_url(url: str) -> str:
    """Broker URL with any credentials stripped, for logs."""
    return url.split("@")[-1] if "@" in url else url


def create_celery_app() -> Celery:
    """
    Create the Celery app with the member sync task registered.

    Returns:
        Configured Celery app instance
    """
    app = Celery("inferno_worker", include=["workers.tasks"])
    app.config_from_object(CeleryConfig)

    logger.info(f"Celery app created with broker: {redacted_url(CeleryConfig.broker_url)}")
    return app


celery_app = create_celery_app()


# =============================================================================
# Celery Signals
# =============================================================================

@beat_init.connect
def beat_init_handler(sender=None, **extra):
    """Log the sync schedule once beat starts."""
    logger.info(f"Discord member sync scheduled every {settings.MEMBER_SYNC_INTERVAL_MINUTES} minutes")
    if not settings.DISCORD_BOT_TOKEN:
        logger.warning("DISCORD_BOT_TOKEN is not set: scheduled member syncs will be skipped")


@task_postrun.connect
def task_postrun_handler(sender=None, task_id=None, task=None, retval=None, state=None, **extra):
    """Log each finished run, with the sync counts when there are any."""
    if isinstance(retval, dict) and retval.get("ok"):
        logger.info(
            f"Task completed: {task.name} [{task_id}] - {retval.get('eligible')} eligible, "
            f"{retval.get('inactivated')} inactivated"
        )
    else:
        logger.info(f"Task completed: {task.name} [{task_id}] - State: {state}")


@task_retry.connect
def task_retry_handler(sender=None, request=None, reason=None, **extra):
    logger.warning(f"Task retrying: {sender.name} [{getattr(request, 'id', None)}] - Reason: {reason}")


@task_failure.connect
def task_failure_handler(sender=None, task_id=None, exception=None, **extra):
    logger.error(f"Task failed: {sender.name} [{task_id}] - Error: {exception}")
