"""Celery tasks for poll housekeeping.

Tasks:
- housekeeping_sweep_task: Daily sweep scheduled by Celery Beat
  (see workers.celery_app for the schedule)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from celery import shared_task

from database import get_db_session
from .service import HousekeepingService

logger = logging.getLogger(__name__)


@shared_task(name="housekeeping.sweep", bind=True)
def housekeeping_sweep_task(self) -> Dict[str, Any]:
    """Execute one housekeeping sweep.

    The task is idempotent - safe to run multiple times without side effects.
    Running twice in succession finds nothing left to do the second time.

    Returns:
        Dict with sweep statistics:
        - status: "completed"
        - softDeleted / deleted: Same counts the HTTP trigger returns
        - demo_polls_deleted, polls_soft_deleted, polls_hard_deleted
        - duration_seconds, is_anomaly

    Raises:
        HousekeepingConfigError: If thresholds are misconfigured
        SweepPassError: If a pass fails; the task is marked failed so the
            next scheduled run retries it
    """
    task_id = self.request.id
    logger.info("Housekeeping task started", extra={"task_id": task_id})

    try:
        with get_db_session() as db:
            service = HousekeepingService(db=db)
            statistics = service.run_sweep(now=datetime.now(timezone.utc))
    except Exception as e:
        logger.error(
            "Housekeeping task failed",
            exc_info=True,
            extra={"task_id": task_id, "error": str(e)}
        )
        raise

    result = {
        'status': 'completed',
        **statistics.to_result().model_dump(by_alias=True),
        'swept_at': statistics.swept_at.isoformat(),
        'duration_seconds': statistics.duration_seconds,
        'demo_polls_deleted': statistics.demo_polls_deleted,
        'polls_soft_deleted': statistics.polls_soft_deleted,
        'polls_hard_deleted': statistics.polls_hard_deleted,
        'is_anomaly': statistics.is_anomaly,
    }

    logger.info(
        "Housekeeping task completed successfully",
        extra={"task_id": task_id, "stats": result}
    )

    return result
