"""Poll housekeeping module.

Implements the poll retention policy:
- Demo polls are permanently removed after one day
- Polls are soft-deleted after 30 days of inactivity
- Soft-deleted polls are permanently removed after 7 days,
  together with their options, participants and votes

This module provides:
- HousekeepingSettings thresholds (configurable per deployment)
- The sweeper (HousekeepingService) and its dry-run report
- An authenticated HTTP trigger and a scheduled Celery task
"""

from .exceptions import HousekeepingError, HousekeepingConfigError, SweepPassError
from .schemas import (
    HousekeepingSettings,
    HousekeepingResult,
    HousekeepingStatistics,
    HousekeepingReport,
)

# Service, router and tasks are imported lazily to avoid circular dependencies
# Use: from housekeeping.service import HousekeepingService
# Use: from housekeeping.tasks import housekeeping_sweep_task

__all__ = [
    "HousekeepingError",
    "HousekeepingConfigError",
    "SweepPassError",
    "HousekeepingSettings",
    "HousekeepingResult",
    "HousekeepingStatistics",
    "HousekeepingReport",
]
