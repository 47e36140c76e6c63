"""FastAPI router for housekeeping endpoints.

Provides scheduler-facing APIs for:
- Running a housekeeping sweep
- Previewing what a sweep would do

All endpoints require the API secret as a bearer token.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth.dependencies import require_api_secret
from config import Settings, get_settings
from database import get_db
from .schemas import HousekeepingReport, HousekeepingResult, HousekeepingSettings
from .service import HousekeepingService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/house-keeping",
    tags=["housekeeping"],
    dependencies=[Depends(require_api_secret)],
)


def get_housekeeping_settings(
    settings: Settings = Depends(get_settings),
) -> HousekeepingSettings:
    """Housekeeping thresholds from application configuration.

    Raises:
        HousekeepingConfigError: If the configured thresholds are invalid
    """
    return HousekeepingSettings.from_app_settings(settings)


@router.post("", response_model=HousekeepingResult)
def run_house_keeping(
    db: Session = Depends(get_db),
    settings: HousekeepingSettings = Depends(get_housekeeping_settings),
) -> HousekeepingResult:
    """Run a housekeeping sweep now.

    Removes expired demo polls, soft-deletes inactive polls and
    permanently removes tombstones past the grace period.

    Safe to call repeatedly: a second call right after the first
    returns {"softDeleted": 0, "deleted": 0}.

    Returns:
        HousekeepingResult: {"softDeleted": n, "deleted": m}

    Raises:
        SweepPassError: If a pass fails (mapped to 500)
    """
    service = HousekeepingService(db=db, settings=settings)
    statistics = service.run_sweep(now=datetime.now(timezone.utc))

    logger.info(
        "Housekeeping sweep triggered over HTTP",
        extra={"stats": statistics.model_dump(mode="json")}
    )

    return statistics.to_result()


@router.get("/report", response_model=HousekeepingReport)
def get_house_keeping_report(
    db: Session = Depends(get_db),
    settings: HousekeepingSettings = Depends(get_housekeeping_settings),
) -> HousekeepingReport:
    """Preview the polls the next sweep would act on, without changing anything.

    Returns:
        HousekeepingReport: Per-pass counts of eligible polls
    """
    service = HousekeepingService(db=db, settings=settings)
    return service.generate_report(now=datetime.now(timezone.utc))
