"""Pydantic schemas for housekeeping settings, results and reports.

This module defines housekeeping-related schemas:
- HousekeepingSettings: Thresholds driving the three sweep passes
- HousekeepingResult: Response body of a sweep ({softDeleted, deleted})
- HousekeepingStatistics: Detailed per-pass statistics of one sweep
- HousekeepingReport: Dry-run counts of polls each pass would act on
"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from config import Settings, get_settings
from .exceptions import HousekeepingConfigError


class HousekeepingSettings(BaseModel):
    """Housekeeping policy thresholds.

    All periods are in days. Every comparison against them is strict:
    a poll exactly on a cutoff is left alone.

    Defaults:
    - Demo polls: removed once older than 1 day
    - Inactive polls: tombstoned after 30 days without activity
    - Tombstones: removed 7 days after being tombstoned
    """

    model_config = ConfigDict(frozen=True)

    demo_lifetime_days: int = Field(
        default=1,
        ge=1,
        le=365,
        description="Age after which demo polls are permanently removed (1-365)"
    )

    inactivity_threshold_days: int = Field(
        default=30,
        ge=1,
        le=3650,
        description="Inactivity after which polls are soft-deleted (1-3650)"
    )

    soft_delete_grace_period_days: int = Field(
        default=7,
        ge=1,
        le=365,
        description="Grace period before hard-deleting soft-deleted polls (1-365)"
    )

    batch_size: int = Field(
        default=1000,
        ge=1,
        le=100000,
        description="Polls permanently removed per transaction"
    )

    anomaly_threshold: int = Field(
        default=10000,
        ge=1,
        description="Polls affected by one sweep above which an alert is logged"
    )

    @property
    def demo_lifetime(self) -> timedelta:
        return timedelta(days=self.demo_lifetime_days)

    @property
    def inactivity_threshold(self) -> timedelta:
        return timedelta(days=self.inactivity_threshold_days)

    @property
    def grace_period(self) -> timedelta:
        return timedelta(days=self.soft_delete_grace_period_days)

    @classmethod
    def from_app_settings(cls, settings: Optional[Settings] = None) -> "HousekeepingSettings":
        """Build housekeeping settings from application configuration.

        Raises:
            HousekeepingConfigError: If any configured threshold is invalid
        """
        settings = settings or get_settings()
        try:
            return cls(
                demo_lifetime_days=settings.HOUSEKEEPING_DEMO_LIFETIME_DAYS,
                inactivity_threshold_days=settings.HOUSEKEEPING_INACTIVITY_DAYS,
                soft_delete_grace_period_days=settings.HOUSEKEEPING_GRACE_PERIOD_DAYS,
                batch_size=settings.HOUSEKEEPING_BATCH_SIZE,
                anomaly_threshold=settings.HOUSEKEEPING_ANOMALY_THRESHOLD,
            )
        except ValidationError as e:
            raise HousekeepingConfigError(f"Invalid housekeeping configuration: {e}") from e


class HousekeepingResult(BaseModel):
    """Aggregate outcome of one sweep, as returned to the caller.

    Serialized with camelCase keys: {"softDeleted": n, "deleted": m}.
    `deleted` counts demo polls and expired tombstones together.
    """

    model_config = ConfigDict(populate_by_name=True)

    soft_deleted: int = Field(default=0, ge=0, alias="softDeleted")
    deleted: int = Field(default=0, ge=0)


class HousekeepingStatistics(BaseModel):
    """Statistics from a single housekeeping sweep."""

    swept_at: datetime = Field(
        description="Reference time the sweep evaluated every threshold against"
    )

    duration_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Sweep execution duration in seconds"
    )

    demo_polls_deleted: int = Field(
        default=0,
        ge=0,
        description="Demo polls permanently removed"
    )

    polls_soft_deleted: int = Field(
        default=0,
        ge=0,
        description="Inactive polls tombstoned"
    )

    polls_hard_deleted: int = Field(
        default=0,
        ge=0,
        description="Tombstoned polls permanently removed after the grace period"
    )

    anomaly_threshold: int = Field(
        default=10000,
        ge=1,
        description="Volume above which the sweep is flagged as anomalous"
    )

    @property
    def total_deleted(self) -> int:
        """Polls permanently removed by the demo and grace-period passes."""
        return self.demo_polls_deleted + self.polls_hard_deleted

    @property
    def total_affected(self) -> int:
        return self.total_deleted + self.polls_soft_deleted

    @property
    def is_anomaly(self) -> bool:
        """Whether the sweep touched more polls than normally expected."""
        return self.total_affected > self.anomaly_threshold

    def to_result(self) -> HousekeepingResult:
        return HousekeepingResult(
            soft_deleted=self.polls_soft_deleted,
            deleted=self.total_deleted,
        )


class HousekeepingReport(BaseModel):
    """Preview of what a sweep would do right now.

    Counts are computed with the same predicates the sweep uses, without
    modifying anything.
    """

    generated_at: datetime = Field(
        description="Reference time the counts were evaluated against"
    )

    settings: HousekeepingSettings = Field(
        description="Thresholds the counts were computed with"
    )

    demo_polls_expired: int = Field(
        default=0,
        ge=0,
        description="Demo polls older than the demo lifetime"
    )

    polls_eligible_for_soft_delete: int = Field(
        default=0,
        ge=0,
        description="Active polls inactive past the threshold without future options"
    )

    polls_eligible_for_hard_delete: int = Field(
        default=0,
        ge=0,
        description="Tombstones older than the grace period"
    )

    tombstones_in_grace_period: int = Field(
        default=0,
        ge=0,
        description="Tombstones still inside the grace period"
    )

    @field_validator("generated_at")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            raise ValueError("generated_at must be timezone-aware")
        return v

    @property
    def total_eligible_for_deletion(self) -> int:
        """Polls the next sweep would permanently remove."""
        return self.demo_polls_expired + self.polls_eligible_for_hard_delete
