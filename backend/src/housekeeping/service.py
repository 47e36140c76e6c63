"""Housekeeping service for poll retention.

This service implements the housekeeping policy:
- Demo polls are permanently removed once older than the demo lifetime
- Polls inactive past the inactivity threshold are soft-deleted (tombstoned)
- Tombstoned polls are permanently removed after the grace period,
  together with their options, participants and votes

Every mutation re-applies its eligibility predicate inside the statement
that performs it, so the sweep is idempotent and overlapping sweeps never
process the same poll twice.

The reference time `now` is always passed in by the caller; nothing in
this module reads the system clock to make a retention decision.
"""

import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from sqlalchemy import delete, exists, func, or_, select, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from models.option import Option
from models.participant import Participant
from models.poll import Poll
from models.vote import Vote
from observability.metrics import (
    polls_hard_deleted_total,
    polls_soft_deleted_total,
    sweep_duration_seconds,
    sweep_failures_total,
)
from .exceptions import HousekeepingConfigError, SweepPassError
from .schemas import HousekeepingReport, HousekeepingSettings, HousekeepingStatistics

logger = logging.getLogger(__name__)

DEMO_EXPIRY_PASS = "demo_expiry"
SOFT_DELETE_PASS = "soft_delete"
HARD_DELETE_PASS = "hard_delete"
MANUAL_DELETE_PASS = "manual_delete"


def _as_utc(now: datetime) -> datetime:
    """Normalize a reference time to timezone-aware UTC.

    Naive datetimes are taken to already be UTC.
    """
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


class HousekeepingService:
    """Service for executing the poll housekeeping sweep.

    This service encapsulates all retention logic and provides methods for:
    - Calculating cutoff dates from the housekeeping settings
    - Removing expired demo polls
    - Soft-deleting inactive polls
    - Hard-deleting tombstones past the grace period
    - Cascade-deleting polls by id
    - Generating a dry-run report

    Each pass commits on its own; a failing pass is rolled back and raised
    as SweepPassError without undoing passes that already finished.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[HousekeepingSettings] = None
    ):
        """Initialize housekeeping service.

        Args:
            db: Database session
            settings: Housekeeping thresholds; loaded from application
                configuration when omitted

        Raises:
            HousekeepingConfigError: If the thresholds are invalid
        """
        if settings is None:
            settings = HousekeepingSettings.from_app_settings()
        elif not isinstance(settings, HousekeepingSettings):
            raise HousekeepingConfigError(
                f"Expected HousekeepingSettings, got {type(settings).__name__}"
            )

        self.db = db
        self.settings = settings

    def calculate_cutoff_dates(self, now: datetime) -> Dict[str, datetime]:
        """Calculate the cutoff for each pass relative to `now`.

        A poll is eligible for a pass only if its timestamp is strictly
        older than (less than) the matching cutoff.

        Returns:
            Dict mapping pass name to cutoff datetime
        """
        now = _as_utc(now)
        return {
            DEMO_EXPIRY_PASS: now - self.settings.demo_lifetime,
            SOFT_DELETE_PASS: now - self.settings.inactivity_threshold,
            HARD_DELETE_PASS: now - self.settings.grace_period,
        }

    # -- Eligibility predicates -------------------------------------------

    @staticmethod
    def _demo_expired(cutoff: datetime) -> List[ColumnElement]:
        return [Poll.demo.is_(True), Poll.created_at < cutoff]

    @staticmethod
    def _inactive(cutoff: datetime, now: datetime) -> List[ColumnElement]:
        has_future_option = exists().where(
            Option.poll_id == Poll.id,
            Option.start >= now,
        )
        # Demo polls are only ever removed by the demo expiry pass
        return [
            Poll.demo.is_(False),
            Poll.deleted.is_(False),
            func.coalesce(Poll.touched_at, Poll.created_at) < cutoff,
            ~has_future_option,
        ]

    @staticmethod
    def _tombstone_expired(cutoff: datetime) -> List[ColumnElement]:
        return [Poll.deleted.is_(True), Poll.deleted_at < cutoff]

    # -- Passes -----------------------------------------------------------

    @contextmanager
    def _sweep_pass(self, name: str) -> Iterator[None]:
        """Run a pass, rolling back and surfacing any failure."""
        try:
            yield
        except Exception as e:
            self.db.rollback()
            sweep_failures_total.labels(sweep_pass=name).inc()
            logger.error(
                f"Housekeeping pass {name} failed, rolled back",
                exc_info=True,
                extra={"sweep_pass": name, "error": str(e)}
            )
            raise SweepPassError(name, e) from e

    def expire_demo_polls(self, now: datetime) -> int:
        """Permanently remove demo polls older than the demo lifetime.

        Demo polls bypass the tombstone stage: they are removed straight
        from the active state, regardless of their deleted flag.

        Args:
            now: Reference time of the sweep

        Returns:
            Number of demo polls removed

        Raises:
            SweepPassError: If the store rejects any batch
        """
        cutoff = self.calculate_cutoff_dates(now)[DEMO_EXPIRY_PASS]
        with self._sweep_pass(DEMO_EXPIRY_PASS):
            removed = self._delete_in_batches(self._demo_expired(cutoff), reason="demo")

        logger.info(
            f"Removed {removed} expired demo polls",
            extra={"sweep_pass": DEMO_EXPIRY_PASS, "cutoff": cutoff.isoformat(), "count": removed}
        )
        return removed

    def soft_delete_inactive_polls(self, now: datetime) -> int:
        """Tombstone active polls without recent activity.

        A poll qualifies when its last activity (touched_at, or created_at
        if never touched) is strictly older than the inactivity cutoff and
        none of its options start at or after `now`. Demo polls never
        qualify; they are left to the demo expiry pass.

        Tombstoning is a single conditioned UPDATE: deleted=True and
        deleted_at=now. Options, participants and votes are left intact.

        Args:
            now: Reference time of the sweep

        Returns:
            Number of polls tombstoned

        Raises:
            SweepPassError: If the update fails
        """
        now = _as_utc(now)
        cutoff = self.calculate_cutoff_dates(now)[SOFT_DELETE_PASS]

        with self._sweep_pass(SOFT_DELETE_PASS):
            stmt = (
                update(Poll)
                .where(*self._inactive(cutoff, now))
                .values(deleted=True, deleted_at=now)
                .execution_options(synchronize_session=False)
            )
            result = self.db.execute(stmt)
            self.db.commit()
            tombstoned = result.rowcount or 0

        polls_soft_deleted_total.inc(tombstoned)
        logger.info(
            f"Soft-deleted {tombstoned} inactive polls",
            extra={"sweep_pass": SOFT_DELETE_PASS, "cutoff": cutoff.isoformat(), "count": tombstoned}
        )
        return tombstoned

    def hard_delete_expired_tombstones(self, now: datetime) -> int:
        """Permanently remove polls soft-deleted before the grace cutoff.

        Each poll is removed together with every vote, participant and
        option referencing it. Tombstones inside the grace period stay.

        Args:
            now: Reference time of the sweep

        Returns:
            Number of polls removed

        Raises:
            SweepPassError: If the store rejects any batch
        """
        cutoff = self.calculate_cutoff_dates(now)[HARD_DELETE_PASS]
        with self._sweep_pass(HARD_DELETE_PASS):
            removed = self._delete_in_batches(
                self._tombstone_expired(cutoff),
                reason="grace_period",
            )

        logger.info(
            f"Hard-deleted {removed} polls past the grace period",
            extra={"sweep_pass": HARD_DELETE_PASS, "cutoff": cutoff.isoformat(), "count": removed}
        )
        return removed

    def delete_polls(self, poll_ids: Iterable[str]) -> int:
        """Permanently remove specific polls and all their dependents.

        Runs in a single transaction. Unknown ids are ignored.

        Args:
            poll_ids: Ids of the polls to remove

        Returns:
            Number of polls removed

        Raises:
            SweepPassError: If the store rejects the deletion
        """
        ids = sorted(set(poll_ids))
        if not ids:
            return 0

        with self._sweep_pass(MANUAL_DELETE_PASS):
            removed = self._cascade_delete(ids)
            self.db.commit()

        polls_hard_deleted_total.labels(reason="manual").inc(removed)
        logger.info(
            f"Deleted {removed} polls by id",
            extra={"sweep_pass": MANUAL_DELETE_PASS, "poll_ids": ids, "count": removed}
        )
        return removed

    # -- Cascade ----------------------------------------------------------

    def _select_batch(self, criteria: Sequence[ColumnElement]) -> List[str]:
        """Lock and return the next batch of eligible poll ids.

        FOR UPDATE SKIP LOCKED keeps concurrent sweepers on disjoint rows;
        dialects without row locking (SQLite) ignore the clause.
        """
        stmt = (
            select(Poll.id)
            .where(*criteria)
            .order_by(Poll.id)
            .limit(self.settings.batch_size)
            .with_for_update(skip_locked=True)
        )
        return list(self.db.execute(stmt).scalars())

    def _delete_in_batches(self, criteria: Sequence[ColumnElement], reason: str) -> int:
        """Cascade-delete every poll matching `criteria`, one transaction per batch.

        The removal counter is bumped after each commit, so batches that
        committed before a failing one are still reflected in metrics.
        """
        total = 0
        while True:
            ids = self._select_batch(criteria)
            if not ids:
                self.db.rollback()
                break

            removed = self._cascade_delete(ids, criteria)
            self.db.commit()
            total += removed
            polls_hard_deleted_total.labels(reason=reason).inc(removed)

            logger.info(
                f"Removed batch of {removed} polls",
                extra={"poll_ids": ids, "count": removed}
            )

            if len(ids) < self.settings.batch_size or removed == 0:
                break

        return total

    def _cascade_delete(
        self,
        poll_ids: Sequence[str],
        criteria: Sequence[ColumnElement] = ()
    ) -> int:
        """Delete polls and their dependents inside the current transaction.

        Order: votes, participants, options, polls. Dependents are matched
        through the same filtered poll set that is finally deleted, so no
        child row is removed for a poll that survives and no child row
        survives a removed poll. The caller commits or rolls back.

        Returns:
            Number of poll rows deleted
        """
        doomed = select(Poll.id).where(Poll.id.in_(poll_ids), *criteria)
        doomed_options = select(Option.id).where(Option.poll_id.in_(doomed))
        doomed_participants = select(Participant.id).where(Participant.poll_id.in_(doomed))

        self.db.execute(
            delete(Vote)
            .where(or_(
                Vote.poll_id.in_(doomed),
                Vote.option_id.in_(doomed_options),
                Vote.participant_id.in_(doomed_participants),
            ))
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(Participant)
            .where(Participant.poll_id.in_(doomed))
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(Option)
            .where(Option.poll_id.in_(doomed))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(
            delete(Poll)
            .where(Poll.id.in_(poll_ids), *criteria)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # -- Orchestration ----------------------------------------------------

    def run_sweep(self, now: datetime) -> HousekeepingStatistics:
        """Run one complete housekeeping sweep.

        Executes the passes in order:
        1. Remove expired demo polls
        2. Soft-delete inactive polls
        3. Hard-delete tombstones past the grace period

        A poll tombstoned in step 2 has deleted_at == now and is therefore
        never removed by step 3 of the same sweep.

        Args:
            now: Reference time every threshold is evaluated against

        Returns:
            HousekeepingStatistics for this sweep

        Raises:
            SweepPassError: If a pass fails; earlier passes stay committed
        """
        now = _as_utc(now)
        started = time.perf_counter()
        logger.info(f"Starting housekeeping sweep at {now.isoformat()}")

        demo_deleted = self.expire_demo_polls(now)
        soft_deleted = self.soft_delete_inactive_polls(now)
        hard_deleted = self.hard_delete_expired_tombstones(now)

        duration = time.perf_counter() - started
        sweep_duration_seconds.observe(duration)

        statistics = HousekeepingStatistics(
            swept_at=now,
            duration_seconds=duration,
            demo_polls_deleted=demo_deleted,
            polls_soft_deleted=soft_deleted,
            polls_hard_deleted=hard_deleted,
            anomaly_threshold=self.settings.anomaly_threshold,
        )

        logger.info(
            "Housekeeping sweep completed",
            extra={"stats": statistics.model_dump(mode="json")}
        )

        # Alert if anomaly detected
        if statistics.is_anomaly:
            logger.warning(
                f"Housekeeping anomaly detected: {statistics.total_affected} polls affected",
                extra={"stats": statistics.model_dump(mode="json")}
            )

        return statistics

    def generate_report(self, now: datetime) -> HousekeepingReport:
        """Count the polls each pass would act on, without modifying anything.

        Args:
            now: Reference time to evaluate thresholds against

        Returns:
            HousekeepingReport with per-pass counts
        """
        now = _as_utc(now)
        cutoffs = self.calculate_cutoff_dates(now)

        def count(criteria: Sequence[ColumnElement]) -> int:
            stmt = select(func.count()).select_from(Poll).where(*criteria)
            return self.db.execute(stmt).scalar_one()

        report = HousekeepingReport(
            generated_at=now,
            settings=self.settings,
            demo_polls_expired=count(self._demo_expired(cutoffs[DEMO_EXPIRY_PASS])),
            polls_eligible_for_soft_delete=count(
                self._inactive(cutoffs[SOFT_DELETE_PASS], now)
            ),
            polls_eligible_for_hard_delete=count(
                self._tombstone_expired(cutoffs[HARD_DELETE_PASS])
            ),
            tombstones_in_grace_period=count([
                Poll.deleted.is_(True),
                Poll.deleted_at >= cutoffs[HARD_DELETE_PASS],
            ]),
        )

        logger.info(
            "Generated housekeeping report",
            extra={"stats": report.model_dump(mode="json", exclude={"settings"})}
        )
        return report
