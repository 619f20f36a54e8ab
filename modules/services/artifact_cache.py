"""Daily artifact cache: decides freshness and drives the generation pipeline."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum
from typing import Callable, Optional, Protocol

from modules.countdown.errors import CountdownError, GenerationFailed, StoreUnavailable
from modules.countdown.record import CountdownRecord
from modules.services.storage_service import StorageService
from modules.utils.dates import same_calendar_day

logger = logging.getLogger(__name__)


class PromptSource(Protocol):
    def synthesize(self, description: str, days_left: int, style: Optional[str] = None) -> str: ...


class ImageSource(Protocol):
    def synthesize(self, prompt: str) -> bytes: ...


class RecordStore(Protocol):
    def get(self) -> Optional[CountdownRecord]: ...

    def put(self, record: CountdownRecord) -> None: ...


class RefreshStatus(str, Enum):
    """How a refresh request was resolved."""

    FRESH = "fresh"
    STALE = "stale"
    REGENERATED = "regenerated"
    TARGET_PASSED = "target_passed"
    NOT_SET_UP = "not_set_up"
    BUSY = "busy"
    FAILED = "failed"


@dataclass(slots=True)
class RefreshOutcome:
    """Result of ``ensure_fresh`` / ``force_regenerate``."""

    record: Optional[CountdownRecord]
    artifact_ref: Optional[str]
    status: RefreshStatus
    error: Optional[CountdownError] = None

    @property
    def was_regenerated(self) -> bool:
        return self.status is RefreshStatus.REGENERATED

    @property
    def ok(self) -> bool:
        return self.error is None


class ArtifactCache:
    """Keep at most one fresh countdown image per calendar day."""

    def __init__(
        self,
        prompt_synthesizer: PromptSource,
        image_synthesizer: ImageSource,
        content_store: StorageService,
        record_store: RecordStore,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        max_cached_artifacts: int = 5,
    ) -> None:
        self.prompt_synthesizer = prompt_synthesizer
        self.image_synthesizer = image_synthesizer
        self.content_store = content_store
        self.record_store = record_store
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(tz))
        self.max_cached_artifacts = max_cached_artifacts
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        """True while a refresh is outstanding."""
        return self._in_flight.locked()

    def is_fresh(self, record: Optional[CountdownRecord], now: Optional[datetime] = None) -> bool:
        """Return True when the cached artifact was produced today."""
        if record is None or record.cached_artifact_ref is None or record.last_generated_date is None:
            return False
        return same_calendar_day(record.last_generated_date, now or self.clock(), self.tz)

    def ensure_fresh(self, record: Optional[CountdownRecord]) -> RefreshOutcome:
        """Return today's artifact, generating it if the cached one is stale."""
        return self._run(record, force=False)

    def force_regenerate(self, record: Optional[CountdownRecord]) -> RefreshOutcome:
        """Generate a new artifact regardless of the cached one's age."""
        return self._run(record, force=True)

    def refresh_stored(self, force: bool = False) -> RefreshOutcome:
        """Read the persisted record and refresh it inside the in-flight guard.

        The read happens after the guard is taken, so the record written back
        is never older than the one a concurrent commit persisted.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.warning("Refresh already in progress; rejecting stored %s request", "manual" if force else "daily")
            return RefreshOutcome(None, None, RefreshStatus.BUSY)
        try:
            try:
                record = self.record_store.get()
            except StoreUnavailable as exc:
                logger.error("Error loading countdown data: %s", exc)
                return RefreshOutcome(None, None, RefreshStatus.FAILED, exc)
            if record is None or not record.is_setup:
                return RefreshOutcome(record, None, RefreshStatus.NOT_SET_UP)
            return self._refresh(record, force)
        finally:
            self._in_flight.release()

    def commit(self, record: CountdownRecord, regenerate: bool = True) -> RefreshOutcome:
        """Persist ``record`` and optionally regenerate, holding the in-flight guard.

        A commit that arrives while a refresh is outstanding is rejected with
        ``BUSY`` before anything is written.
        """
        if not self._in_flight.acquire(blocking=False):
            logger.warning("Refresh already in progress; rejecting settings commit")
            return RefreshOutcome(record, record.cached_artifact_ref, RefreshStatus.BUSY)
        try:
            try:
                self.record_store.put(record)
            except StoreUnavailable as exc:
                logger.error("Error saving countdown data: %s", exc)
                return self._failed(record, exc)
            if not record.is_setup:
                return RefreshOutcome(record, None, RefreshStatus.NOT_SET_UP)
            if not regenerate:
                status = RefreshStatus.FRESH if self.is_fresh(record) else RefreshStatus.STALE
                return RefreshOutcome(record, record.cached_artifact_ref, status)
            return self._regenerate(record, self.clock())
        finally:
            self._in_flight.release()

    # Internal helpers ---------------------------------------------------------
    def _run(self, record: Optional[CountdownRecord], force: bool) -> RefreshOutcome:
        if record is None or not record.is_setup:
            return RefreshOutcome(record, None, RefreshStatus.NOT_SET_UP)

        if not self._in_flight.acquire(blocking=False):
            logger.warning("Refresh already in progress; rejecting %s request", "manual" if force else "daily")
            return RefreshOutcome(record, record.cached_artifact_ref, RefreshStatus.BUSY)
        try:
            return self._refresh(record, force)
        finally:
            self._in_flight.release()

    def _refresh(self, record: CountdownRecord, force: bool) -> RefreshOutcome:
        now = self.clock()
        if not force and self.is_fresh(record, now):
            return RefreshOutcome(record, record.cached_artifact_ref, RefreshStatus.FRESH)
        return self._regenerate(record, now)

    def _regenerate(self, record: CountdownRecord, now: datetime) -> RefreshOutcome:
        days_left = record.days_remaining(now, self.tz)
        if days_left < 0:
            logger.info("Target date %s has passed; not generating", record.target_date.date())
            return RefreshOutcome(record, record.cached_artifact_ref, RefreshStatus.TARGET_PASSED)

        prompt = self.prompt_synthesizer.synthesize(record.event_description, days_left, record.image_style)
        logger.info("Using prompt for image: %s", prompt)

        try:
            data = self.image_synthesizer.synthesize(prompt)
        except GenerationFailed as exc:
            logger.error("Error generating image: %s", exc)
            return self._failed(record, exc)

        try:
            artifact_ref = self.content_store.write(data)
        except StoreUnavailable as exc:
            logger.error("Error caching image: %s", exc)
            return self._failed(record, exc)

        updated = record.with_artifact(artifact_ref, now)
        try:
            self.record_store.put(updated)
        except StoreUnavailable as exc:
            logger.error("Error saving countdown record: %s", exc)
            self.content_store.discard(artifact_ref)
            return self._failed(record, exc)

        logger.info("Generated countdown image for %d days left: %s", days_left, artifact_ref)
        try:
            self.content_store.cleanup(self.max_cached_artifacts, keep=[artifact_ref])
        except OSError as exc:
            logger.warning("Could not prune cached images: %s", exc)
        return RefreshOutcome(updated, artifact_ref, RefreshStatus.REGENERATED)

    @staticmethod
    def _failed(record: CountdownRecord, error: CountdownError) -> RefreshOutcome:
        return RefreshOutcome(record, record.cached_artifact_ref, RefreshStatus.FAILED, error)
