"""Consumer-facing countdown operations and the read-only view they produce."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from config.settings import AppConfig
from modules.countdown.errors import CountdownError, InvalidCountdown
from modules.countdown.record import CountdownRecord
from modules.optimization.prompt_synthesizer import PromptSynthesizer
from modules.pipelines.image_synthesizer import ImageSynthesizer
from modules.services.artifact_cache import ArtifactCache, RecordStore, RefreshOutcome, RefreshStatus
from modules.services.record_store import JsonRecordStore
from modules.services.storage_service import StorageService
from modules.utils.dates import days_between

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CountdownView:
    """Read-only projection of the countdown for the presentation layer."""

    record: Optional[CountdownRecord]
    artifact_path: Optional[Path]
    status: RefreshStatus
    days_remaining: Optional[int] = None
    error: Optional[CountdownError] = None

    @property
    def is_setup(self) -> bool:
        return self.record is not None and self.record.is_setup

    @property
    def headline(self) -> str:
        """Text shown above the image."""
        if self.record is None or self.days_remaining is None:
            return "No countdown set up yet."
        if self.days_remaining < 0:
            return "Date has passed!"
        return f"{self.days_remaining} days until {self.record.event_description}"


class CountdownService:
    """Load, save and refresh the single countdown record."""

    def __init__(self, record_store: RecordStore, artifact_cache: ArtifactCache) -> None:
        self.record_store = record_store
        self.cache = artifact_cache
        self._view = CountdownView(record=None, artifact_path=None, status=RefreshStatus.NOT_SET_UP)

    def current_view(self) -> CountdownView:
        """Return the last projected state without touching storage."""
        return self._view

    def load_countdown_data(self) -> CountdownView:
        """Read the stored record and make sure today's image exists."""
        outcome = self.cache.refresh_stored()
        if outcome.status is RefreshStatus.BUSY:
            return self._busy()
        if outcome.record is None and outcome.error is not None:
            self._view = CountdownView(None, None, RefreshStatus.NOT_SET_UP, error=outcome.error)
            return self._view
        return self._project(outcome)

    def save_countdown_data(self, record: CountdownRecord) -> CountdownView:
        """Persist ``record`` as-is and return the resulting view."""
        outcome = self.cache.commit(record, regenerate=False)
        if outcome.status is RefreshStatus.BUSY:
            return self._busy()
        if outcome.error is not None:
            return self._with_error(outcome.error)
        return self._project(outcome)

    def start_countdown(
        self,
        description: str,
        target_date: datetime,
        style: Optional[str] = None,
    ) -> CountdownView:
        """Commit the countdown settings and generate the first image."""
        description = (description or "").strip()
        if not description:
            return self._with_error(InvalidCountdown("Event description must not be empty."))
        if days_between(target_date, self.cache.clock(), self.cache.tz) < 0:
            return self._with_error(InvalidCountdown("Target date must not be in the past."))

        record = CountdownRecord(
            target_date=target_date,
            event_description=description,
            image_style=(style or "").strip() or None,
        )
        return self._commit_and_regenerate(record)

    def edit_countdown(
        self,
        description: Optional[str] = None,
        target_date: Optional[datetime] = None,
        style: Optional[str] = None,
    ) -> CountdownView:
        """Change settings of an existing countdown and regenerate its image."""
        if description is not None and not description.strip():
            return self._with_error(InvalidCountdown("Event description must not be empty."))
        try:
            existing = self.record_store.get()
        except CountdownError as exc:
            logger.error("Error loading countdown data: %s", exc)
            return self._with_error(exc)
        if existing is None:
            return self._with_error(InvalidCountdown("No countdown has been set up yet."))

        if style is None:
            record = existing.with_settings(description and description.strip(), target_date)
        else:
            record = existing.with_settings(description and description.strip(), target_date, style.strip() or None)
        return self._commit_and_regenerate(record, previous_ref=existing.cached_artifact_ref)

    def regenerate(self) -> CountdownView:
        """Manually regenerate today's image for the stored countdown."""
        outcome = self.cache.refresh_stored(force=True)
        if outcome.status is RefreshStatus.BUSY:
            return self._busy()
        if outcome.record is None and outcome.error is not None:
            return self._with_error(outcome.error)
        return self._project(outcome)

    # Internal helpers ---------------------------------------------------------
    def _commit_and_regenerate(self, record: CountdownRecord, previous_ref: Optional[str] = None) -> CountdownView:
        outcome = self.cache.commit(record)
        if outcome.status is RefreshStatus.BUSY:
            return self._busy()
        if outcome.status is RefreshStatus.FAILED and outcome.artifact_ref is None and previous_ref:
            # Display only; the stored record no longer points at this image.
            outcome = RefreshOutcome(outcome.record, previous_ref, outcome.status, outcome.error)
        return self._project(outcome)

    def _busy(self) -> CountdownView:
        previous = self._view
        self._view = CountdownView(
            record=previous.record,
            artifact_path=previous.artifact_path,
            status=RefreshStatus.BUSY,
            days_remaining=previous.days_remaining,
        )
        return self._view

    def _with_error(self, error: CountdownError) -> CountdownView:
        previous = self._view
        self._view = CountdownView(
            record=previous.record,
            artifact_path=previous.artifact_path,
            status=RefreshStatus.FAILED,
            days_remaining=previous.days_remaining,
            error=error,
        )
        return self._view

    def _project(self, outcome: RefreshOutcome) -> CountdownView:
        record = outcome.record
        days_left: Optional[int] = None
        if record is not None and record.is_setup:
            days_left = record.days_remaining(self.cache.clock(), self.cache.tz)

        artifact_path: Optional[Path] = None
        if outcome.artifact_ref:
            artifact_path = self.cache.content_store.resolve(outcome.artifact_ref)

        self._view = CountdownView(
            record=record,
            artifact_path=artifact_path,
            status=outcome.status,
            days_remaining=days_left,
            error=outcome.error,
        )
        return self._view


def build_service(config: AppConfig) -> CountdownService:
    """Wire the countdown service from configuration."""
    record_store = JsonRecordStore(config.storage_path, key=config.record_key)
    cache = ArtifactCache(
        prompt_synthesizer=PromptSynthesizer(config),
        image_synthesizer=ImageSynthesizer(config),
        content_store=StorageService(config.cache_dir),
        record_store=record_store,
        tz=config.calendar_tz(),
        max_cached_artifacts=config.max_cached_artifacts,
    )
    return CountdownService(record_store, cache)
