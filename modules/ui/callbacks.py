"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
import shutil
import time
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from config.settings import AppConfig
from modules.countdown.errors import InvalidCountdown
from modules.services.artifact_cache import RefreshStatus
from modules.services.countdown_service import CountdownService, CountdownView

logger = logging.getLogger(__name__)

_STATUS_MESSAGES = {
    RefreshStatus.FRESH: "Showing today's image.",
    RefreshStatus.STALE: "Countdown saved.",
    RefreshStatus.REGENERATED: "Generated a new image.",
    RefreshStatus.TARGET_PASSED: "The target date has passed; no new image was generated.",
    RefreshStatus.NOT_SET_UP: "Set up a countdown to get started.",
    RefreshStatus.BUSY: "An image is already being generated, please wait.",
}


def parse_target_date(value: Any) -> datetime:
    """Accept a datetime, a date, a timestamp or an ISO string from the date input."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value)
    text = str(value or "").strip()
    if not text:
        raise ValueError("Please choose a target date.")
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Unrecognized date '{text}', expected YYYY-MM-DD.") from exc


def describe_view(view: CountdownView) -> str:
    """Status line shown under the countdown image."""
    if view.error is not None:
        return f"{view.headline}\nFailed: {view.error}"
    message = _STATUS_MESSAGES.get(view.status, "")
    return f"{view.headline}\n{message}".strip()


def build_callbacks(
    config: AppConfig,
    service: Optional[CountdownService] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    def _ensure_service() -> CountdownService:
        if service is None:
            raise RuntimeError("Countdown service is not configured")
        return service

    def _render(view: CountdownView) -> tuple[Optional[str], str]:
        image = str(view.artifact_path) if view.artifact_path is not None else None
        return image, describe_view(view)

    def on_load() -> tuple[Optional[str], str]:
        return _render(_ensure_service().load_countdown_data())

    def on_start(description: str, target_date: Any, style: str) -> tuple[Optional[str], str]:
        svc = _ensure_service()
        try:
            parsed = parse_target_date(target_date)
        except ValueError as exc:
            image, _ = _render(svc.current_view())
            return image, f"Cannot start countdown: {exc}"
        view = svc.start_countdown(description, parsed, style or None)
        if isinstance(view.error, InvalidCountdown):
            image, _ = _render(view)
            return image, f"Cannot start countdown: {view.error}"
        return _render(view)

    def on_regenerate() -> tuple[Optional[str], str]:
        svc = _ensure_service()
        current = svc.current_view()
        if current.days_remaining is not None and current.days_remaining < 0:
            return _render(current)
        return _render(svc.regenerate())

    def on_save_image() -> str:
        view = _ensure_service().current_view()
        if view.artifact_path is None:
            return "There is no image to save yet."
        source = Path(view.artifact_path)
        gallery_dir = Path(config.gallery_dir)
        destination = gallery_dir / f"countdown_{int(time.time() * 1000)}.jpg"
        try:
            gallery_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, destination)
        except OSError as exc:
            logger.error("Error saving image: %s", exc)
            return f"Failed to save image: {exc}"
        return f"Image saved to {destination}"

    return {
        "on_load": on_load,
        "on_start": on_start,
        "on_regenerate": on_regenerate,
        "on_save_image": on_save_image,
    }
