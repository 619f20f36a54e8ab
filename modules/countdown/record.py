"""The persisted countdown record."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional

from modules.utils.dates import days_between, parse_timestamp

_UNSET: Any = object()


@dataclass(slots=True)
class CountdownRecord:
    """Singleton record describing the countdown and its cached artifact.

    ``last_generated_date`` and ``cached_artifact_ref`` are a pair: both set or
    both unset.
    """

    target_date: datetime
    event_description: str
    image_style: Optional[str] = None
    last_generated_date: Optional[datetime] = None
    cached_artifact_ref: Optional[str] = None

    @property
    def is_setup(self) -> bool:
        return bool((self.event_description or "").strip())

    @property
    def has_artifact(self) -> bool:
        return self.cached_artifact_ref is not None and self.last_generated_date is not None

    def days_remaining(self, now: datetime, tz: Optional[tzinfo] = None) -> int:
        """Calendar days from ``now`` until the target date."""
        return days_between(self.target_date, now, tz)

    def with_artifact(self, artifact_ref: str, generated_at: datetime) -> "CountdownRecord":
        """Return a copy pointing at a freshly generated artifact."""
        return replace(self, cached_artifact_ref=artifact_ref, last_generated_date=generated_at)

    def with_settings(
        self,
        description: Optional[str] = None,
        target_date: Optional[datetime] = None,
        image_style: Any = _UNSET,
    ) -> "CountdownRecord":
        """Return a copy with edited user settings.

        The artifact pair is cleared: an image drawn for the old settings is
        never fresh for the new ones.
        """
        changes: Dict[str, Any] = {"last_generated_date": None, "cached_artifact_ref": None}
        if description is not None:
            changes["event_description"] = description
        if target_date is not None:
            changes["target_date"] = target_date
        if image_style is not _UNSET:
            changes["image_style"] = image_style or None
        return replace(self, **changes)

    # Serialization ------------------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "targetDate": self.target_date.isoformat(),
            "eventDescription": self.event_description,
        }
        if self.image_style:
            payload["imageStyle"] = self.image_style
        if self.has_artifact and self.last_generated_date is not None:
            payload["lastGeneratedDate"] = self.last_generated_date.isoformat()
            payload["cachedImagePath"] = self.cached_artifact_ref
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CountdownRecord":
        if not isinstance(data, dict):
            raise ValueError("countdown record must be a JSON object")
        try:
            target_date = parse_timestamp(str(data["targetDate"]))
        except KeyError as exc:
            raise ValueError("countdown record is missing targetDate") from exc

        description = data.get("eventDescription") or ""
        if not isinstance(description, str):
            raise ValueError("eventDescription must be a string")

        style = data.get("imageStyle") or None
        generated_raw = data.get("lastGeneratedDate")
        artifact_ref = data.get("cachedImagePath") or None

        last_generated: Optional[datetime] = None
        if generated_raw and artifact_ref:
            last_generated = parse_timestamp(str(generated_raw))
        else:
            # A half-written pair is treated as no artifact at all.
            artifact_ref = None

        return cls(
            target_date=target_date,
            event_description=description,
            image_style=str(style) if style else None,
            last_generated_date=last_generated,
            cached_artifact_ref=str(artifact_ref) if artifact_ref else None,
        )

    @classmethod
    def from_json(cls, text: str) -> "CountdownRecord":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"countdown record is not valid JSON: {exc}") from exc
        return cls.from_dict(data)
