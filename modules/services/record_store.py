"""JSON-backed key-value store holding the single countdown record."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from modules.countdown.errors import StoreUnavailable
from modules.countdown.record import CountdownRecord

logger = logging.getLogger(__name__)


class _CorruptStore(StoreUnavailable):
    """The store file exists but does not hold a JSON object."""


class JsonRecordStore:
    """Persist one serialized CountdownRecord under a string key.

    The file is a JSON object mapping keys to string values; entries under
    other keys are left untouched.
    """

    def __init__(self, path: Path, key: str = "countdownData") -> None:
        self.path = Path(path)
        self.key = key

    def get(self) -> Optional[CountdownRecord]:
        """Return the stored record, or None if nothing was saved yet."""
        entries = self._read_entries()
        raw = entries.get(self.key)
        if raw is None:
            return None
        try:
            return CountdownRecord.from_json(raw)
        except ValueError as exc:
            raise StoreUnavailable(f"stored countdown record is unreadable: {exc}") from exc

    def put(self, record: CountdownRecord) -> None:
        """Replace the stored record with a single atomic file swap.

        Unparsable content is overwritten so a corrupt file does not lock the
        user out; unreadable files still raise ``StoreUnavailable``.
        """
        try:
            entries = self._read_entries()
        except _CorruptStore as exc:
            logger.warning("Overwriting unreadable countdown store: %s", exc)
            entries = {}
        entries[self.key] = record.to_json()
        self._write_entries(entries)

    # Internal helpers ---------------------------------------------------------
    def _read_entries(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreUnavailable(f"cannot read {self.path}: {exc}") from exc
        if not text.strip():
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise _CorruptStore(f"{self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise _CorruptStore(f"{self.path} does not contain a JSON object")
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _write_entries(self, entries: Dict[str, str]) -> None:
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".storage-", suffix=".json", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fp:
                json.dump(entries, fp, ensure_ascii=False, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreUnavailable(f"cannot write {self.path}: {exc}") from exc
