"""File storage helpers for generated countdown images."""

from __future__ import annotations

import logging
import os
import tempfile
import time
import uuid
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

from modules.countdown.errors import StoreUnavailable

logger = logging.getLogger(__name__)


class StorageService:
    """Write artifact bytes to the application cache and hand out file URIs."""

    prefix = "countdown_"
    suffix = ".jpg"

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = Path(cache_dir)

    def write(self, data: bytes) -> str:
        """Persist ``data`` and return a reference to the new file."""
        name = f"{self.prefix}{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}{self.suffix}"
        target = self.cache_dir / name
        tmp_name: Optional[str] = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".partial-", dir=self.cache_dir)
            with os.fdopen(fd, "wb") as fp:
                fp.write(data)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreUnavailable(f"cannot write artifact to {self.cache_dir}: {exc}") from exc
        return target.resolve().as_uri()

    def resolve(self, ref: str) -> Path:
        """Return the filesystem path for a reference produced by ``write``."""
        if ref.startswith("file:"):
            return Path(url2pathname(urlparse(ref).path))
        return Path(ref)

    def exists(self, ref: str) -> bool:
        return self.resolve(ref).is_file()

    def discard(self, ref: str) -> None:
        """Delete an artifact, ignoring files that are already gone."""
        try:
            self.resolve(ref).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove artifact %s: %s", ref, exc)

    def cleanup(self, max_items: int = 5, keep: Iterable[str] = ()) -> list[Path]:
        """Remove the oldest artifacts beyond ``max_items``; never touch ``keep``."""
        if not self.cache_dir.exists():
            return []
        protected = {self.resolve(ref).resolve() for ref in keep}
        artifacts = sorted(
            self.cache_dir.glob(f"{self.prefix}*{self.suffix}"),
            key=lambda path: (path.stat().st_mtime, path.name),
            reverse=True,
        )
        others = [path for path in artifacts if path.resolve() not in protected]
        budget = max(max_items - (len(artifacts) - len(others)), 0)
        removed: list[Path] = []
        for path in others[budget:]:
            try:
                path.unlink()
            except OSError as exc:
                logger.warning("Could not prune artifact %s: %s", path, exc)
                continue
            removed.append(path)
        return removed
