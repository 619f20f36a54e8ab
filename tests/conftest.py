"""Shared fixtures: a fixed clock and dummy collaborators for the countdown core."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Optional

import pytest

from modules.countdown.errors import GenerationFailed, StoreUnavailable
from modules.countdown.record import CountdownRecord
from modules.services.artifact_cache import ArtifactCache
from modules.services.storage_service import StorageService


class FixedClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class DummyPromptSynthesizer:
    """Stub prompt synthesizer capturing its inputs."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int, Optional[str]]] = []

    def synthesize(self, description: str, days_left: int, style: Optional[str] = None) -> str:
        self.calls.append((description, days_left, style))
        return f"{days_left} days until {description}"


class DummyImageSynthesizer:
    """Stub image synthesizer returning numbered fake bytes."""

    def __init__(self) -> None:
        self.prompts: list[str] = []
        self.should_fail = False
        self.on_call: Optional[Callable[[], None]] = None

    def synthesize(self, prompt: str) -> bytes:
        self.prompts.append(prompt)
        if self.on_call is not None:
            self.on_call()
        if self.should_fail:
            raise GenerationFailed("image service unavailable")
        return f"fake-image-{len(self.prompts)}".encode("utf-8")


class MemoryRecordStore:
    """In-memory record store recording every put."""

    def __init__(self, record: Optional[CountdownRecord] = None) -> None:
        self.record = record
        self.puts: list[CountdownRecord] = []
        self.fail_get = False
        self.fail_put = False

    def get(self) -> Optional[CountdownRecord]:
        if self.fail_get:
            raise StoreUnavailable("store offline")
        return self.record

    def put(self, record: CountdownRecord) -> None:
        if self.fail_put:
            raise StoreUnavailable("disk full")
        self.puts.append(record)
        self.record = record


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 10, 18, 12, 0))


@pytest.fixture
def prompt_synth() -> DummyPromptSynthesizer:
    return DummyPromptSynthesizer()


@pytest.fixture
def image_synth() -> DummyImageSynthesizer:
    return DummyImageSynthesizer()


@pytest.fixture
def record_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def content_store(tmp_path) -> StorageService:
    return StorageService(tmp_path / "cache")


@pytest.fixture
def cache(prompt_synth, image_synth, content_store, record_store, clock) -> ArtifactCache:
    return ArtifactCache(
        prompt_synthesizer=prompt_synth,
        image_synthesizer=image_synth,
        content_store=content_store,
        record_store=record_store,
        clock=clock,
    )
