"""Configuration helpers for the Daily Countdown project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    data_dir: Path = Path("data")
    cache_dir: Path = Path("data/cache")
    gallery_dir: Path = Path("data/gallery")
    log_dir: Path = Path("logs")
    storage_path: Path = Path("data/storage.json")
    record_key: str = "countdownData"
    hf_token: Optional[str] = None
    hf_base_url: str = "https://api-inference.huggingface.co"
    chat_model: str = "meta-llama/Llama-3.2-3B-Instruct"
    image_model: str = "black-forest-labs/FLUX.1-dev"
    prompt_backend: Optional[str] = None
    prompt_max_tokens: int = 200
    request_timeout: float = 120.0
    max_cached_artifacts: int = 5
    timezone: Optional[str] = None
    anthropic_key: Optional[str] = None
    openai_key: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def image_endpoint(self) -> str:
        """Return the image-generation URL for the configured model."""
        return f"{self.hf_base_url.rstrip('/')}/models/{self.image_model}"

    @property
    def chat_base_url(self) -> str:
        """Return the OpenAI-compatible base URL for the chat model."""
        return f"{self.hf_base_url.rstrip('/')}/models/{self.chat_model}/v1"

    def calendar_tz(self) -> Optional[tzinfo]:
        """Return the configured calendar timezone, or None for local time."""
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return None


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    data_dir = Path(os.getenv("COUNTDOWN_DATA_DIR", "data")).expanduser().resolve()
    defaults = AppConfig()

    metadata: dict[str, Any] = {}
    openai_base_url = os.getenv("OPENAI_BASE_URL")
    openai_model = os.getenv("OPENAI_MODEL")
    claude_model = os.getenv("CLAUDE_MODEL")
    if openai_base_url:
        metadata["openai_base_url"] = openai_base_url
    if openai_model:
        metadata["openai_model"] = openai_model
    if claude_model:
        metadata["claude_model"] = claude_model

    return AppConfig(
        data_dir=data_dir,
        cache_dir=data_dir / "cache",
        gallery_dir=data_dir / "gallery",
        log_dir=data_dir / "logs",
        storage_path=data_dir / "storage.json",
        hf_token=os.getenv("HF_API_TOKEN") or os.getenv("HUGGING_FACE_API_TOKEN"),
        hf_base_url=os.getenv("HF_BASE_URL") or defaults.hf_base_url,
        chat_model=os.getenv("CHAT_MODEL") or defaults.chat_model,
        image_model=os.getenv("IMAGE_MODEL") or defaults.image_model,
        prompt_backend=os.getenv("PROMPT_BACKEND") or None,
        prompt_max_tokens=_env_int("PROMPT_MAX_TOKENS", defaults.prompt_max_tokens),
        request_timeout=_env_float("REQUEST_TIMEOUT", defaults.request_timeout),
        max_cached_artifacts=_env_int("MAX_CACHED_ARTIFACTS", defaults.max_cached_artifacts),
        timezone=os.getenv("COUNTDOWN_TIMEZONE") or None,
        anthropic_key=os.getenv("ANTHROPIC_API_KEY"),
        openai_key=os.getenv("OPENAI_API_KEY"),
        metadata=metadata,
    )
