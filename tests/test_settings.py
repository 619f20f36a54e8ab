"""Configuration loading tests."""

from __future__ import annotations

from config.settings import AppConfig, load_config


def test_load_config_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("COUNTDOWN_DATA_DIR", str(tmp_path / "countdown"))
    monkeypatch.setenv("HUGGING_FACE_API_TOKEN", "hf-env")
    monkeypatch.delenv("HF_API_TOKEN", raising=False)
    monkeypatch.setenv("IMAGE_MODEL", "stabilityai/sdxl-turbo")
    monkeypatch.setenv("PROMPT_MAX_TOKENS", "not-a-number")
    monkeypatch.setenv("MAX_CACHED_ARTIFACTS", "3")

    config = load_config(str(tmp_path / "missing.env"))

    assert config.hf_token == "hf-env"
    assert config.cache_dir == (tmp_path / "countdown").resolve() / "cache"
    assert config.storage_path.name == "storage.json"
    assert config.image_endpoint.endswith("/models/stabilityai/sdxl-turbo")
    assert config.prompt_max_tokens == 200
    assert config.max_cached_artifacts == 3


def test_chat_base_url_targets_model_route():
    config = AppConfig(hf_base_url="https://example.test/", chat_model="org/model")

    assert config.chat_base_url == "https://example.test/models/org/model/v1"


def test_calendar_tz():
    assert AppConfig().calendar_tz() is None
    assert AppConfig(timezone="Not/AZone").calendar_tz() is None
