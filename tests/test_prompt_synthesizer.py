"""PromptSynthesizer unit tests."""

from __future__ import annotations

import os
import types

import pytest

from config.settings import AppConfig, load_config
from modules.optimization.prompt_synthesizer import (
    PromptSynthesizer,
    build_instruction,
    fallback_prompt,
)


def build_synthesizer(**overrides) -> PromptSynthesizer:
    config = AppConfig(**overrides)
    synthesizer = PromptSynthesizer(config)
    synthesizer.clear_backends()
    return synthesizer


def test_synthesize_with_registered_backend_strips_quotes():
    synthesizer = build_synthesizer()
    seen = []

    def fake_backend(request):
        seen.append(request)
        return '  "A rocket on a launchpad with a glowing 5 in the sky"\n'

    synthesizer.register_backend("hf", fake_backend)
    prompt = synthesizer.synthesize("Launch", 5, "watercolor")

    assert prompt == "A rocket on a launchpad with a glowing 5 in the sky"
    request = seen[0]
    assert '"Launch"' in request.instruction
    assert "there are 5 days remaining" in request.instruction
    assert ". The image should be in watercolor style" in request.instruction
    assert request.max_tokens == 200


def test_instruction_omits_blank_style():
    instruction = build_instruction("Launch", 3, "   ")

    assert "style" not in instruction
    assert "include the number 3" in instruction


def test_backend_error_returns_fallback():
    synthesizer = build_synthesizer()

    def failing_backend(request):
        raise TimeoutError("upstream timed out")

    synthesizer.register_backend("hf", failing_backend)
    prompt = synthesizer.synthesize("Birthday", 5, "")

    assert prompt == fallback_prompt("Birthday", 5, "")
    assert prompt == (
        "A beautiful digital art showing number 5 days remaining until Birthday, creative and colorful"
    )


def test_empty_or_non_text_reply_returns_fallback_with_style():
    synthesizer = build_synthesizer()
    synthesizer.register_backend("hf", lambda request: "  ''  ")

    assert synthesizer.synthesize("Wedding", 12, "pixel art") == fallback_prompt("Wedding", 12, "pixel art")

    synthesizer.register_backend("hf", lambda request: {"prompt": "structured"})
    assert synthesizer.synthesize("Wedding", 12) == fallback_prompt("Wedding", 12)


def test_no_backend_returns_fallback():
    synthesizer = build_synthesizer()

    assert synthesizer.default_backend() is None
    assert synthesizer.synthesize("Trip", 1) == fallback_prompt("Trip", 1)


def test_configured_backend_takes_precedence():
    synthesizer = build_synthesizer(prompt_backend="claude")
    synthesizer.register_backend("hf", lambda request: "from hf")
    synthesizer.register_backend("claude", lambda request: "from claude")

    assert synthesizer.available_backends() == ["hf", "claude"]
    assert synthesizer.synthesize("Trip", 1) == "from claude"


def test_hf_backend_registered(monkeypatch):
    """Ensure the HF chat backend registers through the OpenAI SDK and sends a single user message."""

    class DummyCompletions:
        def __init__(self) -> None:
            self.calls = []

        def create(self, **kwargs):
            self.calls.append(kwargs)
            message = types.SimpleNamespace(content="'Balloons spelling 5 over a birthday cake'")
            return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])

    class DummyOpenAI:
        instances = []

        def __init__(self, api_key: str, base_url: str = "", timeout: float = 0) -> None:
            self.api_key = api_key
            self.base_url = base_url
            self.chat = types.SimpleNamespace(completions=DummyCompletions())
            DummyOpenAI.instances.append(self)

    import modules.optimization.prompt_synthesizer as prompt_synthesizer_module

    original_import = prompt_synthesizer_module.importlib.import_module

    def fake_import_module(name: str):
        if name == "openai":
            return types.SimpleNamespace(OpenAI=DummyOpenAI)
        return original_import(name)

    monkeypatch.setattr(prompt_synthesizer_module.importlib, "import_module", fake_import_module)

    config = AppConfig(hf_token="hf-test")
    synthesizer = PromptSynthesizer(config)
    prompt = synthesizer.synthesize("Birthday", 5)

    assert synthesizer.available_backends() == ["hf"]
    assert prompt == "Balloons spelling 5 over a birthday cake"
    client = DummyOpenAI.instances[-1]
    assert client.api_key == "hf-test"
    assert client.base_url == config.chat_base_url
    call = client.chat.completions.calls[0]
    assert call["model"] == config.chat_model
    assert call["stream"] is False
    assert call["max_tokens"] == config.prompt_max_tokens
    assert call["messages"] == [{"role": "user", "content": build_instruction("Birthday", 5)}]
    assert synthesizer.warnings == []


def test_missing_sdk_is_recorded_as_warning(monkeypatch):
    import modules.optimization.prompt_synthesizer as prompt_synthesizer_module

    def fake_import_module(name: str):
        raise ImportError(f"No module named '{name}'")

    monkeypatch.setattr(prompt_synthesizer_module.importlib, "import_module", fake_import_module)

    synthesizer = PromptSynthesizer(AppConfig(hf_token="hf-test", anthropic_key="sk-ant"))

    assert synthesizer.available_backends() == []
    assert len(synthesizer.warnings) == 2
    assert synthesizer.synthesize("Trip", 2) == fallback_prompt("Trip", 2)


@pytest.mark.integration
def test_hf_backend_real_call():
    """Invoke the real Hugging Face chat endpoint to ensure a prompt comes back."""

    config = load_config()
    if not (config.hf_token or os.getenv("HF_API_TOKEN")):
        pytest.skip("HF_API_TOKEN not set; skipping real synthesis call.")

    synthesizer = PromptSynthesizer(config)
    assert synthesizer.has_backend("hf"), f"HF backend not registered: {synthesizer.warnings}"

    prompt = synthesizer.synthesize("Summer vacation", 7, "watercolor")
    print("Synthesized prompt:", prompt)
    assert prompt.strip()
