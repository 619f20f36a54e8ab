"""Countdown image prompt synthesis via third-party LLM APIs."""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from config.settings import AppConfig
from modules.countdown.errors import PromptSynthesisFailed

logger = logging.getLogger(__name__)

_QUOTES = "'\""


@dataclass(slots=True)
class SynthesisRequest:
    """Information passed to synthesis backends."""

    instruction: str
    description: str
    days_left: int
    style: Optional[str]
    max_tokens: int
    metadata: Dict[str, Any]


BackendCallable = Callable[[SynthesisRequest], Any]


def style_clause(style: Optional[str]) -> str:
    """Return the sentence fragment requesting a visual style, if any."""
    cleaned = (style or "").strip()
    if not cleaned:
        return ""
    return f". The image should be in {cleaned} style"


def build_instruction(description: str, days_left: int, style: Optional[str] = None) -> str:
    """Compose the instruction sent to the text-completion model."""
    return (
        "Generate a creative and descriptive prompt for an AI image generator. "
        "The image should represent a countdown to an event. "
        f'Context: Someone is waiting for "{description}" and there are {days_left} days remaining. '
        f"The image should include the number {days_left} and be visually appealing{style_clause(style)}. "
        "Make the prompt specific and artistic. "
        "Respond with only the prompt text, no additional commentary."
    )


def fallback_prompt(description: str, days_left: int, style: Optional[str] = None) -> str:
    """Deterministic, network-free prompt used when synthesis is unavailable."""
    return (
        f"A beautiful digital art showing number {days_left} days remaining until "
        f"{description}, creative and colorful{style_clause(style)}"
    )


def clean_prompt(raw: str) -> str:
    """Strip surrounding whitespace and quote characters from a model reply."""
    return raw.strip().strip(_QUOTES).strip()


class PromptSynthesizer:
    """Turn countdown context into image-generation instructions."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self._backends: Dict[str, BackendCallable] = {}
        self.warnings: list[str] = []
        self._auto_register_backends()

    def register_backend(self, name: str, backend: BackendCallable) -> None:
        """Register a prompt synthesis backend."""
        self._backends[name.lower()] = backend

    def clear_backends(self) -> None:
        """Remove all backends (mainly for tests)."""
        self._backends.clear()

    def has_backend(self, name: str) -> bool:
        return name.lower() in self._backends

    def available_backends(self) -> list[str]:
        """Return the list of registered backends ordered by preference."""
        priority = {"hf": 0, "gpt": 1, "claude": 2}
        return sorted(
            self._backends.keys(),
            key=lambda item: (priority.get(item, 99), item),
        )

    def default_backend(self) -> Optional[str]:
        """Return the configured backend when registered, else the preferred one."""
        configured = (self.config.prompt_backend or "").lower()
        if configured and configured in self._backends:
            return configured
        choices = self.available_backends()
        return choices[0] if choices else None

    def synthesize(self, description: str, days_left: int, style: Optional[str] = None) -> str:
        """Return an image prompt; falls back to a fixed template on any failure."""
        try:
            prompt = self._synthesize_remote(description, days_left, style)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prompt synthesis unavailable, using fallback prompt: %s", exc)
            return fallback_prompt(description, days_left, style)
        logger.info("Generated prompt: %s", prompt)
        return prompt

    # Internal helpers ---------------------------------------------------------
    def _synthesize_remote(self, description: str, days_left: int, style: Optional[str]) -> str:
        name = self.default_backend()
        if name is None:
            detail = "; ".join(self.warnings) if self.warnings else "no backend configured"
            raise PromptSynthesisFailed(detail)

        request = SynthesisRequest(
            instruction=build_instruction(description, days_left, style),
            description=description,
            days_left=days_left,
            style=style,
            max_tokens=self.config.prompt_max_tokens,
            metadata=self.config.metadata,
        )
        raw = self._backends[name](request)
        if not isinstance(raw, str):
            raise PromptSynthesisFailed(f"backend '{name}' returned {type(raw).__name__}")
        prompt = clean_prompt(raw)
        if not prompt:
            raise PromptSynthesisFailed(f"backend '{name}' returned an empty prompt")
        return prompt

    def _auto_register_backends(self) -> None:
        """Register backends automatically when credentials and SDKs are available."""
        self._register_hf_backend()
        self._register_openai_backend()
        self._register_claude_backend()

    def _import_sdk(self, name: str) -> Any:
        try:
            return importlib.import_module(name)
        except ImportError as exc:
            self.warnings.append(f"cannot import {name}: {exc}")
            return None

    @staticmethod
    def _chat_completion_text(completion: Any) -> str:
        choices = getattr(completion, "choices", None)
        if not choices:
            raise PromptSynthesisFailed("completion has no choices")
        content = getattr(choices[0].message, "content", None)
        if not isinstance(content, str):
            raise PromptSynthesisFailed("completion message has no text content")
        return content

    def _chat_backend(self, client: Any, model_name: str) -> BackendCallable:
        def _backend(request: SynthesisRequest) -> str:
            completion = client.chat.completions.create(
                model=model_name,
                messages=[{"role": "user", "content": request.instruction}],
                max_tokens=request.max_tokens,
                stream=False,
            )
            return self._chat_completion_text(completion)

        return _backend

    def _register_hf_backend(self) -> None:
        if not self.config.hf_token:
            return
        openai_module = self._import_sdk("openai")
        if openai_module is None:
            return
        client = openai_module.OpenAI(
            api_key=self.config.hf_token,
            base_url=self.config.chat_base_url,
            timeout=self.config.request_timeout,
        )
        self.register_backend("hf", self._chat_backend(client, self.config.chat_model))

    def _register_openai_backend(self) -> None:
        if not self.config.openai_key:
            return
        openai_module = self._import_sdk("openai")
        if openai_module is None:
            return

        client_kwargs: Dict[str, Any] = {
            "api_key": self.config.openai_key,
            "timeout": self.config.request_timeout,
        }
        base_url = self.config.metadata.get("openai_base_url")
        if base_url:
            client_kwargs["base_url"] = base_url
        client = openai_module.OpenAI(**client_kwargs)
        model_name = self.config.metadata.get("openai_model", "gpt-4o-mini")
        self.register_backend("gpt", self._chat_backend(client, model_name))

    def _register_claude_backend(self) -> None:
        if not self.config.anthropic_key:
            return
        anthropic_module = self._import_sdk("anthropic")
        if anthropic_module is None:
            return

        client = anthropic_module.Anthropic(
            api_key=self.config.anthropic_key,
            timeout=self.config.request_timeout,
        )

        def _claude_backend(request: SynthesisRequest) -> str:
            message = client.messages.create(
                model=self.config.metadata.get("claude_model", "claude-3-haiku-20240307"),
                max_tokens=request.max_tokens,
                messages=[{"role": "user", "content": request.instruction}],
            )
            if not message.content:
                raise PromptSynthesisFailed("Claude returned no content blocks")
            text = getattr(message.content[0], "text", None)
            if not isinstance(text, str):
                raise PromptSynthesisFailed("Claude reply has no text block")
            return text

        self.register_backend("claude", _claude_backend)
