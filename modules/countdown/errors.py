"""Error taxonomy for the countdown core."""

from __future__ import annotations


class CountdownError(RuntimeError):
    """Base class for failures reported by the countdown core."""


class PromptSynthesisFailed(CountdownError):
    """Remote prompt synthesis produced nothing usable.

    Always recovered with the fallback prompt; never reaches callers.
    """


class GenerationFailed(CountdownError):
    """The image-generation call failed; the refresh is aborted."""


class StoreUnavailable(CountdownError):
    """The record store or the content store could not be read or written."""


class InvalidCountdown(CountdownError):
    """Countdown settings were rejected before anything was stored."""
