"""Exceptions raised by the GLM content generator."""

from __future__ import annotations


class GlmError(RuntimeError):
    """Base class for fatal errors surfaced to the caller."""


class GlmApiError(GlmError):
    """The GLM endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = "", reason: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(
            f"GLM API request failed ({status_code}): {body or reason}"
        )


class GlmProtocolError(GlmError):
    """The GLM endpoint answered with something the adapter cannot use."""


class AbortError(GlmError):
    """The caller's abort event fired while a request was in flight."""

    def __init__(self, message: str = "Request was aborted") -> None:
        super().__init__(message)
