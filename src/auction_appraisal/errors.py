from __future__ import annotations

from typing import Optional


class AppraisalError(Exception):
    """Base class for errors raised by this package."""


class InvalidInputError(AppraisalError):
    """A submission carried neither text nor an image."""


class ConfigError(AppraisalError):
    pass


class AuthError(AppraisalError):
    pass


class VertexError(AppraisalError):
    """The remote model call failed or returned an unusable body.

    ``status`` is the upstream HTTP status when one was received.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    @property
    def proxy_status(self) -> int:
        """HTTP status to report to our own callers."""
        if self.status is None:
            return 500
        return 502 if self.status >= 500 else 400


class TurnConflictError(AppraisalError):
    """A submission arrived while another turn is still pending."""
