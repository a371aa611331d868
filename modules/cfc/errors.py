"""Error types raised by the CFC relay."""

from __future__ import annotations

from typing import Any, Optional

__all__ = ["CFCError", "FormParseError", "FormSuperseded", "TransportError"]


class CFCError(RuntimeError):
    """Base class for failures that abort a single CFC submission attempt."""

    #: Interaction the failure should be reported on, when it is not the
    #: button press that started the attempt (e.g. the deferred modal submit).
    interaction: Optional[Any] = None


class TransportError(CFCError):
    """Raised when a Discord call (send, edit, lookup, webhook create) fails."""


class FormParseError(CFCError):
    """Raised when modal fields or a stored payload cannot be decoded."""


class FormSuperseded(CFCError):
    """Raised to a waiting collector when a newer form replaced its registration."""
