"""
Domain error taxonomy.

Repositories raise the specific subclasses; the dispatcher wraps anything
escaping a handler into a ServerError tagged with a correlation id.
"""
from __future__ import annotations

import uuid
from typing import Optional


class EssError(Exception):
    """Base class for case service errors."""


class NotFoundError(EssError):
    """A referenced entity (registrant, task, supplier, support...) is missing."""


class InvariantViolationError(EssError):
    """A write was rejected by aggregate validation."""


class UnsupportedTransitionError(EssError):
    """A support status change is not allowed by the status policy."""


class NotSupportedError(EssError):
    """A command or query type has no handler."""


class ServerError(EssError):
    """Opaque failure surfaced by the dispatcher.

    ``error_type`` holds the class name of the original exception so callers
    can branch on it without importing server internals.
    """

    def __init__(self, error_type: str, message: str, correlation_id: Optional[uuid.UUID] = None):
        super().__init__(message)
        self.error_type = error_type
        self.message = message
        self.correlation_id = correlation_id or uuid.uuid4()

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message} (correlation id {self.correlation_id})"
