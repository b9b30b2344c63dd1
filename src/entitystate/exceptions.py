"""Custom exception hierarchy for entitystate."""

from __future__ import annotations


class EntityStateError(Exception):
    """Base exception for all entitystate errors."""


class InvalidArgumentError(EntityStateError, ValueError):
    """A caller passed an argument that cannot be used.

    Raised synchronously, before anything is dispatched.  The offending
    parameter is available as :attr:`argument` (e.g. ``"name"``,
    ``"operation"`` or ``"options"``).
    """

    def __init__(self, message: str, *, argument: str = "") -> None:
        self.argument = argument
        super().__init__(message)
