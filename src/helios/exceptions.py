"""Error types raised while bootstrapping portal roles."""

from __future__ import annotations


class HeliosError(Exception):
    """Base error type."""


class InvalidIdentifierError(HeliosError, ValueError):
    """Raised when an app, env, cluster or namespace identifier is malformed."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid {field} {value!r}: {reason}")
        self.field = field
        self.value = value
        self.reason = reason


class NotFoundError(HeliosError, LookupError):
    """Raised when an operation requires a role that does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} {identifier!r} does not exist")
        self.kind = kind
        self.identifier = identifier


class DuplicateCreationError(HeliosError):
    """Raised by a store when a role with the same unique name already exists."""

    def __init__(self, role_name: str) -> None:
        super().__init__(f"Role {role_name!r} already exists")
        self.role_name = role_name


class StoreUnavailableError(HeliosError):
    """Raised by a store when the backing infrastructure cannot serve a call."""


__all__ = [
    "DuplicateCreationError",
    "HeliosError",
    "InvalidIdentifierError",
    "NotFoundError",
    "StoreUnavailableError",
]
