"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  ``core.domain.exception_handler`` maps them to the
appropriate HTTP response.

Mapping cheatsheet
------------------
┌───────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception      │ Meaning                      │ Code │
├───────────────────────┼──────────────────────────────┼──────┤
│ DomainError           │ Bad request / business rule  │ 400  │
│ DomainValidationError │ Incomplete submission        │ 400  │
│ PermissionDenied      │ Ownership / role mismatch    │ 403  │
│ NotFound              │ Missing entity or reference  │ 404  │
│ Conflict              │ Concurrent assignment clash  │ 409  │
│ InvalidTransition     │ Illegal state transition     │ 409  │
│ ConcurrencyTimeout    │ Invariant lock not acquired  │ 503  │
└───────────────────────┴──────────────────────────────┴──────┘

Any of these raised inside a unit of work aborts the transaction
wholesale.

Recommended usage inside a service::

    from core.domain.exceptions import InvalidTransition

    if draft.status not in EDITABLE_STATUSES:
        raise InvalidTransition(
            current=draft.status,
            target=DraftStatus.PENDING,
            reason="Only draft or changes_requested drafts can be submitted.",
        )
"""

from __future__ import annotations

from typing import Iterable


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class DomainValidationError(DomainError):
    """
    A submission is malformed or incomplete.

    ``errors`` itemises **every** violated constraint so the caller can
    fix them in one round-trip.
    """

    def __init__(
        self,
        errors: Iterable[str] | str,
        message: str = "The submission is invalid.",
    ) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(message if len(self.errors) != 1 else self.errors[0])


class PermissionDenied(DomainError):
    """
    The authenticated identity does not own the resource or lacks the
    role required for this operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource (or a resource it references) does not exist.

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: a queue item already held by another moderator.
    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A state-machine transition that is not allowed from the current status.

    Inherits from ``Conflict`` because an invalid transition IS a conflict
    with the resource's current state.  Maps to HTTP 409.

    Example::

        raise InvalidTransition(
            current="approved",
            target="pending",
            reason="Approved drafts are immutable.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class ConcurrencyTimeout(DomainError):
    """
    The invariant lock for a key could not be acquired within the
    configured bound.  The transaction has been rolled back and the
    request may be retried.

    Maps to HTTP 503.
    """

    def __init__(self, message: str = "The resource is busy; please retry.", *, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key
