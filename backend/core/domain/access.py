"""
core.domain.access — Identity and permission helpers shared by views.

The service layer never looks at ``request.user``: it receives plain
identity strings (``owner_id``, ``moderator_id``).  Views translate the
authenticated user into those identities here, and guard role-gated
endpoints with ``require_permission`` before calling a service.

    ┌─────────┐      ┌──────────────────┐      ┌────────────────┐
    │  View   │─────▶│ core.domain      │      │  App service   │
    │ (thin)  │      │   .access        │      │ (owns logic,   │
    └─────────┘      └──────────────────┘      │  takes ids)    │
         └─────────────────────────────────────▶└────────────────┘
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from django.contrib.auth.models import AbstractBaseUser


def identity_of(user: AbstractBaseUser) -> str:
    """
    Return the stable identity string used as ``owner_id`` / ``moderator_id``.

    Args:
        user: Authenticated user instance.

    Returns:
        The user's primary key rendered as a string.
    """
    return str(user.pk)


def require_permission(user: AbstractBaseUser, *perms: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user lacks **all** of
    the given permissions (OR-logic: having any one is sufficient).

    Args:
        user:    Authenticated user.
        *perms:  One or more full permission strings (``app.codename``).
        message: Optional custom error message.

    Raises:
        core.domain.exceptions.PermissionDenied: If the user has none
            of the listed permissions.

    Example::

        require_permission(user, "catalog.can_moderate_drafts")
    """
    from core.domain.exceptions import PermissionDenied as DomainPermissionDenied

    for perm in perms:
        if user.has_perm(perm):
            return
    raise DomainPermissionDenied(
        message or f"Missing required permission: {', '.join(perms)}."
    )
