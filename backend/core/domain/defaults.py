"""
core.domain.defaults — "Exactly one default per owner" enforcement.

Generalises the default-address rule to any model with an owner column
and a boolean flag.  The invariant:

    an owner with ≥ 1 row has exactly one row with the flag set;
    an owner with 0 rows has none.

Every mutating operation acquires the invariant lock for the owner
before touching a row and keeps it until the surrounding transaction
ends, so concurrent writers for the same owner serialise while writers
for different owners run fully in parallel.  Reads never take the lock.

Deleting the current default requires a *replacement policy* supplied
by the caller; the enforcer never guesses which row should inherit the
flag.

Usage::

    enforcer = DefaultFlagEnforcer(Address, namespace="address-default")

    with unit_of_work() as uow:
        address = enforcer.set_default(owner_id, address_id)
        uow.emit(...)
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Protocol, TypeVar

from django.db import DEFAULT_DB_ALIAS, models, transaction
from django.db.models import F, QuerySet

from core.domain.exceptions import DomainError, NotFound, PermissionDenied
from core.domain.locks import acquire_invariant_lock, lock_key

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


class ReplacementPolicy(Protocol):
    """Chooses which remaining row inherits the default flag."""

    #: True when the caller named the row; such a choice must be used.
    explicit: bool

    def choose(self, candidates: QuerySet) -> models.Model | None:
        ...


class MostRecentlyUsed:
    """
    Promote the remaining row used most recently; rows never used rank
    last.  Ties fall back to the newest row, then the highest id.
    """

    explicit = False

    def __init__(self, used_field: str = "last_used_at", created_field: str = "created_at") -> None:
        self.used_field = used_field
        self.created_field = created_field

    def choose(self, candidates: QuerySet) -> models.Model | None:
        return candidates.order_by(
            F(self.used_field).desc(nulls_last=True),
            F(self.created_field).desc(),
            "-pk",
        ).first()


class ExplicitReplacement:
    """Promote the row the caller named."""

    explicit = True

    def __init__(self, replacement_id: Any) -> None:
        self.replacement_id = replacement_id

    def choose(self, candidates: QuerySet) -> models.Model | None:
        try:
            replacement = candidates.filter(pk=self.replacement_id).first()
        except (ValueError, TypeError):
            replacement = None
        if replacement is None:
            raise DomainError(
                f"Replacement {self.replacement_id} must be another row owned by the same owner."
            )
        return replacement


class DefaultFlagEnforcer(Generic[M]):
    """
    Lock-guarded operations that preserve the default-flag invariant for
    ``model``.

    Args:
        model:       The Django model class.
        namespace:   Lock-key namespace, e.g. ``"address-default"``.
        owner_field: Name of the owner column.
        flag_field:  Name of the boolean default flag.
        label:       Human-readable entity name for error messages.
    """

    def __init__(
        self,
        model: type[M],
        *,
        namespace: str,
        owner_field: str = "owner_id",
        flag_field: str = "is_default",
        label: str | None = None,
        using: str = DEFAULT_DB_ALIAS,
    ) -> None:
        self.model = model
        self.namespace = namespace
        self.owner_field = owner_field
        self.flag_field = flag_field
        self.label = label or model._meta.verbose_name.title()
        self.using = using

    # ── Helpers ──────────────────────────────────────────────────────

    def lock_key(self, owner_id: Any) -> str:
        return lock_key(self.namespace, owner_id)

    def owned_by(self, owner_id: Any) -> QuerySet:
        return self.model.objects.using(self.using).filter(**{self.owner_field: owner_id})

    def _lock(self, owner_id: Any) -> None:
        acquire_invariant_lock(self.lock_key(owner_id), using=self.using)

    def get_owned(self, owner_id: Any, target_id: Any) -> M:
        try:
            row = self.model.objects.using(self.using).get(pk=target_id)
        except (self.model.DoesNotExist, ValueError, TypeError):
            raise NotFound(f"{self.label} with id {target_id} not found.")
        if str(getattr(row, self.owner_field)) != str(owner_id):
            raise PermissionDenied(f"You can only modify your own {self.label.lower()} records.")
        return row

    def _clear(self, owner_id: Any) -> None:
        self.owned_by(owner_id).filter(**{self.flag_field: True}).update(**{self.flag_field: False})

    def _flag(self, row: M) -> M:
        self.model.objects.using(self.using).filter(pk=row.pk).update(**{self.flag_field: True})
        setattr(row, self.flag_field, True)
        return row

    # ── Public operations ────────────────────────────────────────────

    def set_default(self, owner_id: Any, target_id: Any) -> M:
        """
        Make ``target_id`` the owner's only default row.

        Raises:
            NotFound:           If the row does not exist.
            PermissionDenied:   If the row belongs to another owner.
            ConcurrencyTimeout: If the owner's lock is busy for too long.
        """
        with transaction.atomic(using=self.using):
            self._lock(owner_id)
            target = self.get_owned(owner_id, target_id)
            self._clear(owner_id)
            self._flag(target)
        logger.info("%s %s set as default for owner=%s", self.label, target.pk, owner_id)
        return target

    def create_with_optional_default(
        self,
        owner_id: Any,
        is_default_requested: bool = False,
        **fields: Any,
    ) -> M:
        """
        Create a row for ``owner_id``.

        The row becomes the default when the caller asks for it or when
        it is the owner's first row.
        """
        with transaction.atomic(using=self.using):
            self._lock(owner_id)
            make_default = is_default_requested or not self.owned_by(owner_id).exists()
            if make_default:
                self._clear(owner_id)
            row = self.model.objects.using(self.using).create(
                **{self.owner_field: owner_id, self.flag_field: make_default},
                **fields,
            )
        return row

    def delete_with_reassignment(
        self,
        owner_id: Any,
        target_id: Any,
        replacement_policy: ReplacementPolicy,
        *,
        allow_last: bool = False,
    ) -> tuple[M, M | None]:
        """
        Delete ``target_id``, promoting a replacement chosen by
        ``replacement_policy`` when the deleted row was the default.

        Args:
            owner_id:           Owner of the row.
            target_id:          Row to delete.
            replacement_policy: Picks the row that inherits the flag.
            allow_last:         Permit deleting the owner's only row
                                (an explicit "delete last item" operation).

        Returns:
            ``(deleted_row, promoted_row_or_None)``.  ``deleted_row``
            keeps its in-memory field values; its ``pk`` is preserved.

        Raises:
            DomainError: If the row is the owner's only row and
                         ``allow_last`` is false, or the policy picked no
                         valid replacement, or an explicit
                         replacement was given for a non-default row.
        """
        with transaction.atomic(using=self.using):
            self._lock(owner_id)
            target = self.get_owned(owner_id, target_id)
            remaining = self.owned_by(owner_id).exclude(pk=target.pk)

            if not remaining.exists() and not allow_last:
                raise DomainError(f"Cannot delete the only {self.label.lower()}.")

            is_default = getattr(target, self.flag_field)
            if replacement_policy.explicit and not is_default:
                raise DomainError(
                    f"{self.label} {target.pk} is not the default; "
                    "a replacement can only be given when deleting the default."
                )

            promoted = None
            if is_default and remaining.exists():
                promoted = replacement_policy.choose(remaining)
                if promoted is None:
                    raise DomainError(
                        f"A replacement default {self.label.lower()} is required."
                    )
                self._clear(owner_id)
                self._flag(promoted)

            target_pk = target.pk
            target.delete()
            target.pk = target_pk

        logger.info(
            "%s %s deleted for owner=%s (promoted=%s)",
            self.label, target_pk, owner_id, promoted.pk if promoted else None,
        )
        return target, promoted
