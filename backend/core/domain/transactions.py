"""
core.domain.transactions — The single entry point for state changes.

A *unit of work* wraps entity writes, outbox appends and (optionally)
an invariant lock in one ``transaction.atomic()`` block, so they are
committed or discarded together.  Side effects that talk to other
services are registered as *post-commit hooks*: they run only after the
outermost transaction commits, never while locks are held, and their
failures are logged instead of propagated.

Usage::

    from core.domain.transactions import lock_for_update, unit_of_work

    with unit_of_work(lock_key="address-default:42") as uow:
        draft = lock_for_update(ProductDraft, draft_id)
        draft.status = DraftStatus.PENDING
        draft.save(update_fields=["status", "updated_at"])
        uow.emit(
            aggregate_type="ProductDraft",
            aggregate_id=draft.pk,
            event_type=EventType.DRAFT_SUBMITTED,
            payload={...},
        )
        uow.after_commit(notifier.notify_something, draft.owner_id)

Nesting a unit of work inside another opens a savepoint; post-commit
hooks still wait for the outermost commit.
"""

from __future__ import annotations

import functools
import logging
from contextlib import ExitStack, contextmanager
from typing import Any, Callable, Iterator, TypeVar

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, models, transaction

from core.constants import LOCK_TIMEOUT_MS
from core.domain.exceptions import ConcurrencyTimeout, NotFound
from core.domain.locks import acquire_invariant_lock, bound_begin_wait
from core.domain.outbox import OutboxService

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


class UnitOfWork:
    """
    Handle yielded by ``unit_of_work``.  Collects the outbox appends and
    post-commit hooks of one transaction.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS, metadata: dict[str, Any] | None = None) -> None:
        self.using = using
        self.metadata = metadata
        self.events: list = []

    def lock(self, key: str) -> None:
        """Acquire an additional invariant lock inside this transaction."""
        acquire_invariant_lock(key, using=self.using)

    def emit(
        self,
        *,
        aggregate_type: str,
        aggregate_id: Any,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ):
        """Append an outbox event that commits with this unit of work."""
        event = OutboxService.append(
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            event_type=event_type,
            payload=payload,
            metadata=metadata if metadata is not None else self.metadata,
            using=self.using,
        )
        self.events.append(event)
        return event

    def after_commit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        """
        Schedule a best-effort side effect for after the outermost commit.

        Never runs if the transaction rolls back.  Exceptions are logged
        and swallowed: the committed state transition stays the source
        of truth.
        """
        transaction.on_commit(
            functools.partial(_run_best_effort, fn, *args, **kwargs),
            using=self.using,
        )


def _run_best_effort(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    try:
        fn(*args, **kwargs)
    except Exception:
        logger.exception(
            "Post-commit hook %s failed; the committed transaction is unaffected.",
            getattr(fn, "__qualname__", repr(fn)),
        )


@contextmanager
def unit_of_work(
    *,
    lock_key: str | None = None,
    using: str = DEFAULT_DB_ALIAS,
    metadata: dict[str, Any] | None = None,
) -> Iterator[UnitOfWork]:
    """
    Open a transaction (or a savepoint when nested) and yield a
    ``UnitOfWork``.

    Args:
        lock_key: If given, the invariant lock for this key is acquired
                  before the body runs and held until the transaction ends.
        using:    Database alias.
        metadata: Default outbox metadata for every ``emit`` call.

    Raises:
        ConcurrencyTimeout: If ``lock_key`` could not be locked in time, or
                            the database refused to start the transaction
                            within ``INVARIANT_LOCK_TIMEOUT_MS``.
        Any exception raised by the body — the transaction is rolled back.
    """
    with ExitStack() as stack:
        _begin(stack, using, lock_key)
        uow = UnitOfWork(using=using, metadata=metadata)
        if lock_key is not None:
            uow.lock(lock_key)
        yield uow


def _begin(stack: ExitStack, using: str, lock_key: str | None) -> None:
    """
    Enter ``transaction.atomic()`` on ``stack``.

    SQLite in ``IMMEDIATE`` mode takes the database write lock at
    ``BEGIN``, so a competing writer waits there rather than in
    ``acquire_invariant_lock``.  That wait is bounded the same way.
    """
    connection = transaction.get_connection(using)
    outermost = not connection.in_atomic_block
    timeout_ms = getattr(settings, "INVARIANT_LOCK_TIMEOUT_MS", LOCK_TIMEOUT_MS)
    if outermost:
        bound_begin_wait(connection, timeout_ms)
    try:
        stack.enter_context(transaction.atomic(using=using))
    except OperationalError as exc:
        if not outermost:
            raise
        key = lock_key or f"transaction:{using}"
        logger.warning("Transaction for %r not started within %dms: %s", key, timeout_ms, exc)
        raise ConcurrencyTimeout(
            f"Could not acquire the lock for '{key}' within {timeout_ms}ms; please retry.",
            key=key,
        ) from exc


def lock_for_update(model_class: type[M], pk: Any, *, label: str | None = None) -> M:
    """
    Acquire a row-level lock on the given model instance.

    Convenience wrapper around ``select_for_update().get(pk=pk)``
    that must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        label:       Human-readable entity name for the error message.

    Returns:
        The locked model instance.

    Raises:
        NotFound: If no row with that PK exists.
    """
    try:
        return model_class.objects.select_for_update().get(pk=pk)
    except (model_class.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"{label or model_class.__name__} with id {pk} not found.")
