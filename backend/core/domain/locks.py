"""
core.domain.locks — Transaction-scoped invariant lock.

Serialises mutations that could otherwise race and break a cross-row
invariant scoped to a semantic key (for example "exactly one default
address per owner").  The lock is acquired inside the caller's
transaction and released automatically when that transaction commits
or rolls back; it is never held outside a transaction's lifetime.

Strategies
----------
* **PostgreSQL** — ``pg_advisory_xact_lock(bigint)`` on a 64-bit hash of
  the key, bounded by ``SET LOCAL lock_timeout``.
* **Other backends** — a row in ``core.InvariantLock`` is created on
  first use and then updated; the update holds the row's write lock
  until the transaction ends (SQLite serialises the whole transaction,
  MySQL/InnoDB locks the row).  In ``IMMEDIATE`` mode SQLite takes its
  write lock at ``BEGIN``; ``bound_begin_wait`` caps that wait with
  ``PRAGMA busy_timeout``.

Usage::

    from django.db import transaction
    from core.domain.locks import acquire_invariant_lock

    with transaction.atomic():
        acquire_invariant_lock(f"address-default:{owner_id}")
        ...  # read-modify-write guarded by the lock
"""

from __future__ import annotations

import hashlib
import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, OperationalError, transaction
from django.utils import timezone

from core.constants import LOCK_TIMEOUT_MS
from core.domain.exceptions import ConcurrencyTimeout

logger = logging.getLogger(__name__)


def lock_key(namespace: str, value: object) -> str:
    """Build a semantic lock key such as ``address-default:42``."""
    return f"{namespace}:{value}"


def advisory_lock_id(key: str) -> int:
    """
    Map a semantic key onto the signed 64-bit id space used by
    PostgreSQL advisory locks.
    """
    digest = hashlib.blake2b(key.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


def acquire_invariant_lock(
    key: str,
    *,
    using: str = DEFAULT_DB_ALIAS,
    timeout_ms: int | None = None,
) -> None:
    """
    Block until the invariant lock for ``key`` is held by the current
    transaction.

    Args:
        key:        Semantic lock key (see ``lock_key``).
        using:      Database alias.
        timeout_ms: Upper bound on the wait.  Defaults to
                    ``settings.INVARIANT_LOCK_TIMEOUT_MS``.

    Raises:
        django.db.transaction.TransactionManagementError:
            If called outside ``transaction.atomic()``.
        ConcurrencyTimeout:
            If the lock was not acquired within the bound.  The caller's
            transaction must be (and, by propagation, will be) rolled back.
    """
    connection = transaction.get_connection(using)
    if not connection.in_atomic_block:
        raise transaction.TransactionManagementError(
            "The invariant lock can only be acquired inside a transaction."
        )

    if timeout_ms is None:
        timeout_ms = getattr(settings, "INVARIANT_LOCK_TIMEOUT_MS", LOCK_TIMEOUT_MS)

    try:
        if connection.vendor == "postgresql":
            _acquire_advisory_lock(connection, key, timeout_ms)
        else:
            _acquire_row_lock(key, using)
    except OperationalError as exc:
        logger.warning("Invariant lock %r not acquired within %dms: %s", key, timeout_ms, exc)
        raise ConcurrencyTimeout(
            f"Could not acquire the lock for '{key}' within {timeout_ms}ms; please retry.",
            key=key,
        ) from exc

    logger.debug("Invariant lock %r acquired", key)


def _acquire_advisory_lock(connection, key: str, timeout_ms: int) -> None:
    with connection.cursor() as cursor:
        cursor.execute(f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'")
        cursor.execute("SELECT pg_advisory_xact_lock(%s)", [advisory_lock_id(key)])
        cursor.execute("SET LOCAL lock_timeout = DEFAULT")


def _acquire_row_lock(key: str, using: str) -> None:
    from core.models import InvariantLock

    InvariantLock.objects.using(using).get_or_create(key=key)
    InvariantLock.objects.using(using).filter(key=key).update(acquired_at=timezone.now())


def bound_begin_wait(connection, timeout_ms: int) -> None:
    """
    Cap how long SQLite waits for the database write lock when a
    transaction begins.  A no-op on other backends, whose transactions
    start without taking locks.
    """
    if connection.vendor != "sqlite":
        return
    with connection.cursor() as cursor:
        cursor.execute(f"PRAGMA busy_timeout = {int(timeout_ms)}")
