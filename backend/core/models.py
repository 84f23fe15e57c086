"""
Core app models.

Provides the abstract timestamped base model plus the two tables that
form the consistency substrate shared by every app:

* ``OutboxEvent``   — append-only transactional outbox.
* ``InvariantLock`` — lock rows used by the invariant lock on database
  backends without transaction-scoped advisory locks.
"""

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class OutboxEvent(models.Model):
    """
    A domain event written in the same transaction as the state change
    that caused it.

    Rows are never mutated by this codebase after insertion.  The
    external relay owns ``dispatched_at`` and delivers each row
    at-least-once, so consumers must be idempotent.

    The auto-incrementing primary key doubles as the per-aggregate
    ordering key: writes touching one aggregate are serialised by a row
    lock or an invariant lock, so ids follow commit order per aggregate.
    """

    aggregate_type = models.CharField(
        max_length=64,
        verbose_name="Aggregate Type",
    )
    aggregate_id = models.CharField(
        max_length=64,
        verbose_name="Aggregate ID",
    )
    event_type = models.CharField(
        max_length=100,
        db_index=True,
        verbose_name="Event Type",
        help_text="Stable identifier, e.g. 'product.approved'. Renaming is a breaking change.",
    )
    payload = models.JSONField(
        encoder=DjangoJSONEncoder,
        verbose_name="Payload",
    )
    metadata = models.JSONField(
        encoder=DjangoJSONEncoder,
        null=True,
        blank=True,
        verbose_name="Metadata",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    dispatched_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Dispatched At",
        help_text="Set by the external relay only.",
    )

    class Meta:
        verbose_name = "Outbox Event"
        verbose_name_plural = "Outbox Events"
        ordering = ["id"]
        indexes = [
            models.Index(fields=["aggregate_type", "aggregate_id", "id"], name="outbox_aggregate_idx"),
            models.Index(
                fields=["id"],
                name="outbox_undispatched_idx",
                condition=models.Q(dispatched_at__isnull=True),
            ),
        ]

    def __str__(self):
        return f"{self.event_type} [{self.aggregate_type}:{self.aggregate_id}]"

    def to_wire(self) -> dict:
        """Return the stable wire representation consumed by the relay."""
        return {
            "id": self.pk,
            "aggregateType": self.aggregate_type,
            "aggregateId": self.aggregate_id,
            "eventType": self.event_type,
            "payload": self.payload,
            "metadata": self.metadata,
            "createdAt": self.created_at,
            "dispatchedAt": self.dispatched_at,
        }


class InvariantLock(models.Model):
    """
    One row per semantic lock key (e.g. ``address-default:42``).

    Updating the row inside a transaction holds a write lock on it until
    the transaction ends, which is how the invariant lock serialises
    writers on backends that lack ``pg_advisory_xact_lock``.
    """

    key = models.CharField(
        max_length=191,
        unique=True,
        verbose_name="Lock Key",
    )
    acquired_at = models.DateTimeField(
        null=True,
        blank=True,
        verbose_name="Last Acquired At",
    )

    class Meta:
        verbose_name = "Invariant Lock"
        verbose_name_plural = "Invariant Locks"

    def __str__(self):
        return self.key
