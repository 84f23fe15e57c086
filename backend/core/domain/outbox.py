"""
core.domain.outbox — Write side of the transactional outbox.

Domain events are appended to ``core.OutboxEvent`` in the *same*
transaction as the state change that caused them, which removes the
dual-write hazard: if the transaction commits, the event is durable and
will be relayed at-least-once; if it rolls back, neither the mutation
nor the event exists.

No code in this repository publishes events through any other channel,
and nothing here dispatches rows: a separate relay reads undispatched
rows in primary-key order and owns ``dispatched_at``.

Usage::

    from core.domain.outbox import EventType, OutboxService

    with transaction.atomic():
        draft.save(...)
        OutboxService.append(
            aggregate_type="ProductDraft",
            aggregate_id=draft.pk,
            event_type=EventType.DRAFT_SUBMITTED,
            payload={"draftId": draft.pk, ...},
        )
"""

from __future__ import annotations

import logging
from typing import Any

from django.db import DEFAULT_DB_ALIAS, transaction

logger = logging.getLogger(__name__)


class EventType:
    """
    Stable event-type identifiers.  Downstream consumers key on these
    strings; renaming one is a breaking change.
    """

    DRAFT_SUBMITTED = "product.draft_submitted"
    PRODUCT_APPROVED = "product.approved"
    PRODUCT_CREATED = "product.created"
    PRODUCT_REJECTED = "product.rejected"
    CHANGES_REQUESTED = "product.changes_requested"

    ADDRESS_CREATED = "address.created"
    ADDRESS_UPDATED = "address.updated"
    ADDRESS_SET_DEFAULT = "address.set_default"
    ADDRESS_DELETED = "address.deleted"

    @classmethod
    def all(cls) -> list[str]:
        return [
            value for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, str)
        ]


class AggregateType:
    PRODUCT_DRAFT = "ProductDraft"
    PRODUCT = "Product"
    ADDRESS = "Address"


class OutboxService:
    """
    Stateless helper for appending outbox rows.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def append(
        cls,
        *,
        aggregate_type: str,
        aggregate_id: Any,
        event_type: str,
        payload: dict[str, Any],
        metadata: dict[str, Any] | None = None,
        using: str = DEFAULT_DB_ALIAS,
    ):
        """
        Append one event to the outbox.

        Must run inside ``transaction.atomic()`` so the row commits or
        rolls back together with the mutation it describes.

        Args:
            aggregate_type: e.g. ``"ProductDraft"``.
            aggregate_id:   Primary key of the aggregate (stored as text).
            event_type:     One of ``EventType``.
            payload:        JSON-serialisable event body (camelCase keys).
            metadata:       Optional JSON-serialisable envelope data.
            using:          Database alias.

        Returns:
            The created ``OutboxEvent``.

        Raises:
            django.db.transaction.TransactionManagementError:
                If called outside a transaction.
        """
        from core.models import OutboxEvent  # lazy import — avoids app-loading cycles

        if not transaction.get_connection(using).in_atomic_block:
            raise transaction.TransactionManagementError(
                f"Outbox event {event_type!r} must be appended inside a transaction."
            )

        event = OutboxEvent.objects.using(using).create(
            aggregate_type=aggregate_type,
            aggregate_id=str(aggregate_id),
            event_type=event_type,
            payload=payload,
            metadata=metadata,
        )
        logger.debug(
            "Outbox append #%s %s [%s:%s]",
            event.pk, event_type, aggregate_type, aggregate_id,
        )
        return event
