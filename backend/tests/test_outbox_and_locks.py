"""
Tests for the consistency substrate in ``core.domain``: the outbox
writer, the unit of work with its post-commit hooks, and the
transaction-scoped invariant lock.
"""

from __future__ import annotations

from unittest import mock

import pytest
from django.db import transaction

from core.domain.exceptions import ConcurrencyTimeout, NotFound
from core.domain.locks import acquire_invariant_lock, advisory_lock_id, lock_key
from core.domain.outbox import AggregateType, EventType, OutboxService
from core.domain.transactions import lock_for_update, unit_of_work
from core.models import InvariantLock, OutboxEvent


def _emit_sample(uow, aggregate_id=1):
    return uow.emit(
        aggregate_type=AggregateType.PRODUCT_DRAFT,
        aggregate_id=aggregate_id,
        event_type=EventType.DRAFT_SUBMITTED,
        payload={"draftId": str(aggregate_id)},
    )


# ════════════════════════════════════════════════════════════════════
#  Outbox
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestOutbox:

    def test_emit_stores_row_with_metadata(self):
        with unit_of_work(metadata={"actorId": "7"}) as uow:
            event = _emit_sample(uow, aggregate_id=12)

        stored = OutboxEvent.objects.get(pk=event.pk)
        assert stored.aggregate_type == "ProductDraft"
        assert stored.aggregate_id == "12"
        assert stored.event_type == "product.draft_submitted"
        assert stored.payload == {"draftId": "12"}
        assert stored.metadata == {"actorId": "7"}
        assert stored.dispatched_at is None

    def test_fault_before_commit_discards_event(self):
        with pytest.raises(RuntimeError):
            with unit_of_work() as uow:
                _emit_sample(uow)
                raise RuntimeError("injected fault")

        assert OutboxEvent.objects.count() == 0

    def test_events_are_ordered_by_id_per_aggregate(self):
        with unit_of_work() as uow:
            first = _emit_sample(uow, aggregate_id=3)
            second = _emit_sample(uow, aggregate_id=3)

        ids = list(
            OutboxEvent.objects
            .filter(aggregate_type=AggregateType.PRODUCT_DRAFT, aggregate_id="3")
            .values_list("id", flat=True)
        )
        assert ids == [first.pk, second.pk]
        assert first.pk < second.pk

    def test_to_wire_uses_camel_case_keys(self):
        with unit_of_work() as uow:
            event = _emit_sample(uow)
        wire = OutboxEvent.objects.get(pk=event.pk).to_wire()
        assert set(wire) == {
            "id", "aggregateType", "aggregateId", "eventType",
            "payload", "metadata", "createdAt", "dispatchedAt",
        }


@pytest.mark.django_db(transaction=True)
def test_append_outside_transaction_is_refused():
    with pytest.raises(transaction.TransactionManagementError):
        OutboxService.append(
            aggregate_type=AggregateType.ADDRESS,
            aggregate_id=1,
            event_type=EventType.ADDRESS_CREATED,
            payload={},
        )
    assert OutboxEvent.objects.count() == 0


# ════════════════════════════════════════════════════════════════════
#  Post-commit hooks
# ════════════════════════════════════════════════════════════════════

@pytest.mark.django_db
class TestAfterCommit:

    def test_hook_runs_after_commit(self, django_capture_on_commit_callbacks):
        hook = mock.Mock()
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with unit_of_work() as uow:
                uow.after_commit(hook, "seller-1", kind="approved")
                hook.assert_not_called()

        assert len(callbacks) == 1
        hook.assert_called_once_with("seller-1", kind="approved")

    def test_hook_failure_does_not_propagate(self, django_capture_on_commit_callbacks, caplog):
        hook = mock.Mock(side_effect=ConnectionError("notification service down"))
        with django_capture_on_commit_callbacks(execute=True):
            with unit_of_work() as uow:
                _emit_sample(uow)
                uow.after_commit(hook)

        hook.assert_called_once()
        assert OutboxEvent.objects.count() == 1
        assert "Post-commit hook" in caplog.text

    def test_hook_discarded_on_rollback(self, django_capture_on_commit_callbacks):
        hook = mock.Mock()
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(RuntimeError):
                with unit_of_work() as uow:
                    uow.after_commit(hook)
                    raise RuntimeError("injected fault")

        assert callbacks == []
        hook.assert_not_called()


# ════════════════════════════════════════════════════════════════════
#  Invariant lock
# ════════════════════════════════════════════════════════════════════

class TestLockKeys:

    def test_lock_key_format(self):
        assert lock_key("address-default", 42) == "address-default:42"

    def test_advisory_lock_id_is_stable_signed_64_bit(self):
        first = advisory_lock_id("address-default:42")
        assert first == advisory_lock_id("address-default:42")
        assert first != advisory_lock_id("address-default:43")
        assert -(2 ** 63) <= first < 2 ** 63


@pytest.mark.django_db
class TestInvariantLock:

    def test_row_lock_is_created_once(self):
        with transaction.atomic():
            acquire_invariant_lock("address-default:1")
        with transaction.atomic():
            acquire_invariant_lock("address-default:1")

        lock = InvariantLock.objects.get(key="address-default:1")
        assert lock.acquired_at is not None
        assert InvariantLock.objects.count() == 1

    def test_unit_of_work_takes_lock(self):
        with unit_of_work(lock_key="address-default:9"):
            pass
        assert InvariantLock.objects.filter(key="address-default:9").exists()

    def test_lock_for_update_missing_row(self):
        with transaction.atomic():
            with pytest.raises(NotFound):
                lock_for_update(InvariantLock, 999999, label="Lock")


@pytest.mark.django_db(transaction=True)
def test_contended_lock_times_out_and_writes_nothing(settings, hold_invariant_lock):
    settings.INVARIANT_LOCK_TIMEOUT_MS = 200

    with hold_invariant_lock("address-default:5"):
        with pytest.raises(ConcurrencyTimeout) as exc_info:
            with unit_of_work(lock_key="address-default:5") as uow:
                _emit_sample(uow)

    assert exc_info.value.key == "address-default:5"
    assert OutboxEvent.objects.count() == 0


@pytest.mark.django_db(transaction=True)
def test_lock_is_free_again_after_holder_commits(settings, hold_invariant_lock):
    settings.INVARIANT_LOCK_TIMEOUT_MS = 200

    with hold_invariant_lock("address-default:6"):
        pass

    with unit_of_work(lock_key="address-default:6") as uow:
        _emit_sample(uow)
    assert OutboxEvent.objects.count() == 1


@pytest.mark.django_db(transaction=True)
def test_lock_outside_transaction_is_refused():
    with pytest.raises(transaction.TransactionManagementError):
        acquire_invariant_lock("address-default:1")
