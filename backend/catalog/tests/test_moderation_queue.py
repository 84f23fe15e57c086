"""
Tests for the moderation queue read side, priority overrides, the
escalation sweep and the ``escalate_moderation_queue`` command.
"""

from __future__ import annotations

from datetime import timedelta
from io import StringIO
from unittest import mock

import pytest
from django.core.management import CommandError, call_command
from django.utils import timezone

from catalog.models import ModerationPriority, ModerationQueueItem
from catalog.services import DraftService, ModerationQueueService, ModerationService
from core.domain.exceptions import DomainError, InvalidTransition, NotFound
from core.domain.transactions import unit_of_work

OWNER = "seller-1"


@pytest.fixture()
def submit(db, category, draft_payload):
    """Factory: create and submit a draft, returning its open queue item."""

    def _submit(name: str = "Linen Shirt") -> ModerationQueueItem:
        draft = DraftService.create_draft(OWNER, category.pk, {**draft_payload, "name": name})
        DraftService.submit_for_review(draft.pk, OWNER)
        return ModerationQueueItem.objects.get(draft=draft, completed_at__isnull=True)

    return _submit


def _age(item: ModerationQueueItem, hours: float) -> None:
    ModerationQueueItem.objects.filter(pk=item.pk).update(
        created_at=timezone.now() - timedelta(hours=hours),
    )


def _moderation() -> ModerationService:
    return ModerationService(seller_client=mock.Mock(), notification_client=mock.Mock())


@pytest.mark.django_db
class TestQueueReads:

    def test_pending_queue_orders_by_priority_then_age(self, submit):
        oldest_normal = submit("Oldest")
        urgent = submit("Urgent")
        newer_normal = submit("Newer")
        low = submit("Low")
        _age(oldest_normal, 3)
        _age(urgent, 1)
        _age(newer_normal, 2)
        _age(low, 5)
        ModerationQueueService.update_priority(urgent.draft_id, ModerationPriority.URGENT)
        ModerationQueueService.update_priority(low.draft_id, ModerationPriority.LOW)

        queue = ModerationQueueService.pending_queue()
        assert [item.pk for item in queue] == [urgent.pk, oldest_normal.pk, newer_normal.pk, low.pk]

    def test_pending_queue_pagination(self, submit):
        items = [submit(f"Item {i}") for i in range(3)]
        for hours, item in zip((3, 2, 1), items):
            _age(item, hours)
        page = ModerationQueueService.pending_queue(limit=1, offset=1)
        assert [item.pk for item in page] == [items[1].pk]

    def test_closed_items_leave_the_queue(self, submit):
        item = submit()
        _moderation().reject(item.draft_id, "mod-1", "Nope.")
        assert ModerationQueueService.pending_queue() == []

    def test_assigned_to(self, submit):
        mine = submit("Mine")
        submit("Unclaimed")
        ModerationService.assign(mine.draft_id, "mod-1")

        assert [i.pk for i in ModerationQueueService.assigned_to("mod-1")] == [mine.pk]

        _moderation().approve(mine.draft_id, "mod-1")
        assert list(ModerationQueueService.assigned_to("mod-1")) == []
        assert [i.pk for i in ModerationQueueService.assigned_to("mod-1", include_completed=True)] == [mine.pk]

    def test_item_for_draft_prefers_open_item(self, submit):
        item = submit()
        _moderation().request_changes(item.draft_id, "mod-1", "Fix the title.")
        closed = ModerationQueueService.item_for_draft(item.draft_id)
        assert closed.pk == item.pk
        assert closed.completed_at is not None

        DraftService.submit_for_review(item.draft_id, OWNER)
        current = ModerationQueueService.item_for_draft(item.draft_id)
        assert current.pk != item.pk
        assert current.is_open

    def test_item_for_draft_missing(self):
        with pytest.raises(NotFound):
            ModerationQueueService.item_for_draft(123456)

    def test_stats(self, submit):
        assigned = submit("A")
        submit("B")
        done = submit("C")
        ModerationService.assign(assigned.draft_id, "mod-1")
        ModerationQueueService.update_priority(assigned.draft_id, ModerationPriority.HIGH)
        _moderation().reject(done.draft_id, "mod-1", "Duplicate.")

        stats = ModerationQueueService.stats()
        assert stats["total"] == 3
        assert stats["pending"] == 1
        assert stats["assigned"] == 1
        assert stats["completed"] == 1
        assert stats["by_priority"] == {"low": 0, "normal": 1, "high": 1, "urgent": 0}


@pytest.mark.django_db
class TestPriority:

    def test_unknown_priority(self, submit):
        item = submit()
        with pytest.raises(DomainError):
            ModerationQueueService.update_priority(item.draft_id, "critical")

    def test_priority_change_runs_in_a_unit_of_work(self, submit):
        item = submit()
        with mock.patch("catalog.services.unit_of_work", wraps=unit_of_work) as uow:
            ModerationQueueService.update_priority(item.draft_id, ModerationPriority.URGENT)
        uow.assert_called_once_with()
        item.refresh_from_db()
        assert item.priority == ModerationPriority.URGENT

    def test_priority_needs_open_item(self, submit):
        item = submit()
        _moderation().reject(item.draft_id, "mod-1", "Nope.")
        with pytest.raises(InvalidTransition):
            ModerationQueueService.update_priority(item.draft_id, ModerationPriority.HIGH)


@pytest.mark.django_db
class TestEscalation:

    def test_escalates_only_stale_unassigned_low_and_normal(self, submit):
        stale_normal = submit("Stale normal")
        stale_low = submit("Stale low")
        stale_assigned = submit("Stale assigned")
        stale_urgent = submit("Stale urgent")
        fresh = submit("Fresh")
        ModerationQueueService.update_priority(stale_low.draft_id, ModerationPriority.LOW)
        ModerationQueueService.update_priority(stale_urgent.draft_id, ModerationPriority.URGENT)
        ModerationService.assign(stale_assigned.draft_id, "mod-1")
        for item in (stale_normal, stale_low, stale_assigned, stale_urgent):
            _age(item, 30)

        assert ModerationQueueService.escalate_stale(24) == 2

        priorities = dict(ModerationQueueItem.objects.values_list("pk", "priority"))
        assert priorities[stale_normal.pk] == ModerationPriority.HIGH
        assert priorities[stale_low.pk] == ModerationPriority.HIGH
        assert priorities[stale_assigned.pk] == ModerationPriority.NORMAL
        assert priorities[stale_urgent.pk] == ModerationPriority.URGENT
        assert priorities[fresh.pk] == ModerationPriority.NORMAL

    def test_escalation_runs_in_a_unit_of_work(self, submit):
        _age(submit(), 30)
        with mock.patch("catalog.services.unit_of_work", wraps=unit_of_work) as uow:
            assert ModerationQueueService.escalate_stale(24) == 1
        uow.assert_called_once_with()

    def test_escalation_is_idempotent(self, submit):
        _age(submit(), 30)
        assert ModerationQueueService.escalate_stale(24) == 1
        assert ModerationQueueService.escalate_stale(24) == 0

    def test_default_cutoff_follows_settings(self, submit, settings):
        settings.MODERATION_ESCALATION_AGE_HOURS = 1
        _age(submit(), 2)
        assert ModerationQueueService.escalate_stale() == 1

    def test_management_command(self, submit):
        _age(submit(), 30)
        out = StringIO()
        call_command("escalate_moderation_queue", "--older-than-hours", "24", stdout=out)
        assert "Escalated 1 queue item(s)." in out.getvalue()

    def test_management_command_rejects_negative_age(self):
        with pytest.raises(CommandError):
            call_command("escalate_moderation_queue", "--older-than-hours", "-1")
