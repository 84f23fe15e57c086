"""
Service-level tests for the one-default-address-per-owner rule.
"""

from __future__ import annotations

import random
from datetime import timedelta

import pytest
from django.utils import timezone

from addresses.models import Address
from addresses.services import AddressService, address_defaults
from core.domain.defaults import ExplicitReplacement, MostRecentlyUsed
from core.domain.exceptions import DomainError, NotFound, PermissionDenied
from core.domain.outbox import AggregateType, EventType
from core.models import OutboxEvent

OWNER = "customer-1"


def _data(label: str) -> dict:
    return {
        "label": label,
        "recipient_name": "Sara Ahmadi",
        "phone_number": "+989121234567",
        "province": "Tehran",
        "city": "Tehran",
        "postal_code": "1234567890",
        "address_line": f"{label} street, No. 5",
    }


def _defaults(owner_id: str = OWNER) -> list[int]:
    return list(Address.objects.filter(owner_id=owner_id, is_default=True).values_list("pk", flat=True))


def _assert_invariant(owner_id: str = OWNER) -> None:
    count = Address.objects.filter(owner_id=owner_id).count()
    assert len(_defaults(owner_id)) == (1 if count else 0)


@pytest.mark.django_db
class TestCreate:

    def test_first_address_becomes_default(self):
        address = AddressService.create_address(OWNER, _data("Home"))
        assert address.is_default
        _assert_invariant()

    def test_later_address_is_not_default_unless_requested(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))
        assert not office.is_default
        assert _defaults() == [home.pk]

        gym = AddressService.create_address(OWNER, _data("Gym"), is_default=True)
        assert _defaults() == [gym.pk]
        _assert_invariant()

    def test_owners_are_independent(self):
        AddressService.create_address(OWNER, _data("Home"))
        other = AddressService.create_address("customer-2", _data("Home"))
        assert other.is_default
        _assert_invariant()
        _assert_invariant("customer-2")

    def test_create_emits_event(self):
        address = AddressService.create_address(OWNER, _data("Home"))
        event = OutboxEvent.objects.get(event_type=EventType.ADDRESS_CREATED)
        assert event.aggregate_type == AggregateType.ADDRESS
        assert event.aggregate_id == str(address.pk)
        assert event.payload["userId"] == OWNER
        assert event.payload["isDefault"] is True


@pytest.mark.django_db
class TestSetDefault:

    def test_set_default_moves_flag(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))

        result = AddressService.set_default(office.pk, OWNER)
        assert result.is_default
        assert _defaults() == [office.pk]
        home.refresh_from_db()
        assert not home.is_default
        assert OutboxEvent.objects.filter(event_type=EventType.ADDRESS_SET_DEFAULT).count() == 1

    def test_set_default_is_idempotent(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        AddressService.set_default(home.pk, OWNER)
        AddressService.set_default(home.pk, OWNER)
        assert _defaults() == [home.pk]

    def test_other_owner_is_refused(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        AddressService.create_address("customer-2", _data("Home"))
        with pytest.raises(PermissionDenied):
            AddressService.set_default(home.pk, "customer-2")
        assert _defaults() == [home.pk]

    def test_unknown_address(self):
        with pytest.raises(NotFound):
            AddressService.set_default(987654, OWNER)

    def test_get_default(self):
        with pytest.raises(NotFound):
            AddressService.get_default(OWNER)
        home = AddressService.create_address(OWNER, _data("Home"))
        assert AddressService.get_default(OWNER).pk == home.pk


@pytest.mark.django_db
class TestUpdate:

    def test_update_fields(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        updated = AddressService.update_address(home.pk, OWNER, {"city": "Shiraz"})
        assert updated.city == "Shiraz"
        assert OutboxEvent.objects.filter(event_type=EventType.ADDRESS_UPDATED).count() == 1

    def test_update_can_make_default(self):
        AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))
        AddressService.update_address(office.pk, OWNER, {"is_default": True, "notes": "Ring twice"})
        assert _defaults() == [office.pk]
        assert list(
            OutboxEvent.objects.filter(aggregate_id=str(office.pk)).values_list("event_type", flat=True)
        ) == [EventType.ADDRESS_CREATED, EventType.ADDRESS_SET_DEFAULT, EventType.ADDRESS_UPDATED]

    def test_unsetting_current_default_is_refused(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        with pytest.raises(DomainError):
            AddressService.update_address(home.pk, OWNER, {"is_default": False, "city": "Karaj"})
        home.refresh_from_db()
        assert home.is_default
        assert home.city == "Tehran"


@pytest.mark.django_db
class TestDelete:

    def test_only_address_cannot_be_deleted(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        with pytest.raises(DomainError, match="only address"):
            AddressService.delete_address(home.pk, OWNER)
        assert Address.objects.filter(pk=home.pk).exists()

    def test_deleting_non_default_keeps_default(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))
        assert AddressService.delete_address(office.pk, OWNER) is None
        assert _defaults() == [home.pk]

    def test_deleting_default_promotes_most_recently_used(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))
        gym = AddressService.create_address(OWNER, _data("Gym"))
        now = timezone.now()
        Address.objects.filter(pk=office.pk).update(last_used_at=now - timedelta(days=1))
        Address.objects.filter(pk=gym.pk).update(last_used_at=now - timedelta(days=3))

        promoted = AddressService.delete_address(home.pk, OWNER)
        assert promoted.pk == office.pk
        assert _defaults() == [office.pk]

        deleted_event = OutboxEvent.objects.get(event_type=EventType.ADDRESS_DELETED)
        assert deleted_event.aggregate_id == str(home.pk)
        promoted_event = OutboxEvent.objects.filter(event_type=EventType.ADDRESS_SET_DEFAULT).get()
        assert promoted_event.aggregate_id == str(office.pk)
        assert deleted_event.pk < promoted_event.pk

    def test_never_used_addresses_fall_back_to_newest(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        AddressService.create_address(OWNER, _data("Office"))
        newest = AddressService.create_address(OWNER, _data("Gym"))
        promoted = AddressService.delete_address(home.pk, OWNER)
        assert promoted.pk == newest.pk

    def test_explicit_replacement(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))
        AddressService.create_address(OWNER, _data("Gym"))

        promoted = AddressService.delete_address(home.pk, OWNER, replacement_id=office.pk)
        assert promoted.pk == office.pk
        assert _defaults() == [office.pk]

    def test_invalid_replacement_rolls_back(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        AddressService.create_address(OWNER, _data("Office"))
        foreign = AddressService.create_address("customer-2", _data("Home"))

        with pytest.raises(DomainError):
            AddressService.delete_address(home.pk, OWNER, replacement_id=foreign.pk)
        assert Address.objects.filter(pk=home.pk).exists()
        assert _defaults() == [home.pk]
        assert not OutboxEvent.objects.filter(event_type=EventType.ADDRESS_DELETED).exists()

    def test_replacement_for_non_default_is_rejected(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        office = AddressService.create_address(OWNER, _data("Office"))
        gym = AddressService.create_address(OWNER, _data("Gym"))

        with pytest.raises(DomainError, match="not the default"):
            AddressService.delete_address(office.pk, OWNER, replacement_id=gym.pk)
        assert Address.objects.filter(pk=office.pk).exists()
        assert _defaults() == [home.pk]

    def test_enforcer_can_delete_last_row_when_allowed(self):
        home = AddressService.create_address(OWNER, _data("Home"))
        deleted, promoted = address_defaults.delete_with_reassignment(
            OWNER, home.pk, MostRecentlyUsed(), allow_last=True,
        )
        assert deleted.pk == home.pk
        assert promoted is None
        _assert_invariant()


@pytest.mark.django_db
def test_mark_used_feeds_replacement_policy():
    home = AddressService.create_address(OWNER, _data("Home"))
    office = AddressService.create_address(OWNER, _data("Office"))
    AddressService.create_address(OWNER, _data("Gym"))
    AddressService.mark_used(office.pk, OWNER)

    assert MostRecentlyUsed().choose(Address.objects.exclude(pk=home.pk)).pk == office.pk
    with pytest.raises(DomainError):
        ExplicitReplacement(home.pk).choose(Address.objects.exclude(pk=home.pk))


@pytest.mark.django_db
def test_default_invariant_over_random_operation_sequences():
    rng = random.Random(1234)
    owners = ["customer-a", "customer-b"]

    for step in range(60):
        owner = rng.choice(owners)
        ids = list(Address.objects.filter(owner_id=owner).values_list("pk", flat=True))
        op = rng.choice(["create", "create_default", "set_default", "delete", "delete_replace"])

        if op.startswith("create") or not ids:
            AddressService.create_address(owner, _data(f"A{step}"), is_default=op == "create_default")
        elif op == "set_default":
            AddressService.set_default(rng.choice(ids), owner)
        elif len(ids) > 1:
            if op == "delete_replace":
                target = Address.objects.get(owner_id=owner, is_default=True).pk
                replacement = rng.choice([i for i in ids if i != target])
            else:
                target, replacement = rng.choice(ids), None
            AddressService.delete_address(target, owner, replacement_id=replacement)

        for checked in owners:
            _assert_invariant(checked)
