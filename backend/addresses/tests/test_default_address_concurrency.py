"""
Concurrency tests: racing writers for one owner must still leave exactly
one default address.

These run with real transactions (``transaction=True``) and one database
connection per thread.
"""

from __future__ import annotations

import threading

import pytest
from django.db import connection

from addresses.models import Address
from addresses.services import AddressService, address_defaults
from core.domain.exceptions import ConcurrencyTimeout

OWNER = "customer-race"


def _data(label: str) -> dict:
    return {
        "label": label,
        "recipient_name": "Race Tester",
        "phone_number": "09120000000",
        "province": "Tehran",
        "city": "Tehran",
        "postal_code": "1234567890",
        "address_line": f"{label} street",
    }


def _run_concurrently(*calls):
    """Start every call behind a barrier; return the exceptions raised."""
    barrier = threading.Barrier(len(calls))
    errors: list[Exception] = []

    def worker(fn, args):
        try:
            barrier.wait(timeout=10)
            fn(*args)
        except Exception as exc:
            errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=call) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return errors


@pytest.mark.django_db(transaction=True)
def test_concurrent_set_default_leaves_one_default():
    addresses = [AddressService.create_address(OWNER, _data(f"A{i}")) for i in range(4)]

    errors = _run_concurrently(
        *[(AddressService.set_default, (address.pk, OWNER)) for address in addresses]
    )

    assert errors == []
    assert Address.objects.filter(owner_id=OWNER, is_default=True).count() == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_first_creates_leave_one_default():
    errors = _run_concurrently(
        *[(AddressService.create_address, (OWNER, _data(f"B{i}"))) for i in range(4)]
    )

    assert errors == []
    assert Address.objects.filter(owner_id=OWNER).count() == 4
    assert Address.objects.filter(owner_id=OWNER, is_default=True).count() == 1


@pytest.mark.django_db(transaction=True)
def test_concurrent_delete_and_set_default():
    home = AddressService.create_address(OWNER, _data("Home"))
    office = AddressService.create_address(OWNER, _data("Office"))
    gym = AddressService.create_address(OWNER, _data("Gym"))

    errors = _run_concurrently(
        (AddressService.delete_address, (home.pk, OWNER)),
        (AddressService.set_default, (office.pk, OWNER)),
        (AddressService.set_default, (gym.pk, OWNER)),
    )

    assert errors == []
    assert not Address.objects.filter(pk=home.pk).exists()
    assert Address.objects.filter(owner_id=OWNER, is_default=True).count() == 1


@pytest.mark.django_db(transaction=True)
def test_writer_waiting_on_busy_owner_times_out(settings, hold_invariant_lock):
    settings.INVARIANT_LOCK_TIMEOUT_MS = 200
    home = AddressService.create_address(OWNER, _data("Home"))
    office = AddressService.create_address(OWNER, _data("Office"))
    key = address_defaults.lock_key(OWNER)

    with hold_invariant_lock(key):
        with pytest.raises(ConcurrencyTimeout) as exc_info:
            AddressService.set_default(office.pk, OWNER)
        with pytest.raises(ConcurrencyTimeout):
            AddressService.delete_address(home.pk, OWNER)
        with pytest.raises(ConcurrencyTimeout):
            AddressService.mark_used(office.pk, OWNER)

    assert exc_info.value.key == key
    assert Address.objects.filter(owner_id=OWNER).count() == 2
    assert Address.objects.get(pk=home.pk).is_default
    assert Address.objects.get(pk=office.pk).last_used_at is None
