"""
Endpoint tests for ``/api/addresses/``.
"""

from __future__ import annotations

import pytest
from django.urls import reverse
from rest_framework import status

from addresses.models import Address
from addresses.services import address_defaults
from core.domain.access import identity_of


@pytest.fixture()
def customer(create_user):
    return create_user(username="customer")


@pytest.fixture()
def api(client_for, customer):
    return client_for(customer)


def _body(label: str, **extra) -> dict:
    return {
        "label": label,
        "recipient_name": "Sara Ahmadi",
        "phone_number": "+989121234567",
        "province": "Tehran",
        "city": "Tehran",
        "postal_code": "1234567890",
        "address_line": f"{label} street, No. 5",
        **extra,
    }


def _create(api, label: str, **extra) -> dict:
    resp = api.post(reverse("address-list"), _body(label, **extra), format="json")
    assert resp.status_code == status.HTTP_201_CREATED, resp.data
    return resp.data


@pytest.mark.django_db
class TestAddressEndpoints:

    def test_create_list_and_default(self, api, customer):
        home = _create(api, "Home")
        office = _create(api, "Office")
        assert home["is_default"] is True
        assert office["is_default"] is False
        assert home["owner_id"] == identity_of(customer)

        listing = api.get(reverse("address-list"))
        assert [a["id"] for a in listing.data] == [home["id"], office["id"]]

        default = api.get(reverse("address-default"))
        assert default.data["id"] == home["id"]

    def test_create_as_default(self, api):
        _create(api, "Home")
        office = _create(api, "Office", is_default=True)
        assert office["is_default"] is True
        assert api.get(reverse("address-default")).data["id"] == office["id"]

    def test_invalid_phone_is_400(self, api):
        resp = api.post(reverse("address-list"), _body("Home", phone_number="abc"), format="json")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert "phone_number" in resp.data

    def test_no_default_is_404(self, api):
        assert api.get(reverse("address-default")).status_code == status.HTTP_404_NOT_FOUND

    def test_set_default_and_mark_used(self, api):
        _create(api, "Home")
        office = _create(api, "Office")

        resp = api.post(reverse("address-set-default", kwargs={"pk": office["id"]}), format="json")
        assert resp.status_code == status.HTTP_200_OK
        assert resp.data["is_default"] is True

        used = api.post(reverse("address-mark-used", kwargs={"pk": office["id"]}), format="json")
        assert used.data["last_used_at"] is not None

    def test_patch_cannot_unset_default(self, api):
        home = _create(api, "Home")
        resp = api.patch(
            reverse("address-detail", kwargs={"pk": home["id"]}), {"is_default": False}, format="json",
        )
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete_with_replacement(self, api):
        home = _create(api, "Home")
        office = _create(api, "Office")
        gym = _create(api, "Gym")

        url = reverse("address-detail", kwargs={"pk": home["id"]})
        resp = api.delete(f"{url}?replacement={gym['id']}")
        assert resp.status_code == status.HTTP_204_NO_CONTENT
        assert api.get(reverse("address-default")).data["id"] == gym["id"]
        assert Address.objects.filter(pk=office["id"], is_default=False).exists()

    def test_delete_non_default_with_replacement_is_400(self, api):
        home = _create(api, "Home")
        office = _create(api, "Office")
        gym = _create(api, "Gym")

        url = reverse("address-detail", kwargs={"pk": office["id"]})
        resp = api.delete(f"{url}?replacement={gym['id']}")
        assert resp.status_code == status.HTTP_400_BAD_REQUEST
        assert Address.objects.filter(pk=office["id"]).exists()
        assert Address.objects.get(pk=home["id"]).is_default

    def test_delete_only_address_is_400(self, api):
        home = _create(api, "Home")
        resp = api.delete(reverse("address-detail", kwargs={"pk": home["id"]}))
        assert resp.status_code == status.HTTP_400_BAD_REQUEST

    def test_other_users_address_is_403(self, api, client_for, create_user):
        home = _create(api, "Home")
        other = client_for(create_user(username="other"))
        resp = other.post(reverse("address-set-default", kwargs={"pk": home["id"]}), format="json")
        assert resp.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db(transaction=True)
def test_busy_owner_lock_is_503_and_retryable(api, customer, settings, hold_invariant_lock):
    settings.INVARIANT_LOCK_TIMEOUT_MS = 200
    home = _create(api, "Home")
    office = _create(api, "Office")
    set_default_url = reverse("address-set-default", kwargs={"pk": office["id"]})

    with hold_invariant_lock(address_defaults.lock_key(identity_of(customer))):
        resp = api.post(set_default_url, format="json")

    assert resp.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert resp["Retry-After"] == "1"
    assert Address.objects.get(pk=home["id"]).is_default

    retry = api.post(set_default_url, format="json")
    assert retry.status_code == status.HTTP_200_OK
    assert Address.objects.get(pk=office["id"]).is_default
