"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``seller`` / ``moderator`` users in the seeded catalog groups.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``category`` and ``draft_payload`` catalog fixtures.
  - ``hold_invariant_lock`` for lock-contention tests.
"""

from __future__ import annotations

import pytest
from django.core.management import call_command
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
            # or straight into a seeded group:
            user = create_user(username="bob", group="Moderator")
    """
    from django.contrib.auth import get_user_model
    from django.contrib.auth.models import Group

    User = get_user_model()
    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        group: str | None = None,
        is_active: bool = True,
        **kwargs,
    ):
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"

        user = User.objects.create_user(
            username=username,
            password=password,
            email=email,
            is_active=is_active,
            **kwargs,
        )
        if group is not None:
            user.groups.add(Group.objects.get(name=group))
        return user

    return _factory


@pytest.fixture()
def catalog_roles(db):
    """Seed the Seller and Moderator groups."""
    call_command("setup_catalog_roles", verbosity=0)


@pytest.fixture()
def seller(create_user, catalog_roles):
    return create_user(username="seller", group="Seller")


@pytest.fixture()
def moderator(create_user, catalog_roles):
    return create_user(username="moderator", group="Moderator")


@pytest.fixture()
def auth_header():
    """
    Returns a helper that builds an ``Authorization`` header dict with a
    valid JWT access token for the given user.

    Usage::

        def test_protected(auth_header, api_client, seller):
            api_client.credentials(HTTP_AUTHORIZATION=auth_header(seller)["Authorization"])
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(user) -> dict[str, str]:
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def client_for(auth_header):
    """Return an ``APIClient`` authenticated as ``user``."""

    def _make(user) -> APIClient:
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=auth_header(user)["Authorization"])
        return client

    return _make


@pytest.fixture()
def category(db):
    from catalog.models import Category

    return Category.objects.create(name="Apparel", slug="apparel")


@pytest.fixture()
def draft_payload():
    """A payload that satisfies every draft constraint."""
    return {
        "name": "Linen Shirt",
        "description": "Breathable summer shirt.",
        "base_sell_price": "49.90",
        "images": [
            "https://cdn.example.com/shirt-1.jpg",
            "https://cdn.example.com/shirt-2.jpg",
            "https://cdn.example.com/shirt-3.jpg",
        ],
        "variants": [
            {"color": "White", "size": "M", "sell_price": "49.90"},
            {"color": "Blue", "size": "L", "sell_price": "52.00"},
        ],
        "tags": ["summer", "linen"],
    }


@pytest.fixture()
def hold_invariant_lock():
    """
    Context-manager factory that holds the invariant lock for a key in a
    background thread (its own connection and transaction) until the
    ``with`` block exits.  Needs ``django_db(transaction=True)``.

    Usage::

        with hold_invariant_lock("address-default:42"):
            ...  # writers for owner 42 now have to wait
    """
    import threading
    from contextlib import contextmanager

    from django.db import connection

    from core.domain.transactions import unit_of_work

    @contextmanager
    def _hold(key: str):
        holding = threading.Event()
        release = threading.Event()

        def worker():
            try:
                with unit_of_work(lock_key=key):
                    holding.set()
                    release.wait(timeout=30)
            finally:
                connection.close()

        thread = threading.Thread(target=worker)
        thread.start()
        try:
            assert holding.wait(timeout=10), f"lock {key!r} was not taken"
            yield
        finally:
            release.set()
            thread.join(timeout=30)

    return _hold
