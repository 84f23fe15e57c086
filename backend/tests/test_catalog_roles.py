"""
Tests for the ``setup_catalog_roles`` management command.
"""

from __future__ import annotations

from io import StringIO

import pytest
from django.contrib.auth.models import Group
from django.core.management import call_command

from core.management.commands.setup_catalog_roles import (
    GROUP_PERMISSIONS_MAP,
    MODERATOR_GROUP,
    SELLER_GROUP,
)


def _codenames(group_name: str) -> set[str]:
    group = Group.objects.get(name=group_name)
    return {f"{p.content_type.app_label}.{p.codename}" for p in group.permissions.all()}


@pytest.mark.django_db
class TestSetupCatalogRoles:

    def test_groups_are_seeded_with_every_permission(self):
        out = StringIO()
        call_command("setup_catalog_roles", stdout=out)

        assert "not found" not in out.getvalue()
        for group_name, keys in GROUP_PERMISSIONS_MAP.items():
            assert _codenames(group_name) == {f"{app}.{codename}" for app, codename in keys}

    def test_only_moderators_can_moderate(self):
        call_command("setup_catalog_roles", stdout=StringIO())
        assert "catalog.can_moderate_drafts" in _codenames(MODERATOR_GROUP)
        assert "catalog.can_moderate_drafts" not in _codenames(SELLER_GROUP)

    def test_idempotent(self):
        call_command("setup_catalog_roles", stdout=StringIO())
        first = _codenames(MODERATOR_GROUP)
        call_command("setup_catalog_roles", stdout=StringIO())
        assert Group.objects.filter(name__in=[SELLER_GROUP, MODERATOR_GROUP]).count() == 2
        assert _codenames(MODERATOR_GROUP) == first

    def test_moderator_user_has_permission(self, moderator, seller):
        assert moderator.has_perm("catalog.can_moderate_drafts")
        assert not seller.has_perm("catalog.can_moderate_drafts")
