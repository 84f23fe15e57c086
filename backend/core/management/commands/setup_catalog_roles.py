"""
Management command: setup_catalog_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the Django auth **Groups** used by the marketplace and links each
group to its set of permissions:

* ``Seller``    — manage own drafts and addresses.
* ``Moderator`` — everything a seller can do plus
  ``catalog.can_moderate_drafts`` (queue reads and review decisions).

Key design principle — **this command does NOT create Permission objects**.
Standard CRUD permissions are created by ``migrate``; the custom
moderation permission is declared in ``ProductDraft.Meta.permissions``.

The command is **idempotent** — safe to run multiple times.  Each
group's permissions are replaced (set) to match the mapping below.

Usage::

    python manage.py migrate
    python manage.py setup_catalog_roles
"""

from django.contrib.auth.models import Group, Permission
from django.core.management.base import BaseCommand

from core.permissions_constants import AddressesPerms, CatalogPerms

SELLER_GROUP = "Seller"
MODERATOR_GROUP = "Moderator"

_SELLER_PERMS: list[tuple[str, str]] = [
    (CatalogPerms.APP_LABEL, CatalogPerms.VIEW_PRODUCTDRAFT),
    (CatalogPerms.APP_LABEL, CatalogPerms.ADD_PRODUCTDRAFT),
    (CatalogPerms.APP_LABEL, CatalogPerms.CHANGE_PRODUCTDRAFT),
    (CatalogPerms.APP_LABEL, CatalogPerms.DELETE_PRODUCTDRAFT),
    (CatalogPerms.APP_LABEL, CatalogPerms.VIEW_CATEGORY),
    (CatalogPerms.APP_LABEL, CatalogPerms.VIEW_PRODUCT),
    (AddressesPerms.APP_LABEL, AddressesPerms.VIEW_ADDRESS),
    (AddressesPerms.APP_LABEL, AddressesPerms.ADD_ADDRESS),
    (AddressesPerms.APP_LABEL, AddressesPerms.CHANGE_ADDRESS),
    (AddressesPerms.APP_LABEL, AddressesPerms.DELETE_ADDRESS),
]

# ────────────────────────────────────────────────────────────────────
# Group → Permission mapping
# ────────────────────────────────────────────────────────────────────

GROUP_PERMISSIONS_MAP: dict[str, list[tuple[str, str]]] = {
    SELLER_GROUP: _SELLER_PERMS,
    MODERATOR_GROUP: _SELLER_PERMS + [
        (CatalogPerms.APP_LABEL, CatalogPerms.CAN_MODERATE_DRAFTS),
        (CatalogPerms.APP_LABEL, CatalogPerms.VIEW_MODERATIONQUEUEITEM),
    ],
}


class Command(BaseCommand):
    help = (
        "Seeds the Seller and Moderator groups and maps each to its Django "
        "permissions.  Safe to run multiple times (idempotent).  "
        "Does NOT create permissions — run `migrate` first."
    )

    def handle(self, *args, **options):
        all_permissions: dict[tuple[str, str], Permission] = {
            (p.content_type.app_label, p.codename): p
            for p in Permission.objects.select_related("content_type").all()
        }

        warnings = 0
        for group_name, keys in GROUP_PERMISSIONS_MAP.items():
            group, created = Group.objects.get_or_create(name=group_name)

            resolved: list[Permission] = []
            for key in keys:
                permission = all_permissions.get(key)
                if permission is None:
                    warnings += 1
                    self.stdout.write(self.style.WARNING(
                        f"  Permission '{key[0]}.{key[1]}' not found; skipped for "
                        f"group '{group_name}'.  (Run migrate first?)"
                    ))
                    continue
                resolved.append(permission)

            group.permissions.set(resolved)
            action = "Created" if created else "Updated"
            self.stdout.write(self.style.SUCCESS(
                f"  {action} group: {group_name:<12s} (permissions={len(resolved)})"
            ))

        summary = f"Done: {len(GROUP_PERMISSIONS_MAP)} group(s) synced."
        if warnings:
            summary += f"  ({warnings} permission warning(s), see above.)"
        self.stdout.write(self.style.SUCCESS(summary))
