"""
Permissions Constants — **Single Source of Truth**

Every permission referenced in code (views, ``setup_catalog_roles``,
tests) MUST use one of the constants defined here.

Organisation
------------
- **Standard CRUD** permissions follow Django's auto-generated naming:
  ``<action>_<model_lowercase>``.  They are listed here so that the
  ``setup_catalog_roles`` command can map them to groups without typos.

- **Custom workflow** permissions map to codenames registered via each
  model's ``Meta.permissions`` tuple.  Adding a new one requires:
    1. Add the constant below.
    2. Add the ``(codename, description)`` to the model's
       ``Meta.permissions``.
    3. Add a migration so ``migrate`` inserts it into ``auth_permission``.
    4. Add the constant to the appropriate group in ``setup_catalog_roles``.

All constants store the **codename only** (no ``app_label.`` prefix);
use ``perm()`` to build the dotted form expected by ``User.has_perm``.
"""


def perm(app_label: str, codename: str) -> str:
    """Return ``"app_label.codename"`` for ``User.has_perm`` checks."""
    return f"{app_label}.{codename}"


# ════════════════════════════════════════════════════════════════════
#  CATALOG APP — Standard CRUD + Custom Workflow
# ════════════════════════════════════════════════════════════════════

class CatalogPerms:
    """Standard + custom permissions for the catalog app."""

    APP_LABEL = "catalog"

    # ── ProductDraft — standard CRUD ────────────────────────────────
    VIEW_PRODUCTDRAFT = "view_productdraft"
    ADD_PRODUCTDRAFT = "add_productdraft"
    CHANGE_PRODUCTDRAFT = "change_productdraft"
    DELETE_PRODUCTDRAFT = "delete_productdraft"

    # ── ModerationQueueItem — standard CRUD ─────────────────────────
    VIEW_MODERATIONQUEUEITEM = "view_moderationqueueitem"

    # ── Product — standard CRUD ─────────────────────────────────────
    VIEW_PRODUCT = "view_product"

    # ── Category — standard CRUD ────────────────────────────────────
    VIEW_CATEGORY = "view_category"

    # ── Custom workflow permissions ─────────────────────────────────
    CAN_MODERATE_DRAFTS = "can_moderate_drafts"
    """Assign, approve, reject and request changes on submitted drafts."""


# ════════════════════════════════════════════════════════════════════
#  ADDRESSES APP — Standard CRUD
# ════════════════════════════════════════════════════════════════════

class AddressesPerms:
    """Standard CRUD permissions for the addresses app."""

    APP_LABEL = "addresses"

    VIEW_ADDRESS = "view_address"
    ADD_ADDRESS = "add_address"
    CHANGE_ADDRESS = "change_address"
    DELETE_ADDRESS = "delete_address"


# ════════════════════════════════════════════════════════════════════
#  CORE APP — Standard CRUD
# ════════════════════════════════════════════════════════════════════

class CorePerms:
    """Permissions for the core app's own models."""

    APP_LABEL = "core"

    VIEW_OUTBOXEVENT = "view_outboxevent"
