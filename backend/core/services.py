"""
Core app services — **Service Layer**.

Cross-app, read-only helpers served by the core app.  Views delegate to
the service classes defined here, keeping views thin.

Models and choice classes from other apps are imported lazily inside
methods so the core app never creates an import cycle at load time.
"""

from __future__ import annotations

from typing import Any

from core.domain.outbox import EventType


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers the system-wide choice enumerations into a single dict for
    the frontend.

    This service is **stateless**: it does not depend on the requesting
    user.  All constants are public information needed to render
    dropdowns and labels.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from catalog.models import DraftStatus, ModerationPriority, ProductStatus

        to_list = SystemConstantsService._choices_to_list

        return {
            "draft_statuses": to_list(DraftStatus),
            "moderation_priorities": to_list(ModerationPriority),
            "product_statuses": to_list(ProductStatus),
            "outbox_event_types": sorted(EventType.all()),
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]
