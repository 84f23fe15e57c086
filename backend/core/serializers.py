"""
Core app serializers.

**Response-only** serializers for the endpoints served by the core app.
They work exclusively with plain Python dicts produced by the service
layer, keeping the core app decoupled from the other apps' models.
"""

from __future__ import annotations

from rest_framework import serializers


class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "pending", "label": "Pending Review"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "draft_statuses": [{"value": "draft", "label": "Draft"}, ...],
            "moderation_priorities": [...],
            "product_statuses": [...],
            "outbox_event_types": ["address.created", ...]
        }
    """

    draft_statuses = ChoiceItemSerializer(many=True)
    moderation_priorities = ChoiceItemSerializer(many=True)
    product_statuses = ChoiceItemSerializer(many=True)
    outbox_event_types = serializers.ListField(
        child=serializers.CharField(),
        help_text="Stable outbox event identifiers.",
    )
