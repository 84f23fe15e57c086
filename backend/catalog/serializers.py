"""
Catalog app serializers.

Request serializers only check the *shape* of incoming data (types,
required keys); payload business rules (image/variant minimums, positive
prices) are enforced once by ``catalog.payloads.DraftPayload`` inside the
service layer.  Response serializers render model instances.

Structure
---------
1. Draft request serializers
2. Moderation request serializers
3. Read serializers (drafts, queue, products)
"""

from __future__ import annotations

from rest_framework import serializers

from .models import (
    DraftStatus,
    ModerationPriority,
    ModerationQueueItem,
    Product,
    ProductDraft,
    ProductImage,
    ProductVariant,
)


# ═══════════════════════════════════════════════════════════════════
#  1. Draft Request Serializers
# ═══════════════════════════════════════════════════════════════════


class VariantInputSerializer(serializers.Serializer):
    color = serializers.CharField(allow_blank=True, max_length=50)
    size = serializers.CharField(allow_blank=True, max_length=50)
    sell_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    color_hex = serializers.CharField(required=False, allow_blank=True, max_length=9)
    color_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    size_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    image_url = serializers.URLField(required=False, allow_blank=True, max_length=1000)


class DraftWriteSerializer(serializers.Serializer):
    """
    Body of ``POST /api/drafts/`` and ``PATCH /api/drafts/{id}/``.

    The view passes ``partial=True`` for PATCH.  Minimum counts and
    positive prices are *not* checked here.
    """

    category = serializers.IntegerField(min_value=1, help_text="PK of the product category.")
    name = serializers.CharField(max_length=255, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    short_description = serializers.CharField(required=False, allow_blank=True, max_length=500)
    base_sell_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    images = serializers.ListField(child=serializers.URLField(max_length=1000), allow_empty=True)
    variants = VariantInputSerializer(many=True)
    weight_grams = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    length_cm = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    width_cm = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    height_cm = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)
    material = serializers.CharField(required=False, allow_blank=True, max_length=255)
    care_instructions = serializers.CharField(required=False, allow_blank=True)
    country_of_origin = serializers.CharField(required=False, allow_blank=True, max_length=100)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)


class DraftFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DraftStatus.choices, required=False)


# ═══════════════════════════════════════════════════════════════════
#  2. Moderation Request Serializers
# ═══════════════════════════════════════════════════════════════════


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, help_text="Mandatory, non-empty rejection reason.")


class RequestChangesSerializer(serializers.Serializer):
    feedback = serializers.CharField(allow_blank=True, help_text="Mandatory, non-empty feedback for the seller.")


class PrioritySerializer(serializers.Serializer):
    priority = serializers.ChoiceField(choices=ModerationPriority.choices)


class QueuePageSerializer(serializers.Serializer):
    limit = serializers.IntegerField(required=False, default=50, min_value=1, max_value=200)
    offset = serializers.IntegerField(required=False, default=0, min_value=0)


class AssignedQueueFilterSerializer(serializers.Serializer):
    include_completed = serializers.BooleanField(required=False, default=False)


class EscalateSerializer(serializers.Serializer):
    older_than_hours = serializers.FloatField(required=False, min_value=0)


# ═══════════════════════════════════════════════════════════════════
#  3. Read Serializers
# ═══════════════════════════════════════════════════════════════════


class DraftSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True)

    class Meta:
        model = ProductDraft
        fields = [
            "id", "owner_id", "category", "category_name",
            "name", "description", "short_description", "base_sell_price",
            "images", "variants", "weight_grams", "length_cm", "width_cm",
            "height_cm", "material",
            "care_instructions", "country_of_origin", "tags",
            "status", "status_display", "submitted_at", "reviewed_by",
            "reviewed_at", "rejection_reason", "moderation_notes", "product",
            "created_at", "updated_at",
        ]
        read_only_fields = fields


class QueueItemSerializer(serializers.ModelSerializer):
    draft_name = serializers.CharField(source="draft.name", read_only=True)
    draft_owner_id = serializers.CharField(source="draft.owner_id", read_only=True)
    submitted_at = serializers.DateTimeField(source="draft.submitted_at", read_only=True)

    class Meta:
        model = ModerationQueueItem
        fields = [
            "id", "draft", "draft_name", "draft_owner_id", "submitted_at",
            "assigned_to", "assigned_at", "priority", "created_at", "completed_at",
        ]
        read_only_fields = fields


class QueueStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending = serializers.IntegerField(help_text="Open and unassigned.")
    assigned = serializers.IntegerField(help_text="Open and assigned.")
    completed = serializers.IntegerField()
    by_priority = serializers.DictField(child=serializers.IntegerField())


class ProductVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductVariant
        fields = [
            "id", "sku", "color", "color_hex", "color_name", "size",
            "size_name", "cost_price", "sell_price", "image_url", "is_active",
        ]


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ["id", "image_url", "display_order", "is_primary"]


class ProductSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)
    images = ProductImageSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id", "product_code", "slug", "draft", "owner_id", "category",
            "name", "description", "short_description", "base_cost_price",
            "base_sell_price", "weight_grams", "length_cm", "width_cm", "height_cm",
            "primary_image_url", "status", "published_at",
            "created_by", "variants", "images", "created_at",
        ]
        read_only_fields = fields


class ApprovalResultSerializer(serializers.Serializer):
    draft = DraftSerializer()
    product = ProductSerializer()
