"""
Addresses app serializers.

``is_default`` is write-only input on create/update: the service layer
decides the final flag so the one-default-per-owner rule always holds.
"""

from __future__ import annotations

import re

from rest_framework import serializers

from .models import Address

# ── Phone / postal code validation ─────────────────────────────────
_PHONE_REGEX = re.compile(r"^\+?\d{7,15}$")
_POSTAL_REGEX = re.compile(r"^\d{5,10}$")


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = [
            "id", "owner_id", "label", "recipient_name", "phone_number",
            "province", "city", "district", "postal_code", "address_line",
            "notes", "is_default", "last_used_at", "created_at", "updated_at",
        ]
        read_only_fields = fields


class AddressWriteSerializer(serializers.ModelSerializer):
    is_default = serializers.BooleanField(required=False)

    class Meta:
        model = Address
        fields = [
            "label", "recipient_name", "phone_number", "province", "city",
            "district", "postal_code", "address_line", "notes", "is_default",
        ]

    def validate_phone_number(self, value: str) -> str:
        if not _PHONE_REGEX.match(value):
            raise serializers.ValidationError("Enter a valid phone number (7-15 digits, optional leading '+').")
        return value

    def validate_postal_code(self, value: str) -> str:
        if not _POSTAL_REGEX.match(value):
            raise serializers.ValidationError("Postal code must be 5-10 digits.")
        return value


class AddressDeleteSerializer(serializers.Serializer):
    replacement = serializers.IntegerField(
        required=False,
        min_value=1,
        help_text="Address to promote when the deleted one is the default.",
    )
