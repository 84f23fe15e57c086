"""
Addresses app models.

``Address`` is the concrete "defaultable" entity: every owner with at
least one address has exactly one default address.  The flag is only
ever changed through ``core.domain.defaults.DefaultFlagEnforcer`` (via
``addresses.services.AddressService``), which serialises writers per
owner with the invariant lock.
"""

from django.db import models

from core.models import TimeStampedModel


class Address(TimeStampedModel):
    """A shipping address owned by a customer."""

    owner_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name="Owner ID",
    )
    label = models.CharField(
        max_length=50,
        blank=True,
        default="",
        verbose_name="Label",
        help_text="e.g. 'Home', 'Office'.",
    )
    recipient_name = models.CharField(max_length=150, verbose_name="Recipient Name")
    phone_number = models.CharField(max_length=20, verbose_name="Phone Number")
    province = models.CharField(max_length=100, verbose_name="Province")
    city = models.CharField(max_length=100, verbose_name="City")
    district = models.CharField(max_length=100, blank=True, default="", verbose_name="District")
    postal_code = models.CharField(max_length=10, verbose_name="Postal Code")
    address_line = models.TextField(verbose_name="Address Line")
    notes = models.TextField(blank=True, default="", verbose_name="Notes")
    is_default = models.BooleanField(default=False, verbose_name="Default")
    last_used_at = models.DateTimeField(null=True, blank=True, verbose_name="Last Used At")

    class Meta:
        verbose_name = "Address"
        verbose_name_plural = "Addresses"
        ordering = ["-is_default", "-created_at", "-pk"]
        indexes = [
            models.Index(fields=["owner_id", "is_default"], name="address_owner_default_idx"),
        ]

    def __str__(self):
        marker = " (default)" if self.is_default else ""
        return f"{self.recipient_name}, {self.city}{marker}"
