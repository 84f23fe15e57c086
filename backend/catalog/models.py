"""
Catalog app models.

Covers the seller-submission lifecycle: from an editable draft, through
the moderation queue, to the live product created on approval.

Draft lifecycle::

    draft ──submit──▶ pending ──approve──────────▶ approved  (terminal)
      ▲                 │  ├──reject───────────▶ rejected  (terminal)
      │                 │  └──request changes──▶ changes_requested
      └─────────────────┴──────────resubmit──────────────┘

A ``ModerationQueueItem`` with ``completed_at IS NULL`` exists for a
draft exactly while that draft is ``pending``.
"""

from django.db import models

from core.models import TimeStampedModel
from core.permissions_constants import CatalogPerms


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class DraftStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PENDING = "pending", "Pending Review"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    CHANGES_REQUESTED = "changes_requested", "Changes Requested"


class ModerationPriority(models.TextChoices):
    """
    Queue priority.  ``PRIORITY_RANK`` gives the sort order (higher is served
    first); the stored value stays a readable string.
    """

    LOW = "low", "Low"
    NORMAL = "normal", "Normal"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


PRIORITY_RANK: dict[str, int] = {
    ModerationPriority.LOW: 0,
    ModerationPriority.NORMAL: 1,
    ModerationPriority.HIGH: 2,
    ModerationPriority.URGENT: 3,
}


class ProductStatus(models.TextChoices):
    APPROVED = "approved", "Approved"
    INACTIVE = "inactive", "Inactive"


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Category(TimeStampedModel):
    """Reference table of product categories a draft must point at."""

    name = models.CharField(max_length=150, verbose_name="Name")
    slug = models.SlugField(max_length=170, unique=True, verbose_name="Slug")
    is_active = models.BooleanField(default=True, verbose_name="Active")

    class Meta:
        verbose_name = "Category"
        verbose_name_plural = "Categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class ProductDraft(TimeStampedModel):
    """
    A seller's unpublished submission.

    * Editable by its owner only while ``draft`` or ``changes_requested``.
    * Changed by moderators only through the review transitions.
    * Immutable once ``approved`` or ``rejected``.

    ``images`` is a list of URLs; ``variants`` is a list of
    ``{"color", "size", "sell_price", ...}`` objects validated once by
    ``catalog.payloads`` before they are stored.
    """

    owner_id = models.CharField(
        max_length=64,
        db_index=True,
        verbose_name="Owner ID",
        help_text="Identity of the submitting seller.",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="drafts",
        verbose_name="Category",
    )

    # ── Payload ─────────────────────────────────────────────────────
    name = models.CharField(max_length=255, verbose_name="Name")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    short_description = models.CharField(
        max_length=500, blank=True, default="", verbose_name="Short Description",
    )
    base_sell_price = models.DecimalField(
        max_digits=14, decimal_places=2, verbose_name="Base Sell Price",
    )
    images = models.JSONField(default=list, verbose_name="Image URLs")
    variants = models.JSONField(default=list, verbose_name="Variants")
    weight_grams = models.PositiveIntegerField(null=True, blank=True, verbose_name="Weight (g)")
    length_cm = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name="Length (cm)",
    )
    width_cm = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name="Width (cm)",
    )
    height_cm = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name="Height (cm)",
    )
    material = models.CharField(max_length=255, blank=True, default="", verbose_name="Material")
    care_instructions = models.TextField(blank=True, default="", verbose_name="Care Instructions")
    country_of_origin = models.CharField(
        max_length=100, blank=True, default="", verbose_name="Country of Origin",
    )
    tags = models.JSONField(default=list, blank=True, verbose_name="Tags")

    # ── Review state ────────────────────────────────────────────────
    status = models.CharField(
        max_length=20,
        choices=DraftStatus.choices,
        default=DraftStatus.DRAFT,
        db_index=True,
        verbose_name="Status",
    )
    submitted_at = models.DateTimeField(null=True, blank=True, verbose_name="Submitted At")
    reviewed_by = models.CharField(
        max_length=64, blank=True, default="", verbose_name="Reviewed By",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True, verbose_name="Reviewed At")
    rejection_reason = models.TextField(blank=True, default="", verbose_name="Rejection Reason")
    moderation_notes = models.TextField(blank=True, default="", verbose_name="Moderation Notes")
    product = models.OneToOneField(
        "Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        verbose_name="Published Product",
        help_text="Set on approval.",
    )

    class Meta:
        verbose_name = "Product Draft"
        verbose_name_plural = "Product Drafts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner_id", "status"], name="draft_owner_status_idx"),
        ]
        permissions = [
            (CatalogPerms.CAN_MODERATE_DRAFTS, "Can review and decide on submitted drafts"),
        ]

    def __str__(self):
        return f"Draft #{self.pk} — {self.name} [{self.get_status_display()}]"


class ModerationQueueItem(TimeStampedModel):
    """
    One review request for a pending draft.

    Opened in the same transaction that moves the draft to ``pending``
    and closed (``completed_at`` stamped) in the same transaction that
    moves it out.  ``assigned_to`` is advisory: it records who is
    working on the item.
    """

    draft = models.ForeignKey(
        ProductDraft,
        on_delete=models.CASCADE,
        related_name="queue_items",
        verbose_name="Draft",
    )
    assigned_to = models.CharField(
        max_length=64,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Assigned Moderator",
    )
    assigned_at = models.DateTimeField(null=True, blank=True, verbose_name="Assigned At")
    priority = models.CharField(
        max_length=10,
        choices=ModerationPriority.choices,
        default=ModerationPriority.NORMAL,
        verbose_name="Priority",
    )
    completed_at = models.DateTimeField(
        null=True, blank=True, db_index=True, verbose_name="Completed At",
    )

    class Meta:
        verbose_name = "Moderation Queue Item"
        verbose_name_plural = "Moderation Queue"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["draft"],
                condition=models.Q(completed_at__isnull=True),
                name="one_open_queue_item_per_draft",
            ),
        ]

    def __str__(self):
        state = "closed" if self.completed_at else "open"
        return f"Queue #{self.pk} for draft #{self.draft_id} ({self.priority}, {state})"

    @property
    def is_open(self) -> bool:
        return self.completed_at is None


class Product(TimeStampedModel):
    """
    A live catalog entry, created atomically from an approved draft.
    """

    draft = models.OneToOneField(
        ProductDraft,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="published_product",
        verbose_name="Source Draft",
        help_text="Audit back-reference to the draft this product was approved from.",
    )
    owner_id = models.CharField(max_length=64, db_index=True, verbose_name="Owner ID")
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="products",
        verbose_name="Category",
    )
    product_code = models.CharField(max_length=20, unique=True, verbose_name="Product Code")
    name = models.CharField(max_length=255, verbose_name="Name")
    slug = models.SlugField(max_length=300, verbose_name="Slug")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    short_description = models.CharField(
        max_length=500, blank=True, default="", verbose_name="Short Description",
    )
    base_cost_price = models.DecimalField(max_digits=14, decimal_places=2, verbose_name="Base Cost Price")
    base_sell_price = models.DecimalField(max_digits=14, decimal_places=2, verbose_name="Base Sell Price")
    primary_image_url = models.URLField(max_length=1000, blank=True, default="", verbose_name="Primary Image")
    weight_grams = models.PositiveIntegerField(null=True, blank=True, verbose_name="Weight (g)")
    length_cm = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name="Length (cm)",
    )
    width_cm = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name="Width (cm)",
    )
    height_cm = models.DecimalField(
        max_digits=8, decimal_places=2, null=True, blank=True, verbose_name="Height (cm)",
    )
    material = models.CharField(max_length=255, blank=True, default="", verbose_name="Material")
    care_instructions = models.TextField(blank=True, default="", verbose_name="Care Instructions")
    country_of_origin = models.CharField(
        max_length=100, blank=True, default="", verbose_name="Country of Origin",
    )
    tags = models.JSONField(default=list, blank=True, verbose_name="Tags")
    status = models.CharField(
        max_length=20,
        choices=ProductStatus.choices,
        default=ProductStatus.APPROVED,
        db_index=True,
        verbose_name="Status",
    )
    published_at = models.DateTimeField(null=True, blank=True, verbose_name="Published At")
    created_by = models.CharField(max_length=64, blank=True, default="", verbose_name="Created By")

    class Meta:
        verbose_name = "Product"
        verbose_name_plural = "Products"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.product_code} — {self.name}"


class ProductVariant(TimeStampedModel):
    """A sellable colour/size combination of a product."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
        verbose_name="Product",
    )
    sku = models.CharField(max_length=120, unique=True, verbose_name="SKU")
    color = models.CharField(max_length=50, verbose_name="Color")
    color_hex = models.CharField(max_length=9, blank=True, default="", verbose_name="Color Hex")
    color_name = models.CharField(max_length=100, blank=True, default="", verbose_name="Color Name")
    size = models.CharField(max_length=50, verbose_name="Size")
    size_name = models.CharField(max_length=100, blank=True, default="", verbose_name="Size Name")
    cost_price = models.DecimalField(max_digits=14, decimal_places=2, verbose_name="Cost Price")
    sell_price = models.DecimalField(max_digits=14, decimal_places=2, verbose_name="Sell Price")
    image_url = models.URLField(max_length=1000, blank=True, default="", verbose_name="Image")
    is_active = models.BooleanField(default=True, verbose_name="Active")

    class Meta:
        verbose_name = "Product Variant"
        verbose_name_plural = "Product Variants"
        ordering = ["id"]

    def __str__(self):
        return self.sku


class ProductImage(TimeStampedModel):
    """An ordered product image; exactly the first one is primary."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="images",
        verbose_name="Product",
    )
    image_url = models.URLField(max_length=1000, verbose_name="Image URL")
    display_order = models.PositiveSmallIntegerField(default=0, verbose_name="Display Order")
    is_primary = models.BooleanField(default=False, verbose_name="Primary")

    class Meta:
        verbose_name = "Product Image"
        verbose_name_plural = "Product Images"
        ordering = ["display_order"]

    def __str__(self):
        return f"Image {self.display_order} of {self.product_id}"
