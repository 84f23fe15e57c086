import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Category",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("name", models.CharField(max_length=150, verbose_name="Name")),
                ("slug", models.SlugField(max_length=170, unique=True, verbose_name="Slug")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
            ],
            options={
                "verbose_name": "Category",
                "verbose_name_plural": "Categories",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="ProductDraft",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("owner_id", models.CharField(
                    db_index=True, help_text="Identity of the submitting seller.",
                    max_length=64, verbose_name="Owner ID",
                )),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("short_description", models.CharField(
                    blank=True, default="", max_length=500, verbose_name="Short Description",
                )),
                ("base_sell_price", models.DecimalField(
                    decimal_places=2, max_digits=14, verbose_name="Base Sell Price",
                )),
                ("images", models.JSONField(default=list, verbose_name="Image URLs")),
                ("variants", models.JSONField(default=list, verbose_name="Variants")),
                ("weight_grams", models.PositiveIntegerField(blank=True, null=True, verbose_name="Weight (g)")),
                ("material", models.CharField(blank=True, default="", max_length=255, verbose_name="Material")),
                ("care_instructions", models.TextField(blank=True, default="", verbose_name="Care Instructions")),
                ("country_of_origin", models.CharField(
                    blank=True, default="", max_length=100, verbose_name="Country of Origin",
                )),
                ("tags", models.JSONField(blank=True, default=list, verbose_name="Tags")),
                ("status", models.CharField(
                    choices=[
                        ("draft", "Draft"),
                        ("pending", "Pending Review"),
                        ("approved", "Approved"),
                        ("rejected", "Rejected"),
                        ("changes_requested", "Changes Requested"),
                    ],
                    db_index=True, default="draft", max_length=20, verbose_name="Status",
                )),
                ("submitted_at", models.DateTimeField(blank=True, null=True, verbose_name="Submitted At")),
                ("reviewed_by", models.CharField(blank=True, default="", max_length=64, verbose_name="Reviewed By")),
                ("reviewed_at", models.DateTimeField(blank=True, null=True, verbose_name="Reviewed At")),
                ("rejection_reason", models.TextField(blank=True, default="", verbose_name="Rejection Reason")),
                ("moderation_notes", models.TextField(blank=True, default="", verbose_name="Moderation Notes")),
                ("category", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="drafts", to="catalog.category", verbose_name="Category",
                )),
            ],
            options={
                "verbose_name": "Product Draft",
                "verbose_name_plural": "Product Drafts",
                "ordering": ["-created_at"],
                "permissions": [("can_moderate_drafts", "Can review and decide on submitted drafts")],
                "indexes": [
                    models.Index(fields=["owner_id", "status"], name="draft_owner_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ModerationQueueItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("assigned_to", models.CharField(
                    blank=True, db_index=True, default="", max_length=64, verbose_name="Assigned Moderator",
                )),
                ("assigned_at", models.DateTimeField(blank=True, null=True, verbose_name="Assigned At")),
                ("priority", models.CharField(
                    choices=[("low", "Low"), ("normal", "Normal"), ("high", "High"), ("urgent", "Urgent")],
                    default="normal", max_length=10, verbose_name="Priority",
                )),
                ("completed_at", models.DateTimeField(
                    blank=True, db_index=True, null=True, verbose_name="Completed At",
                )),
                ("draft", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="queue_items", to="catalog.productdraft", verbose_name="Draft",
                )),
            ],
            options={
                "verbose_name": "Moderation Queue Item",
                "verbose_name_plural": "Moderation Queue",
                "ordering": ["created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("completed_at__isnull", True)),
                        fields=("draft",),
                        name="one_open_queue_item_per_draft",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("owner_id", models.CharField(db_index=True, max_length=64, verbose_name="Owner ID")),
                ("product_code", models.CharField(max_length=20, unique=True, verbose_name="Product Code")),
                ("name", models.CharField(max_length=255, verbose_name="Name")),
                ("slug", models.SlugField(max_length=300, verbose_name="Slug")),
                ("description", models.TextField(blank=True, default="", verbose_name="Description")),
                ("short_description", models.CharField(
                    blank=True, default="", max_length=500, verbose_name="Short Description",
                )),
                ("base_cost_price", models.DecimalField(
                    decimal_places=2, max_digits=14, verbose_name="Base Cost Price",
                )),
                ("base_sell_price", models.DecimalField(
                    decimal_places=2, max_digits=14, verbose_name="Base Sell Price",
                )),
                ("primary_image_url", models.URLField(
                    blank=True, default="", max_length=1000, verbose_name="Primary Image",
                )),
                ("weight_grams", models.PositiveIntegerField(blank=True, null=True, verbose_name="Weight (g)")),
                ("material", models.CharField(blank=True, default="", max_length=255, verbose_name="Material")),
                ("care_instructions", models.TextField(blank=True, default="", verbose_name="Care Instructions")),
                ("country_of_origin", models.CharField(
                    blank=True, default="", max_length=100, verbose_name="Country of Origin",
                )),
                ("tags", models.JSONField(blank=True, default=list, verbose_name="Tags")),
                ("status", models.CharField(
                    choices=[("approved", "Approved"), ("inactive", "Inactive")],
                    db_index=True, default="approved", max_length=20, verbose_name="Status",
                )),
                ("published_at", models.DateTimeField(blank=True, null=True, verbose_name="Published At")),
                ("created_by", models.CharField(blank=True, default="", max_length=64, verbose_name="Created By")),
                ("category", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="products", to="catalog.category", verbose_name="Category",
                )),
                ("draft", models.OneToOneField(
                    blank=True,
                    help_text="Audit back-reference to the draft this product was approved from.",
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="published_product",
                    to="catalog.productdraft",
                    verbose_name="Source Draft",
                )),
            ],
            options={
                "verbose_name": "Product",
                "verbose_name_plural": "Products",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddField(
            model_name="productdraft",
            name="product",
            field=models.OneToOneField(
                blank=True,
                help_text="Set on approval.",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="catalog.product",
                verbose_name="Published Product",
            ),
        ),
        migrations.CreateModel(
            name="ProductVariant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("sku", models.CharField(max_length=120, unique=True, verbose_name="SKU")),
                ("color", models.CharField(max_length=50, verbose_name="Color")),
                ("color_hex", models.CharField(blank=True, default="", max_length=9, verbose_name="Color Hex")),
                ("color_name", models.CharField(blank=True, default="", max_length=100, verbose_name="Color Name")),
                ("size", models.CharField(max_length=50, verbose_name="Size")),
                ("size_name", models.CharField(blank=True, default="", max_length=100, verbose_name="Size Name")),
                ("cost_price", models.DecimalField(decimal_places=2, max_digits=14, verbose_name="Cost Price")),
                ("sell_price", models.DecimalField(decimal_places=2, max_digits=14, verbose_name="Sell Price")),
                ("image_url", models.URLField(blank=True, default="", max_length=1000, verbose_name="Image")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="variants", to="catalog.product", verbose_name="Product",
                )),
            ],
            options={
                "verbose_name": "Product Variant",
                "verbose_name_plural": "Product Variants",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="ProductImage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("image_url", models.URLField(max_length=1000, verbose_name="Image URL")),
                ("display_order", models.PositiveSmallIntegerField(default=0, verbose_name="Display Order")),
                ("is_primary", models.BooleanField(default=False, verbose_name="Primary")),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="images", to="catalog.product", verbose_name="Product",
                )),
            ],
            options={
                "verbose_name": "Product Image",
                "verbose_name_plural": "Product Images",
                "ordering": ["display_order"],
            },
        ),
    ]
