from django.contrib import admin

from .models import (
    Category,
    ModerationQueueItem,
    Product,
    ProductDraft,
    ProductImage,
    ProductVariant,
)


class ModerationQueueItemInline(admin.TabularInline):
    model = ModerationQueueItem
    extra = 0
    readonly_fields = ("assigned_to", "assigned_at", "priority",
                       "created_at", "completed_at")
    can_delete = False


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 0


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "slug", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(ProductDraft)
class ProductDraftAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "owner_id", "category", "status",
                    "submitted_at", "reviewed_by")
    list_filter = ("status", "category")
    search_fields = ("name", "owner_id")
    readonly_fields = ("status", "submitted_at", "reviewed_by", "reviewed_at",
                       "product", "created_at", "updated_at")
    inlines = [ModerationQueueItemInline]


@admin.register(ModerationQueueItem)
class ModerationQueueItemAdmin(admin.ModelAdmin):
    list_display = ("id", "draft", "priority", "assigned_to",
                    "created_at", "completed_at")
    list_filter = ("priority", "completed_at")
    search_fields = ("assigned_to",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("product_code", "name", "owner_id", "status",
                    "base_sell_price", "published_at")
    list_filter = ("status", "category")
    search_fields = ("product_code", "name")
    inlines = [ProductVariantInline, ProductImageInline]
