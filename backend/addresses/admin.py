from django.contrib import admin

from .models import Address


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ("id", "owner_id", "recipient_name", "city",
                    "is_default", "last_used_at", "created_at")
    list_filter = ("is_default", "province")
    search_fields = ("owner_id", "recipient_name", "postal_code")
    readonly_fields = ("is_default", "last_used_at", "created_at", "updated_at")
