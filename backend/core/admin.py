from django.contrib import admin

from .models import InvariantLock, OutboxEvent


@admin.register(OutboxEvent)
class OutboxEventAdmin(admin.ModelAdmin):
    """Read-only: outbox rows are append-only and owned by the relay once written."""

    list_display = ("id", "event_type", "aggregate_type", "aggregate_id",
                    "created_at", "dispatched_at")
    list_filter = ("event_type", "aggregate_type")
    search_fields = ("aggregate_id",)
    readonly_fields = ("aggregate_type", "aggregate_id", "event_type", "payload",
                       "metadata", "created_at", "dispatched_at")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(InvariantLock)
class InvariantLockAdmin(admin.ModelAdmin):
    list_display = ("key", "acquired_at")
    search_fields = ("key",)
    readonly_fields = ("key", "acquired_at")
