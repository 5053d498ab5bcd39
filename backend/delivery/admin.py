from django.contrib import admin
from .models import EarningEntry


@admin.register(EarningEntry)
class EarningEntryAdmin(admin.ModelAdmin):
    list_display = ("partner", "order", "amount", "created_at")
    search_fields = ("partner__email", "partner__name", "order__order_number")
    readonly_fields = ("partner", "order", "amount", "created_at")
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False
