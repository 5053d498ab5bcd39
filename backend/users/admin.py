from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .models import User, KitchenProfile, DeliveryPartnerProfile


class KitchenProfileInline(admin.StackedInline):
    model = KitchenProfile
    can_delete = False
    extra = 0


class DeliveryPartnerProfileInline(admin.StackedInline):
    model = DeliveryPartnerProfile
    can_delete = False
    extra = 0
    readonly_fields = ("earnings", "total_deliveries", "location_updated_at")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    form = UserAdminChangeForm
    add_form = UserAdminCreationForm
    list_display = ("email", "name", "phone", "role", "is_staff", "is_active")
    list_filter = ("role", "is_staff", "is_superuser", "is_active")
    search_fields = ("email", "name", "phone")
    ordering = ("-date_joined",)
    inlines = [KitchenProfileInline, DeliveryPartnerProfileInline]

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Personal info", {"fields": ("name", "phone", "profile_image", "role")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "name", "phone", "role", "password1", "password2"),
            },
        ),
    )
