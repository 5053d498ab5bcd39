from rest_framework import permissions
from .models import User


class IsCustomer(permissions.BasePermission):
    message = "Only customers can perform this action."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_customer)


class IsHomeKitchen(permissions.BasePermission):
    message = "Only home kitchens can perform this action."

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and request.user.role in [User.Role.HOME_KITCHEN, User.Role.ADMIN]
        )


class IsDeliveryPartner(permissions.BasePermission):
    message = "Only delivery partners can perform this action."

    def has_permission(self, request, view):
        return bool(
            request.user and request.user.is_authenticated and request.user.is_delivery_partner
        )


class IsAdminRole(permissions.BasePermission):
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_admin_role)


class IsKitchenOwnerOrAdmin(permissions.BasePermission):
    """
    Object-level permission for kitchen-owned records (meals).
    Read access is granted to everyone; writes to the owning kitchen or an admin.
    """

    message = "Only the owning kitchen can modify this record."

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        if request.user.is_admin_role:
            return True
        return obj.kitchen_id == request.user.id
