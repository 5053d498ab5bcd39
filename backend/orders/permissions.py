from rest_framework import permissions


class CanUpdateOrderStatus(permissions.BasePermission):
    """
    Role gate for the generic status endpoint. Which transitions each role
    may request on which order is decided by OrderService.
    """

    message = "Only kitchens, delivery partners or admins can update order status."

    def has_permission(self, request, view):
        user = request.user
        return bool(
            user
            and user.is_authenticated
            and (user.is_home_kitchen or user.is_delivery_partner or user.is_admin_role)
        )

