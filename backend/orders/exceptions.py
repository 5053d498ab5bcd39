from core_backend.exceptions import ConflictError, NotFoundError, ValidationFailed


class OrderNotFound(NotFoundError):
    default_message = "Order not found."


class MultiKitchenOrder(ValidationFailed):
    """All items of one order must come from the same kitchen."""

    default_message = "All items in an order must come from the same kitchen."


class InvalidTransition(ConflictError):
    default_message = "This status change is not allowed."


class AlreadyAssigned(ConflictError):
    default_message = "Order already assigned to another delivery partner."


class ConcurrentModification(ConflictError):
    """The order changed between read and write; nothing was modified."""

    default_message = "The order was modified concurrently. Please retry."
