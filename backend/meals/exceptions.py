from core_backend.exceptions import ConflictError, NotFoundError, ValidationFailed


class MealNotFound(NotFoundError):
    default_message = "Meal not found."


class MealUnavailable(ValidationFailed):
    """The meal cannot be ordered for the requested date and time slot."""

    default_message = "This meal is not available."


class InsufficientAvailability(ConflictError):
    """The slot does not have enough remaining quantity to cover the request."""

    default_message = "Not enough portions remaining in this time slot."
