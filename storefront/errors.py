"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to, so routers never translate
error strings by hand. Anything that is not a StorefrontError is treated as
unexpected and rendered as a 500 by the global handler in main.py.
"""


class StorefrontError(Exception):
    """Base class for business-rule failures."""

    status_code: int = 400
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid request"


class EmptyCartError(ValidationError):
    """Checkout found no cart lines to convert."""

    default_message = "Cart is empty"


class InsufficientStockError(ValidationError):
    """A guarded stock decrement found less stock than requested."""

    def __init__(self, product_id: int, requested: int):
        self.product_id = product_id
        self.requested = requested
        super().__init__(f"Insufficient stock for product {product_id}")


class NotFoundError(StorefrontError):
    """Missing entity, or one that belongs to another user."""

    status_code = 404
    default_message = "Not found"


class ForbiddenError(StorefrontError):
    status_code = 403
    default_message = "Forbidden"


class InvalidTransition(ForbiddenError):
    """An order item status change not allowed by the transition table."""

    default_message = "Invalid status transition"

    def __init__(self, message: str | None = None, current_status: str | None = None):
        self.current_status = current_status
        super().__init__(message)


class InvalidState(ForbiddenError):
    """An order-level operation not allowed in the order's current state."""

    default_message = "Invalid order state"


class NotEligibleError(StorefrontError):
    """Review submitted without a completed purchase."""

    status_code = 400
    default_message = "Complete a purchase before reviewing"
