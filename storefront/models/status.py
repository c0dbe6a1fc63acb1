"""
Status enums and the order-item transition table.

OrderItem status only moves forward:

    PENDING -> DELIVERED   (seller ships)
    PENDING -> COMPLETED   (buyer confirms receipt)
    PENDING -> CANCELLED   (seller or buyer cancels; restocks)

Every other state is terminal. Order status is PAID at checkout and then
follows its items (see OrderLedger.complete_item) or explicit cancellation.
"""

from enum import Enum
from typing import Optional, Type, TypeVar

from storefront.errors import InvalidTransition, ValidationError


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OrderItemStatus(str, Enum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ShippingMethod(str, Enum):
    JNT = "JNT"
    JNE = "JNE"


class PaymentMethod(str, Enum):
    BCA = "BCA"
    BRI = "BRI"
    BNI = "BNI"
    MANDIRI = "MANDIRI"


ITEM_TRANSITIONS: dict[OrderItemStatus, frozenset[OrderItemStatus]] = {
    OrderItemStatus.PENDING: frozenset({
        OrderItemStatus.DELIVERED,
        OrderItemStatus.COMPLETED,
        OrderItemStatus.CANCELLED,
    }),
    OrderItemStatus.DELIVERED: frozenset(),
    OrderItemStatus.COMPLETED: frozenset(),
    OrderItemStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderItemStatus, target: OrderItemStatus) -> bool:
    return target in ITEM_TRANSITIONS.get(OrderItemStatus(current), frozenset())


def ensure_transition(
    current: OrderItemStatus,
    target: OrderItemStatus,
    message: Optional[str] = None,
) -> None:
    """Raise InvalidTransition unless current -> target is in the table."""
    if not can_transition(current, target):
        current = OrderItemStatus(current)
        raise InvalidTransition(
            message or f"Invalid transition. Current status: {current.value}",
            current_status=current.value,
        )


E = TypeVar("E", bound=Enum)


def parse_status(enum_cls: Type[E], raw: Optional[str]) -> Optional[E]:
    """
    Parse a case-insensitive status filter.

    Returns None for an empty value; raises ValidationError listing the
    allowed values for anything unknown.
    """
    if raw is None or str(raw).strip() == "":
        return None
    value = str(raw).strip().upper()
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid status. Allowed: {allowed}")
