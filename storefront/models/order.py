"""
Order models - checkout snapshots and their fulfillment line items.
"""

from typing import List

from sqlalchemy import String, Text, Integer, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.models.base import Base, IntIdMixin, TimestampMixin
from storefront.models.status import OrderStatus, OrderItemStatus, ShippingMethod, PaymentMethod


class Order(Base, IntIdMixin, TimestampMixin):
    """
    A paid checkout. `total` is fixed at creation and never recomputed;
    items are created together with the order and never re-parented.
    """
    __tablename__ = "orders"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name="order_status", native_enum=False, length=20),
        default=OrderStatus.PAID,
        nullable=False,
    )
    total: Mapped[int] = mapped_column(Integer, nullable=False)

    address: Mapped[str] = mapped_column(Text, nullable=False)
    shipping: Mapped[ShippingMethod] = mapped_column(
        SAEnum(ShippingMethod, name="shipping_method", native_enum=False, length=20),
        nullable=False,
    )
    payment: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method", native_enum=False, length=20),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="orders")
    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("idx_order_user_created", "user_id", "created_at"),
    )


class OrderItem(Base, IntIdMixin, TimestampMixin):
    """A product line in an order, with its own fulfillment status."""
    __tablename__ = "order_items"

    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # unit price snapshot
    status: Mapped[OrderItemStatus] = mapped_column(
        SAEnum(OrderItemStatus, name="order_item_status", native_enum=False, length=20),
        default=OrderItemStatus.PENDING,
        nullable=False,
    )

    # Relationships
    order: Mapped["Order"] = relationship("Order", back_populates="items")
    product: Mapped["Product"] = relationship("Product", back_populates="order_items")

    __table_args__ = (
        Index("idx_orderitem_order", "order_id"),
        Index("idx_orderitem_product", "product_id"),
    )
