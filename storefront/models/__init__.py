"""
SQLAlchemy Models for the Storefront API.

This package is organized by domain:
- base.py: Base class and mixins
- status.py: Status enums and the order-item transition table
- user.py: User and Shop
- product.py: Categories and the product catalog with stock counter
- cart.py: Cart line items
- order.py: Order and OrderItem
- review.py: Product reviews

All models are re-exported from this module.
"""

# Base
from storefront.models.base import Base, IntIdMixin, TimestampMixin

# Status enums
from storefront.models.status import OrderStatus, OrderItemStatus, ShippingMethod, PaymentMethod

# Identity
from storefront.models.user import User, Shop

# Catalog and cart
from storefront.models.product import Category, Product
from storefront.models.cart import CartItem

# Orders
from storefront.models.order import Order, OrderItem

# Reviews
from storefront.models.review import Review


__all__ = [
    # Base
    "Base",
    "IntIdMixin",
    "TimestampMixin",

    # Status
    "OrderStatus",
    "OrderItemStatus",
    "ShippingMethod",
    "PaymentMethod",

    # Identity
    "User",
    "Shop",

    # Catalog and cart
    "Category",
    "Product",
    "CartItem",

    # Orders
    "Order",
    "OrderItem",

    # Reviews
    "Review",
]
