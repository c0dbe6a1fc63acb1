"""
User and shop models - identity facts the order flows depend on.

Accounts are created by the auth service. This API only flips `is_seller`
when the user opens a shop.
"""

from typing import Optional, List

from sqlalchemy import String, Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.models.base import Base, IntIdMixin, TimestampMixin


class User(Base, IntIdMixin, TimestampMixin):
    """A buyer account; sellers additionally own exactly one Shop."""
    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    is_seller: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    shop: Mapped[Optional["Shop"]] = relationship("Shop", back_populates="owner", uselist=False)
    orders: Mapped[List["Order"]] = relationship("Order", back_populates="user")


class Shop(Base, IntIdMixin, TimestampMixin):
    """Seller storefront. One per user."""
    __tablename__ = "shops"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    logo: Mapped[Optional[str]] = mapped_column(String(512))

    owner: Mapped["User"] = relationship("User", back_populates="shop")
    products: Mapped[List["Product"]] = relationship("Product", back_populates="shop")
