"""
Catalog models - categories and products with a mutable stock counter.
"""

from typing import Optional, List

from sqlalchemy import String, Text, Integer, ForeignKey, Index, JSON, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.models.base import Base, IntIdMixin, TimestampMixin


class Category(Base, IntIdMixin, TimestampMixin):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    products: Mapped[List["Product"]] = relationship("Product", back_populates="category")


class Product(Base, IntIdMixin, TimestampMixin):
    """
    A sellable product. `price` is an integer amount in the smallest
    currency unit; `stock` never goes below zero.
    """
    __tablename__ = "products"

    shop_id: Mapped[int] = mapped_column(ForeignKey("shops.id", ondelete="CASCADE"), nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"))

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    images: Mapped[list] = mapped_column(JSON, default=list)  # image URLs

    # Relationships
    shop: Mapped["Shop"] = relationship("Shop", back_populates="products")
    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="products")
    order_items: Mapped[List["OrderItem"]] = relationship("OrderItem", back_populates="product")
    reviews: Mapped[List["Review"]] = relationship("Review", back_populates="product")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock_non_negative"),
        Index("idx_product_shop", "shop_id"),
        Index("idx_product_category", "category_id"),
    )
