"""
Response models shared across routers.

Every endpoint answers with the same envelope:
    {"success": true, "message": "...", "data": ...}
Failures use {"success": false, "message": "..."} (see main.py).
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

from storefront.models.status import OrderItemStatus, OrderStatus, PaymentMethod, ShippingMethod

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "OK"
    data: Optional[T] = None


def ok(message: str = "OK", data=None) -> dict:
    return {"success": True, "message": message, "data": data}


class UserSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class BuyerSummary(UserSummary):
    email: str


class ShopSummary(BaseModel):
    id: int
    name: str
    slug: str
    logo: Optional[str] = None

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    id: int
    title: str
    price: int
    images: Optional[list] = None

    class Config:
        from_attributes = True


class OrderItemResponse(BaseModel):
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: int
    status: OrderItemStatus

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    user_id: int
    status: OrderStatus
    total: int
    address: str
    shipping: ShippingMethod
    payment: PaymentMethod
    created_at: datetime
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class ReviewResponse(BaseModel):
    id: int
    user_id: int
    product_id: int
    rating: int
    comment: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str

    class Config:
        from_attributes = True


class ProductResponse(BaseModel):
    """A catalog product with its category and shop."""
    id: int
    shop_id: int
    category_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    price: int
    stock: int
    images: Optional[list] = None
    created_at: datetime
    category: Optional[CategoryResponse] = None
    shop: Optional[ShopSummary] = None

    class Config:
        from_attributes = True


class ShopResponse(BaseModel):
    id: int
    user_id: int
    name: str
    slug: str
    address: Optional[str] = None
    logo: Optional[str] = None
    created_at: datetime
    products: List[ProductSummary] = []

    class Config:
        from_attributes = True
