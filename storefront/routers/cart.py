"""
Cart API Router.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth_middleware import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.schemas import ApiResponse, ProductSummary, ShopSummary, ok
from storefront.services.cart import CartStore

router = APIRouter()


class CartItemResponse(BaseModel):
    id: int
    user_id: int
    product_id: int
    quantity: int

    class Config:
        from_attributes = True


class CartLineResponse(CartItemResponse):
    product: ProductSummary
    subtotal: int


class CartGroupResponse(BaseModel):
    shop: ShopSummary
    items: List[CartLineResponse]
    total: int


class CartResponse(BaseModel):
    groups: List[CartGroupResponse]
    grand_total: int


class AddItemRequest(BaseModel):
    product_id: Optional[int] = Field(None, alias="productId")
    qty: int = 1

    class Config:
        populate_by_name = True


class UpdateItemRequest(BaseModel):
    qty: Optional[int] = None


def _line_response(entry: dict) -> CartLineResponse:
    line = entry["line"]
    return CartLineResponse(
        id=line.id,
        user_id=line.user_id,
        product_id=line.product_id,
        quantity=line.quantity,
        product=ProductSummary.model_validate(line.product),
        subtotal=entry["subtotal"],
    )


@router.get("", response_model=ApiResponse[CartResponse])
async def view_cart(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cart lines grouped by shop, with per-shop and grand totals."""
    cart = await CartStore(db).view_cart(user.user_id)
    return ok("OK", CartResponse(
        groups=[
            CartGroupResponse(
                shop=ShopSummary.model_validate(group["shop"]),
                items=[_line_response(entry) for entry in group["items"]],
                total=group["total"],
            )
            for group in cart["groups"]
        ],
        grand_total=cart["grand_total"],
    ))


@router.delete("", response_model=ApiResponse[None])
async def clear_cart(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CartStore(db).clear(user.user_id)
    return ok("Cart cleared")


@router.post("/items", response_model=ApiResponse[CartItemResponse])
async def add_cart_item(
    body: AddItemRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    line, created = await CartStore(db).add_item(user.user_id, body.product_id, body.qty)
    message = "Item added to cart" if created else "Quantity increased"
    return ok(message, CartItemResponse.model_validate(line))


@router.patch("/items/{line_id}", response_model=ApiResponse[CartItemResponse])
async def update_cart_item(
    line_id: int,
    body: UpdateItemRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    line = await CartStore(db).update_quantity(user.user_id, line_id, body.qty)
    return ok("Cart item updated", CartItemResponse.model_validate(line))


@router.delete("/items/{line_id}", response_model=ApiResponse[None])
async def remove_cart_item(
    line_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CartStore(db).remove_item(user.user_id, line_id)
    return ok("Cart item removed")
