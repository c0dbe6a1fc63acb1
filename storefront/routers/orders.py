"""
Orders API Router.

Buyer-side order operations: checkout, order history, confirming receipt
of an item and cancelling an order.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth_middleware import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.schemas import ApiResponse, OrderItemResponse, OrderResponse, ok
from storefront.services.orders import OrderLedger

router = APIRouter()


class CheckoutRequest(BaseModel):
    """Checkout payload. Field presence is checked by the ledger."""
    address: Optional[str] = None
    shipping: Optional[str] = None
    payment: Optional[str] = None
    selected_item_ids: Optional[List[int]] = Field(None, alias="selectedItemIds")

    class Config:
        populate_by_name = True


class CheckoutResponse(BaseModel):
    id: int
    address: str
    shipping: str
    payment: str
    grand_total: int
    items: List[OrderItemResponse]
    status: str


@router.post("/checkout", status_code=201, response_model=ApiResponse[CheckoutResponse])
async def checkout(
    body: CheckoutRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Turn the cart (or the selected cart lines) into a paid order."""
    ledger = OrderLedger(db)
    order = await ledger.checkout(
        user_id=user.user_id,
        address=body.address,
        shipping=body.shipping,
        payment=body.payment,
        selected_item_ids=body.selected_item_ids,
    )

    return ok("Order created", CheckoutResponse(
        id=order.id,
        address=order.address,
        shipping=order.shipping.value,
        payment=order.payment.value,
        grand_total=order.total,
        items=[OrderItemResponse.model_validate(i) for i in order.items],
        status=order.status.value,
    ))


@router.get("/my", response_model=ApiResponse[List[OrderResponse]])
async def list_my_orders(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's orders, newest first."""
    orders = await OrderLedger(db).list_orders(user.user_id, page=page, page_size=limit, status=status)
    return ok("OK", [OrderResponse.model_validate(o) for o in orders])


@router.get("/{order_id}", response_model=ApiResponse[OrderResponse])
async def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderLedger(db).get_order(user.user_id, order_id)
    return ok("OK", OrderResponse.model_validate(order))


@router.patch("/items/{item_id}/complete", response_model=ApiResponse[OrderItemResponse])
async def complete_order_item(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Buyer confirms receipt of one item."""
    item = await OrderLedger(db).complete_item(user.user_id, item_id)
    return ok("Order item marked as completed", OrderItemResponse.model_validate(item))


@router.patch("/{order_id}/cancel", response_model=ApiResponse[OrderResponse])
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an order that has no completed items; pending items are restocked."""
    order = await OrderLedger(db).cancel_order(user.user_id, order_id)
    return ok("Order cancelled", OrderResponse.model_validate(order))
