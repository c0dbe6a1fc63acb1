"""
Seller Fulfillment API Router.

Lets a shop owner see the order items for their products and move them
through delivery or cancellation.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth_middleware import CurrentUser
from storefront.database import get_db
from storefront.models.status import OrderStatus, ShippingMethod
from storefront.routers.dependencies import require_seller
from storefront.schemas import ApiResponse, BuyerSummary, OrderItemResponse, ProductSummary, ok
from storefront.services.fulfillment import FulfillmentService

router = APIRouter()


class SellerOrderSummary(BaseModel):
    id: int
    created_at: datetime
    address: str
    shipping: ShippingMethod
    status: OrderStatus
    user: BuyerSummary

    class Config:
        from_attributes = True


class SellerOrderItemResponse(OrderItemResponse):
    """Order item with the product and buyer context a seller needs to ship it."""
    product: ProductSummary
    order: SellerOrderSummary


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


@router.get("/order-items", response_model=ApiResponse[List[SellerOrderItemResponse]])
async def list_order_items(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    """List order items for the seller's products, newest order first."""
    items = await FulfillmentService(db).list_items(seller.user_id, page=page, page_size=limit, status=status)
    return ok("OK", [SellerOrderItemResponse.model_validate(i) for i in items])


@router.get("/order-items/{item_id}", response_model=ApiResponse[SellerOrderItemResponse])
async def get_order_item(
    item_id: int,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    item = await FulfillmentService(db).get_item(seller.user_id, item_id)
    return ok("OK", SellerOrderItemResponse.model_validate(item))


@router.patch("/order-items/{item_id}/status", response_model=ApiResponse[OrderItemResponse])
async def update_order_item_status(
    item_id: int,
    body: Optional[StatusUpdateRequest] = None,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    """Move a PENDING item to DELIVERED or CANCELLED (cancelling restocks)."""
    item = await FulfillmentService(db).update_item_status(seller.user_id, item_id, body.status if body else None)
    return ok("Order item status updated", OrderItemResponse.model_validate(item))


@router.patch("/order-items/{item_id}/deliver", response_model=ApiResponse[OrderItemResponse])
async def deliver_order_item(
    item_id: int,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    item = await FulfillmentService(db).mark_delivered(seller.user_id, item_id)
    return ok("Order item marked as DELIVERED", OrderItemResponse.model_validate(item))
