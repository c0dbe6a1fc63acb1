"""
Seller fulfillment - order items as seen by the shop that sells them.

A seller only ever sees items whose product belongs to their shop; any
other item id is reported as not found.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.errors import InvalidTransition, NotFoundError, ValidationError
from storefront.models import Order, OrderItem, Product, Shop
from storefront.models.status import OrderItemStatus, ensure_transition, parse_status
from storefront.services.catalog import CatalogStore
from storefront.services.pagination import Page
from storefront.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)

SELLER_TARGETS = (OrderItemStatus.CANCELLED, OrderItemStatus.DELIVERED)


class FulfillmentService:

    def __init__(self, db: AsyncSession, catalog: Optional[CatalogStore] = None):
        self.db = db
        self.catalog = catalog or CatalogStore(db)

    def _seller_items(self, seller_user_id: int):
        return (
            select(OrderItem)
            .join(Product, Product.id == OrderItem.product_id)
            .join(Shop, Shop.id == Product.shop_id)
            .where(Shop.user_id == seller_user_id)
        )

    async def list_items(
        self,
        seller_user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[OrderItem]:
        """Items sold by this seller, newest order first."""
        status_filter = parse_status(OrderItemStatus, status)
        window = Page.from_params(page, page_size)

        query = (
            self._seller_items(seller_user_id)
            .join(Order, Order.id == OrderItem.order_id)
            .options(
                selectinload(OrderItem.product),
                selectinload(OrderItem.order).selectinload(Order.user),
            )
        )
        if status_filter is not None:
            query = query.where(OrderItem.status == status_filter)

        query = (
            query.order_by(desc(Order.created_at), desc(OrderItem.id))
            .offset(window.offset)
            .limit(window.size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_item(self, seller_user_id: int, item_id: int) -> OrderItem:
        item = await self.db.scalar(
            self._seller_items(seller_user_id)
            .where(OrderItem.id == item_id)
            .options(
                selectinload(OrderItem.product),
                selectinload(OrderItem.order).selectinload(Order.user),
            )
        )
        if not item:
            raise NotFoundError("Order item not found")
        return item

    async def _locked_item(self, seller_user_id: int, item_id: int) -> OrderItem:
        item = await self.db.scalar(
            self._seller_items(seller_user_id)
            .where(OrderItem.id == item_id)
            .with_for_update(of=OrderItem)
            .execution_options(populate_existing=True)
        )
        if not item:
            raise NotFoundError("Order item not found")
        return item

    async def mark_delivered(self, seller_user_id: int, item_id: int) -> OrderItem:
        """PENDING -> DELIVERED, exactly once."""
        async def _work():
            item = await self._locked_item(seller_user_id, item_id)
            if item.status == OrderItemStatus.DELIVERED:
                raise InvalidTransition(
                    "Item already marked as DELIVERED",
                    current_status=item.status.value,
                )
            ensure_transition(
                item.status,
                OrderItemStatus.DELIVERED,
                f"Invalid transition. Current status: {item.status.value}. "
                f"Only PENDING -> DELIVERED allowed.",
            )
            item.status = OrderItemStatus.DELIVERED
            await self.db.flush()
            return item

        item = await run_in_transaction(self.db, _work)
        logger.info(f"🚚 Order item {item_id} marked as DELIVERED by seller {seller_user_id}")
        return item

    async def update_item_status(self, seller_user_id: int, item_id: int, status: Optional[str]) -> OrderItem:
        """
        Seller moves a PENDING item to DELIVERED or CANCELLED.

        Cancelling returns the item's quantity to stock in the same
        transaction as the status change.
        """
        target = str(status or "").strip().upper()
        if target not in {s.value for s in SELLER_TARGETS}:
            raise ValidationError("Only CANCELLED or DELIVERED are allowed by seller")
        target = OrderItemStatus(target)

        async def _work():
            item = await self._locked_item(seller_user_id, item_id)
            ensure_transition(item.status, target, "Invalid status transition (must be from PENDING)")

            item.status = target
            if target == OrderItemStatus.CANCELLED:
                await self.catalog.increment_stock(item.product_id, item.quantity)
            await self.db.flush()
            return item

        item = await run_in_transaction(self.db, _work)
        logger.info(f"Order item {item_id} set to {target.value} by seller {seller_user_id}")
        return item
