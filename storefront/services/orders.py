"""
Order Ledger
============

Owns the Order / OrderItem lifecycle and the stock side effects that go
with it:

- checkout: cart lines -> one PAID order with PENDING items, stock
  decremented, consumed cart lines deleted
- complete_item: buyer confirms one item; the order completes when its
  last item does
- cancel_order: every PENDING item is cancelled and restocked

Each mutation runs as a single transaction through run_in_transaction.
Ownership failures surface as NotFoundError so other users' orders are
indistinguishable from missing ones.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.errors import EmptyCartError, InvalidState, NotFoundError, ValidationError
from storefront.models import Order, OrderItem
from storefront.models.status import (
    OrderItemStatus,
    OrderStatus,
    PaymentMethod,
    ShippingMethod,
    ensure_transition,
    parse_status,
)
from storefront.services.cart import CartStore
from storefront.services.catalog import CatalogStore
from storefront.services.pagination import Page
from storefront.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def _coerce_choice(enum_cls, raw, field: str):
    try:
        return enum_cls(str(raw).upper())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field}. Allowed: {allowed}")


class OrderLedger:
    """Buyer-side order operations for one data-access session."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: Optional[CatalogStore] = None,
        cart: Optional[CartStore] = None,
    ):
        self.db = db
        self.catalog = catalog or CatalogStore(db)
        self.cart = cart or CartStore(db, self.catalog)

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    async def checkout(
        self,
        user_id: int,
        address: Optional[str],
        shipping: Optional[str],
        payment: Optional[str],
        selected_item_ids: Optional[Iterable[int]] = None,
    ) -> Order:
        """
        Convert the user's cart lines into one order.

        Payment is mocked, so the order is created PAID. Unit prices are
        snapshotted onto the items and the total is fixed here.

        Raises:
            ValidationError: a required field is missing or unknown.
            EmptyCartError: no cart lines matched.
            InsufficientStockError: a product ran out; nothing is committed.
        """
        if not address or not str(address).strip() or not shipping or not payment:
            raise ValidationError("Missing required fields: address, shipping, or payment")

        shipping_method = _coerce_choice(ShippingMethod, shipping, "shipping")
        payment_method = _coerce_choice(PaymentMethod, payment, "payment")
        id_filter = list(selected_item_ids) if selected_item_ids is not None else None

        async def _work():
            lines = await self.cart.list_lines(user_id, id_filter)
            if not lines:
                raise EmptyCartError()

            total = sum(line.quantity * line.product.price for line in lines)

            order = Order(
                user_id=user_id,
                status=OrderStatus.PAID,
                total=total,
                address=address,
                shipping=shipping_method,
                payment=payment_method,
                items=[
                    OrderItem(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        price=line.product.price,
                        status=OrderItemStatus.PENDING,
                    )
                    for line in lines
                ],
            )
            self.db.add(order)
            await self.db.flush()

            for line in lines:
                await self.catalog.decrement_stock(line.product_id, line.quantity)
                await self.cart.delete_line(line.id)

            return order

        order = await run_in_transaction(self.db, _work)
        logger.info(
            f"🧾 Order {order.id} created for user {order.user_id}: "
            f"{len(order.items)} item(s), total {order.total}"
        )
        return order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_orders(
        self,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[Order]:
        """The user's orders, newest first, with items loaded."""
        status_filter = parse_status(OrderStatus, status)
        window = Page.from_params(page, page_size)

        query = (
            select(Order)
            .where(Order.user_id == user_id)
            .options(selectinload(Order.items))
        )
        if status_filter is not None:
            query = query.where(Order.status == status_filter)

        query = (
            query.order_by(desc(Order.created_at), desc(Order.id))
            .offset(window.offset)
            .limit(window.size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_order(self, user_id: int, order_id: int) -> Order:
        order = await self.db.scalar(
            select(Order)
            .where(Order.id == order_id, Order.user_id == user_id)
            .options(selectinload(Order.items))
        )
        if not order:
            raise NotFoundError("Order not found")
        return order

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _lock_order(self, order_id: int) -> Order:
        """
        Take the order row lock, then return the order.

        Only the key is selected FOR UPDATE, so an Order already in the
        session keeps its loaded items collection.
        """
        await self.db.execute(
            select(Order.id).where(Order.id == order_id).with_for_update()
        )
        return await self.db.get(Order, order_id)

    async def complete_item(self, user_id: int, item_id: int) -> OrderItem:
        """
        Buyer confirms receipt of one item (PENDING -> COMPLETED).

        The sibling scan runs after the write and under the order row lock,
        so two items completing concurrently cannot both miss each other.
        """
        async def _work():
            order_id = await self.db.scalar(
                select(OrderItem.order_id)
                .join(Order, Order.id == OrderItem.order_id)
                .where(OrderItem.id == item_id, Order.user_id == user_id)
            )
            if order_id is None:
                raise NotFoundError("Order item not found")

            order = await self._lock_order(order_id)
            item = await self.db.scalar(
                select(OrderItem)
                .where(OrderItem.id == item_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            ensure_transition(item.status, OrderItemStatus.COMPLETED, "Invalid status transition")

            item.status = OrderItemStatus.COMPLETED
            await self.db.flush()

            remaining = await self.db.scalar(
                select(func.count(OrderItem.id)).where(
                    OrderItem.order_id == order_id,
                    OrderItem.status != OrderItemStatus.COMPLETED,
                )
            )
            if remaining == 0:
                order.status = OrderStatus.COMPLETED
                await self.db.flush()
                logger.info(f"✅ Order {order_id} completed")

            return item

        item = await run_in_transaction(self.db, _work)
        logger.info(f"Order item {item.id} marked as completed by user {user_id}")
        return item

    async def cancel_order(self, user_id: int, order_id: int) -> Order:
        """
        Cancel an order that has no completed items.

        PENDING items become CANCELLED and their quantity returns to stock.
        DELIVERED items are left as they are; the order is CANCELLED anyway.
        Cancelling an already cancelled order changes nothing, because none
        of its items is PENDING any more.
        """
        async def _work():
            owned = await self.db.scalar(
                select(Order.id).where(Order.id == order_id, Order.user_id == user_id)
            )
            if owned is None:
                raise NotFoundError("Order not found")

            order = await self._lock_order(order_id)
            items = list((await self.db.execute(
                select(OrderItem)
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )).scalars().all())

            if any(item.status == OrderItemStatus.COMPLETED for item in items):
                raise InvalidState("Order has completed items")

            delivered = []
            for item in items:
                if item.status == OrderItemStatus.PENDING:
                    ensure_transition(item.status, OrderItemStatus.CANCELLED)
                    item.status = OrderItemStatus.CANCELLED
                    await self.catalog.increment_stock(item.product_id, item.quantity)
                elif item.status == OrderItemStatus.DELIVERED:
                    delivered.append(item.id)

            order.status = OrderStatus.CANCELLED
            await self.db.flush()

            if delivered:
                logger.warning(
                    f"Order {order_id} cancelled with delivered item(s) {delivered} left in place"
                )
            return order

        await run_in_transaction(self.db, _work)
        logger.info(f"🛑 Order {order_id} cancelled by user {user_id}")
        return await self.get_order(user_id, order_id)
