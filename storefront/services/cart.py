"""
Cart Store - per-user cart lines awaiting checkout.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.errors import NotFoundError, ValidationError
from storefront.models import CartItem, Product
from storefront.services.catalog import CatalogStore
from storefront.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


class CartStore:
    """
    Reads and edits a user's cart.

    Lines are unique per (user, product); adding a product already in the
    cart increases the existing line instead of creating a second one.
    """

    def __init__(self, db: AsyncSession, catalog: Optional[CatalogStore] = None):
        self.db = db
        self.catalog = catalog or CatalogStore(db)

    async def list_lines(
        self,
        user_id: int,
        id_filter: Optional[Iterable[int]] = None,
    ) -> List[CartItem]:
        """Cart lines for a user, each with its product loaded."""
        query = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .options(selectinload(CartItem.product).selectinload(Product.shop))
            .order_by(CartItem.id)
        )
        if id_filter is not None:
            query = query.where(CartItem.id.in_(list(id_filter)))

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_line(self, line_id: int) -> None:
        await self.db.execute(delete(CartItem).where(CartItem.id == line_id))

    async def _owned_line(self, user_id: int, line_id: int) -> CartItem:
        line = await self.db.get(CartItem, line_id)
        if not line or line.user_id != user_id:
            raise NotFoundError("Cart item not found")
        return line

    async def view_cart(self, user_id: int) -> dict:
        """
        Group cart lines by shop.

        Returns {"groups": [{"shop", "items": [{"line", "subtotal"}], "total"}],
        "grand_total"} with groups in first-seen order.
        """
        lines = await self.list_lines(user_id)

        groups: dict[int, dict] = {}
        for line in lines:
            subtotal = line.quantity * line.product.price
            group = groups.setdefault(
                line.product.shop_id,
                {"shop": line.product.shop, "items": [], "total": 0},
            )
            group["items"].append({"line": line, "subtotal": subtotal})
            group["total"] += subtotal

        grand_total = sum(g["total"] for g in groups.values())
        return {"groups": list(groups.values()), "grand_total": grand_total}

    async def add_item(self, user_id: int, product_id: int, qty: int = 1) -> Tuple[CartItem, bool]:
        """
        Add `qty` of a product to the cart.

        Returns (line, created) where created is False when an existing
        line's quantity was increased.
        """
        if not product_id or product_id <= 0 or qty is None or qty <= 0:
            raise ValidationError("Invalid productId or qty")

        async def _work():
            await self.catalog.require_product(product_id)

            existing = await self.db.scalar(
                select(CartItem).where(
                    CartItem.user_id == user_id,
                    CartItem.product_id == product_id,
                )
            )
            if existing:
                existing.quantity = existing.quantity + qty
                await self.db.flush()
                return existing, False

            line = CartItem(user_id=user_id, product_id=product_id, quantity=qty)
            self.db.add(line)
            await self.db.flush()
            return line, True

        return await run_in_transaction(self.db, _work)

    async def update_quantity(self, user_id: int, line_id: int, qty: int) -> CartItem:
        if qty is None or qty <= 0:
            raise ValidationError("Invalid qty")

        async def _work():
            line = await self._owned_line(user_id, line_id)
            line.quantity = qty
            await self.db.flush()
            return line

        return await run_in_transaction(self.db, _work)

    async def remove_item(self, user_id: int, line_id: int) -> None:
        async def _work():
            await self._owned_line(user_id, line_id)
            await self.delete_line(line_id)

        await run_in_transaction(self.db, _work)

    async def clear(self, user_id: int) -> None:
        async def _work():
            await self.db.execute(delete(CartItem).where(CartItem.user_id == user_id))

        await run_in_transaction(self.db, _work)
        logger.info(f"Cleared cart for user {user_id}")
