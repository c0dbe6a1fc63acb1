"""
Catalog Store - categories, product browsing, seller product management and
stock adjustments.

Stock is only ever changed through `adjust_stock`, which refuses to drive
it below zero. Callers are expected to run inside run_in_transaction so a
refused decrement rolls back everything else in the unit of work. The one
exception is a seller setting the absolute on-hand quantity through
`update_product`.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, update, delete, func, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.errors import InsufficientStockError, InvalidState, NotFoundError, ValidationError
from storefront.models import CartItem, Category, OrderItem, Product
from storefront.services.pagination import Page
from storefront.services.transactions import dialect_insert, run_in_transaction

logger = logging.getLogger(__name__)

CATALOG_PAGE_SIZE = 20

BASE_CATEGORIES = (
    ("Fashion", "fashion"),
    ("Electronics", "electronics"),
    ("Others", "others"),
)

SORT_COLUMNS = {
    "newest": Product.created_at,
    "price": Product.price,
    "name": Product.title,
}


def _non_negative_int(value) -> Optional[int]:
    """Integers and integral strings >= 0; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
        return int(value)
    if isinstance(value, int) and value >= 0:
        return value
    return None


def _image_urls(images) -> List[str]:
    if images is None:
        return []
    if not isinstance(images, (list, tuple)) or not all(isinstance(i, str) for i in images):
        raise ValidationError("Invalid images")
    return list(images)


class CatalogStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_product(self, product_id: int) -> Optional[Product]:
        return await self.db.get(Product, product_id)

    async def require_product(self, product_id: int) -> Product:
        product = await self.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    async def adjust_stock(self, product_id: int, delta: int) -> None:
        """
        Add `delta` to a product's stock.

        Negative deltas are applied as a guarded UPDATE (`WHERE stock >= n`);
        if no row matches, either the product is gone or stock is short.
        """
        if delta == 0:
            return

        stmt = update(Product).where(Product.id == product_id)
        if delta < 0:
            stmt = stmt.where(Product.stock >= -delta)
        stmt = stmt.values(stock=Product.stock + delta)

        result = await self.db.execute(stmt)
        if result.rowcount == 1:
            return

        exists = await self.db.scalar(select(Product.id).where(Product.id == product_id))
        if exists is None:
            raise NotFoundError("Product not found")

        logger.warning(f"Refused stock decrement of {-delta} for product {product_id}")
        raise InsufficientStockError(product_id, -delta)

    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        await self.adjust_stock(product_id, -quantity)

    async def increment_stock(self, product_id: int, quantity: int) -> None:
        await self.adjust_stock(product_id, quantity)
        logger.info(f"Restocked product {product_id} by {quantity}")

    # ------------------------------------------------------------------
    # Public browsing
    # ------------------------------------------------------------------

    async def list_products(
        self,
        page=None,
        page_size=None,
        sort: Optional[str] = "newest",
        order: Optional[str] = "desc",
        q: Optional[str] = None,
    ) -> Tuple[List[Product], int]:
        """
        One page of the catalog and the total number of matching products.

        Unknown sort keys fall back to newest, unknown directions to desc.
        """
        window = Page.from_params(page, page_size, default_size=CATALOG_PAGE_SIZE)
        column = SORT_COLUMNS.get((sort or "").lower(), Product.created_at)
        direction = asc if (order or "").lower() == "asc" else desc

        filters = []
        if q:
            filters.append(Product.title.ilike(f"%{q}%"))

        total = await self.db.scalar(select(func.count(Product.id)).where(*filters))
        result = await self.db.execute(
            select(Product)
            .where(*filters)
            .options(selectinload(Product.category), selectinload(Product.shop))
            .order_by(direction(column), direction(Product.id))
            .offset(window.offset)
            .limit(window.size)
        )
        return list(result.scalars().all()), total or 0

    async def get_product_detail(self, product_id: int) -> Product:
        product = await self.db.scalar(
            select(Product)
            .where(Product.id == product_id)
            .options(selectinload(Product.category), selectinload(Product.shop))
            .execution_options(populate_existing=True)
        )
        if not product:
            raise NotFoundError("Product not found")
        return product

    async def list_categories(self) -> List[Category]:
        """Make sure the base categories exist, then return every category."""
        async def _work():
            for name, slug in BASE_CATEGORIES:
                stmt = dialect_insert(self.db, Category).values(name=name, slug=slug)
                await self.db.execute(stmt.on_conflict_do_update(
                    index_elements=[Category.slug],
                    set_={"name": stmt.excluded.name},
                ))
            result = await self.db.execute(select(Category).order_by(Category.id))
            return list(result.scalars().all())

        return await run_in_transaction(self.db, _work)

    # ------------------------------------------------------------------
    # Seller products
    # ------------------------------------------------------------------

    async def list_shop_products(self, shop_id: int) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.shop_id == shop_id)
            .options(selectinload(Product.category), selectinload(Product.shop))
            .order_by(desc(Product.created_at), desc(Product.id))
        )
        return list(result.scalars().all())

    async def _owned_product(self, shop_id: int, product_id: int) -> Product:
        product = await self.db.get(Product, product_id, populate_existing=True)
        if not product or product.shop_id != shop_id:
            raise NotFoundError("Product not found")
        return product

    async def _check_category(self, category_id) -> int:
        category_id = _non_negative_int(category_id)
        if not category_id or await self.db.get(Category, category_id) is None:
            raise ValidationError("Invalid categoryId")
        return category_id

    async def create_product(
        self,
        shop_id: int,
        title: Optional[str],
        description: Optional[str] = None,
        price=None,
        stock=None,
        category_id=None,
        images: Optional[Sequence[str]] = None,
    ) -> Product:
        """
        Add a product to the seller's shop.

        Raises:
            ValidationError: blank title, negative or non-integer price or
                stock, unknown category, or images that are not URL strings.
        """
        if not title or not str(title).strip():
            raise ValidationError("Title is required")
        checked_price = _non_negative_int(price)
        if checked_price is None:
            raise ValidationError("Invalid price")
        checked_stock = _non_negative_int(stock)
        if checked_stock is None:
            raise ValidationError("Invalid stock")
        urls = _image_urls(images)

        async def _work():
            product = Product(
                shop_id=shop_id,
                category_id=await self._check_category(category_id),
                title=str(title).strip(),
                description=description,
                price=checked_price,
                stock=checked_stock,
                images=urls,
            )
            self.db.add(product)
            await self.db.flush()
            return product

        product = await run_in_transaction(self.db, _work)
        logger.info(f"📦 Product {product.id} created in shop {shop_id}")
        return await self.get_product_detail(product.id)

    async def update_product(
        self,
        shop_id: int,
        product_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        price=None,
        stock=None,
        category_id=None,
        images: Optional[Sequence[str]] = None,
    ) -> Product:
        """Change the supplied fields of one of the shop's products."""
        if title is not None and not str(title).strip():
            raise ValidationError("Title is required")
        checked_price = _non_negative_int(price)
        if price is not None and checked_price is None:
            raise ValidationError("Invalid price")
        checked_stock = _non_negative_int(stock)
        if stock is not None and checked_stock is None:
            raise ValidationError("Invalid stock")
        urls = _image_urls(images) if images is not None else None

        async def _work():
            product = await self._owned_product(shop_id, product_id)
            if title is not None:
                product.title = str(title).strip()
            if description is not None:
                product.description = description
            if checked_price is not None:
                product.price = checked_price
            if checked_stock is not None:
                product.stock = checked_stock
            if category_id is not None:
                product.category_id = await self._check_category(category_id)
            if urls is not None:
                product.images = urls
            await self.db.flush()

        await run_in_transaction(self.db, _work)
        logger.info(f"Product {product_id} updated in shop {shop_id}")
        return await self.get_product_detail(product_id)

    async def delete_product(self, shop_id: int, product_id: int) -> None:
        """
        Remove a product and any cart lines holding it.

        Products that appear in an order stay, since orders keep their items.
        """
        async def _work():
            product = await self._owned_product(shop_id, product_id)
            ordered = await self.db.scalar(
                select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)
            )
            if ordered is not None:
                raise InvalidState("Product has orders and cannot be deleted")

            await self.db.execute(delete(CartItem).where(CartItem.product_id == product_id))
            await self.db.delete(product)

        await run_in_transaction(self.db, _work)
        logger.info(f"🗑️ Product {product_id} deleted from shop {shop_id}")
