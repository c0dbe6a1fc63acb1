"""
Review Gate - product reviews restricted to completed purchases.

A user may review a product only after an order of theirs that contains
the product has reached COMPLETED. Reviews are unique per (user, product):
submitting again overwrites the earlier rating and comment. The write is a
single upsert against the unique constraint, so concurrent submissions
cannot create duplicates.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, or_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.errors import NotEligibleError, NotFoundError, ValidationError
from storefront.models import Order, OrderItem, Product, Review
from storefront.models.status import OrderStatus
from storefront.services.catalog import CatalogStore
from storefront.services.pagination import Page
from storefront.services.transactions import dialect_insert, run_in_transaction

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _valid_rating(rating) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and MIN_RATING <= rating <= MAX_RATING


class ReviewGate:

    def __init__(self, db: AsyncSession, catalog: Optional[CatalogStore] = None):
        self.db = db
        self.catalog = catalog or CatalogStore(db)

    async def has_completed_purchase(self, user_id: int, product_id: int) -> bool:
        found = await self.db.scalar(
            select(OrderItem.id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(
                OrderItem.product_id == product_id,
                Order.user_id == user_id,
                Order.status == OrderStatus.COMPLETED,
            )
            .limit(1)
        )
        return found is not None

    async def _find(self, user_id: int, product_id: int) -> Optional[Review]:
        return await self.db.scalar(
            select(Review)
            .where(Review.user_id == user_id, Review.product_id == product_id)
            .execution_options(populate_existing=True)
        )

    def _upsert(self, user_id: int, product_id: int, rating: int, comment: str):
        """INSERT ... ON CONFLICT (user_id, product_id) DO UPDATE, per dialect."""
        stmt = dialect_insert(self.db, Review).values(
            user_id=user_id,
            product_id=product_id,
            rating=rating,
            comment=comment,
        )
        return stmt.on_conflict_do_update(
            index_elements=[Review.user_id, Review.product_id],
            set_={
                "rating": stmt.excluded.rating,
                "comment": stmt.excluded.comment,
                "updated_at": datetime.utcnow(),
            },
        )

    async def submit_review(
        self,
        user_id: int,
        product_id: int,
        rating: int,
        comment: Optional[str] = "",
    ) -> Review:
        """
        Create or overwrite the user's review of a product.

        Raises:
            ValidationError: product id or rating out of range.
            NotEligibleError: no completed order contains the product.
        """
        if not product_id or product_id <= 0 or not _valid_rating(rating):
            raise ValidationError("Invalid productId or rating")
        comment = comment or ""

        async def _work():
            if not await self.has_completed_purchase(user_id, product_id):
                raise NotEligibleError()

            await self.db.execute(self._upsert(user_id, product_id, rating, comment))
            return await self._find(user_id, product_id)

        review = await run_in_transaction(self.db, _work)
        logger.info(f"⭐ Review {review.id} saved by user {user_id} for product {product_id}")
        return review

    async def list_product_reviews(
        self,
        product_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> List[Review]:
        await self.catalog.require_product(product_id)
        window = Page.from_params(page, page_size)

        result = await self.db.execute(
            select(Review)
            .where(Review.product_id == product_id)
            .options(selectinload(Review.user))
            .order_by(desc(Review.created_at), desc(Review.id))
            .offset(window.offset)
            .limit(window.size)
        )
        return list(result.scalars().all())

    async def list_my_reviews(
        self,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        rating: Optional[int] = None,
        q: Optional[str] = None,
    ) -> List[Review]:
        """The user's reviews, optionally by exact rating or text match."""
        window = Page.from_params(page, page_size)

        query = (
            select(Review)
            .join(Product, Product.id == Review.product_id)
            .where(Review.user_id == user_id)
            .options(selectinload(Review.product))
        )
        if rating is not None:
            query = query.where(Review.rating == rating)
        if q:
            pattern = f"%{q}%"
            query = query.where(or_(Review.comment.ilike(pattern), Product.title.ilike(pattern)))

        query = (
            query.order_by(desc(Review.created_at), desc(Review.id))
            .offset(window.offset)
            .limit(window.size)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_eligible_products(
        self,
        user_id: int,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> List[Product]:
        """Products from the user's completed orders they have not reviewed yet."""
        window = Page.from_params(page, page_size)

        reviewed = select(Review.product_id).where(Review.user_id == user_id)
        purchased = (
            select(OrderItem.product_id)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.user_id == user_id, Order.status == OrderStatus.COMPLETED)
        )
        result = await self.db.execute(
            select(Product)
            .where(Product.id.in_(purchased), Product.id.not_in(reviewed))
            .order_by(Product.id)
            .offset(window.offset)
            .limit(window.size)
        )
        return list(result.scalars().all())

    async def delete_review(self, user_id: int, review_id: int) -> None:
        async def _work():
            review = await self.db.get(Review, review_id)
            if not review or review.user_id != user_id:
                raise NotFoundError("Review not found")
            await self.db.delete(review)

        await run_in_transaction(self.db, _work)
        logger.info(f"Review {review_id} deleted by user {user_id}")
