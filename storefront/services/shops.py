"""
Shop Service - seller activation and shop profiles.

A user becomes a seller by opening exactly one shop. Shops are addressed
publicly by id or by slug. The access token that carries the seller claim
is minted by the account service, so a freshly activated seller keeps the
buyer-only claim until their next token.
"""

import logging
import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.errors import NotFoundError, ValidationError
from storefront.models import Shop, User
from storefront.services.transactions import run_in_transaction

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """'Demo Shop!' -> 'demo-shop'"""
    cleaned = re.sub(r"[^\w\s-]", "", text.lower()).strip()
    return re.sub(r"\s+", "-", cleaned)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class ShopService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _slug_taken(self, slug: str, exclude_shop_id: Optional[int] = None) -> bool:
        query = select(Shop.id).where(Shop.slug == slug)
        if exclude_shop_id is not None:
            query = query.where(Shop.id != exclude_shop_id)
        return await self.db.scalar(query) is not None

    async def _with_products(self, *criteria) -> Optional[Shop]:
        return await self.db.scalar(
            select(Shop)
            .where(*criteria)
            .options(selectinload(Shop.products))
            .execution_options(populate_existing=True)
        )

    async def activate(
        self,
        user_id: int,
        name: Optional[str],
        slug: Optional[str] = None,
        address: Optional[str] = None,
        logo: Optional[str] = None,
    ) -> Shop:
        """
        Open the user's shop and flag the account as a seller.

        Raises:
            ValidationError: blank name, shop already open, or slug in use.
            NotFoundError: unknown user.
        """
        if _blank(name):
            raise ValidationError("Shop name is required")
        name = name.strip()
        shop_slug = slugify(slug if not _blank(slug) else name)
        if not shop_slug:
            raise ValidationError("Invalid slug")

        async def _work():
            user = await self.db.get(User, user_id)
            if not user:
                raise NotFoundError("User not found")
            if await self.db.scalar(select(Shop.id).where(Shop.user_id == user_id)) is not None:
                raise ValidationError("You already activated seller mode")
            if await self._slug_taken(shop_slug):
                raise ValidationError("Shop slug already taken")

            shop = Shop(user_id=user_id, name=name, slug=shop_slug, address=address, logo=logo)
            self.db.add(shop)
            user.is_seller = True
            try:
                await self.db.flush()
            except IntegrityError:
                # Lost a race on the unique slug or owner
                raise ValidationError("Shop slug already taken")
            return shop

        shop = await run_in_transaction(self.db, _work)
        logger.info(f"🏪 User {user_id} activated seller mode with shop {shop.id} ({shop.slug})")
        return await self.get_my_shop(user_id)

    async def shop_id_for(self, user_id: int) -> int:
        shop_id = await self.db.scalar(select(Shop.id).where(Shop.user_id == user_id))
        if shop_id is None:
            raise NotFoundError("Shop not found")
        return shop_id

    async def get_my_shop(self, user_id: int) -> Shop:
        shop = await self._with_products(Shop.user_id == user_id)
        if not shop:
            raise NotFoundError("Shop not found")
        return shop

    async def update_shop(
        self,
        user_id: int,
        name: Optional[str] = None,
        slug: Optional[str] = None,
        address: Optional[str] = None,
        logo: Optional[str] = None,
    ) -> Shop:
        """Change the shop profile. Blank or omitted fields keep their value."""
        async def _work():
            shop = await self.db.scalar(select(Shop).where(Shop.user_id == user_id))
            if not shop:
                raise NotFoundError("Shop not found")

            if not _blank(name):
                shop.name = name.strip()
            if not _blank(slug):
                new_slug = slugify(slug)
                if not new_slug:
                    raise ValidationError("Invalid slug")
                if await self._slug_taken(new_slug, exclude_shop_id=shop.id):
                    raise ValidationError("Shop slug already taken")
                shop.slug = new_slug
            if not _blank(address):
                shop.address = address
            if not _blank(logo):
                shop.logo = logo
            try:
                await self.db.flush()
            except IntegrityError:
                raise ValidationError("Shop slug already taken")

        await run_in_transaction(self.db, _work)
        logger.info(f"Shop of user {user_id} updated")
        return await self.get_my_shop(user_id)

    async def get_store(self, shop_id: int) -> Shop:
        shop = await self._with_products(Shop.id == shop_id)
        if not shop:
            raise NotFoundError("Store not found")
        return shop

    async def get_store_by_slug(self, slug: str) -> Shop:
        shop = await self._with_products(Shop.slug == slug)
        if not shop:
            raise NotFoundError("Store not found")
        return shop
