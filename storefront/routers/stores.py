"""
Stores API Router.

Public shop pages, addressed by id or by slug.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.schemas import ApiResponse, ShopResponse, ok
from storefront.services.shops import ShopService

router = APIRouter()


@router.get("/slug/{slug}", response_model=ApiResponse[ShopResponse])
async def get_store_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    shop = await ShopService(db).get_store_by_slug(slug)
    return ok("OK", ShopResponse.model_validate(shop))


@router.get("/{shop_id}", response_model=ApiResponse[ShopResponse])
async def get_store(shop_id: int, db: AsyncSession = Depends(get_db)):
    shop = await ShopService(db).get_store(shop_id)
    return ok("OK", ShopResponse.model_validate(shop))
