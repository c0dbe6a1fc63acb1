"""
Categories API Router.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.schemas import ApiResponse, CategoryResponse, ok
from storefront.services.catalog import CatalogStore

router = APIRouter()


@router.get("", response_model=ApiResponse[List[CategoryResponse]])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """All categories; the base set is created on first use."""
    categories = await CatalogStore(db).list_categories()
    return ok("OK", [CategoryResponse.model_validate(c) for c in categories])
