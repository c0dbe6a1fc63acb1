"""
Products API Router.

Public catalog browsing: a paged, searchable product list and product detail.
"""

import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.schemas import ApiResponse, ProductResponse, ok
from storefront.services.catalog import CATALOG_PAGE_SIZE, CatalogStore
from storefront.services.pagination import Page

router = APIRouter()


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")

    class Config:
        populate_by_name = True


class ProductPage(BaseModel):
    products: List[ProductResponse]
    pagination: Pagination


@router.get("", response_model=ApiResponse[ProductPage])
async def list_products(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort: Optional[str] = Query("newest"),
    order: Optional[str] = Query("desc"),
    q: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List products; sort is newest, price or name and order is asc or desc."""
    window = Page.from_params(page, limit, default_size=CATALOG_PAGE_SIZE)
    products, total = await CatalogStore(db).list_products(
        page=window.page, page_size=window.size, sort=sort, order=order, q=q,
    )

    return ok("OK", ProductPage(
        products=[ProductResponse.model_validate(p) for p in products],
        pagination=Pagination(
            page=window.page,
            limit=window.size,
            total=total,
            total_pages=math.ceil(total / window.size),
        ),
    ))


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await CatalogStore(db).get_product_detail(product_id)
    return ok("OK", ProductResponse.model_validate(product))
