"""
Seller Shop API Router.

Opening a shop, editing its profile, and managing the products it sells.
Activation only needs a signed-in user; everything else requires the seller
claim and an existing shop.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth_middleware import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.routers.dependencies import require_seller
from storefront.schemas import ApiResponse, ProductResponse, ShopResponse, ok
from storefront.services.catalog import CatalogStore
from storefront.services.shops import ShopService

router = APIRouter()


class ShopRequest(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    address: Optional[str] = None
    logo: Optional[str] = None  # URL


class ProductRequest(BaseModel):
    """Price, stock and category are range-checked by the catalog."""
    title: Optional[str] = None
    description: Optional[str] = None
    price: Any = None
    stock: Any = None
    category_id: Any = Field(None, alias="categoryId")
    images: Any = None

    class Config:
        populate_by_name = True


# =========================================================================
# Shop
# =========================================================================

@router.post("/activate", status_code=201, response_model=ApiResponse[ShopResponse])
async def activate_seller(
    body: ShopRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open the caller's shop. The seller claim arrives with the next token."""
    shop = await ShopService(db).activate(
        user_id=user.user_id,
        name=body.name,
        slug=body.slug,
        address=body.address,
        logo=body.logo,
    )
    return ok("Seller activated successfully", ShopResponse.model_validate(shop))


@router.get("/shop", response_model=ApiResponse[ShopResponse])
async def get_my_shop(
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    shop = await ShopService(db).get_my_shop(seller.user_id)
    return ok("OK", ShopResponse.model_validate(shop))


@router.patch("/shop", response_model=ApiResponse[ShopResponse])
async def update_my_shop(
    body: ShopRequest,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    shop = await ShopService(db).update_shop(
        seller.user_id,
        name=body.name,
        slug=body.slug,
        address=body.address,
        logo=body.logo,
    )
    return ok("Shop updated successfully", ShopResponse.model_validate(shop))


# =========================================================================
# Products
# =========================================================================

@router.get("/products", response_model=ApiResponse[List[ProductResponse]])
async def list_my_products(
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    shop_id = await ShopService(db).shop_id_for(seller.user_id)
    products = await CatalogStore(db).list_shop_products(shop_id)
    return ok("OK", [ProductResponse.model_validate(p) for p in products])


@router.post("/products", status_code=201, response_model=ApiResponse[ProductResponse])
async def create_product(
    body: ProductRequest,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    shop_id = await ShopService(db).shop_id_for(seller.user_id)
    product = await CatalogStore(db).create_product(
        shop_id,
        title=body.title,
        description=body.description,
        price=body.price,
        stock=body.stock,
        category_id=body.category_id,
        images=body.images,
    )
    return ok("Product created successfully", ProductResponse.model_validate(product))


@router.put("/products/{product_id}", response_model=ApiResponse[ProductResponse])
async def update_product(
    product_id: int,
    body: ProductRequest,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    """Update the supplied fields of one of the caller's products."""
    shop_id = await ShopService(db).shop_id_for(seller.user_id)
    product = await CatalogStore(db).update_product(
        shop_id,
        product_id,
        title=body.title,
        description=body.description,
        price=body.price,
        stock=body.stock,
        category_id=body.category_id,
        images=body.images,
    )
    return ok("Product updated", ProductResponse.model_validate(product))


@router.delete("/products/{product_id}", response_model=ApiResponse[None])
async def delete_product(
    product_id: int,
    seller: CurrentUser = Depends(require_seller),
    db: AsyncSession = Depends(get_db),
):
    shop_id = await ShopService(db).shop_id_for(seller.user_id)
    await CatalogStore(db).delete_product(shop_id, product_id)
    return ok("Product deleted")
