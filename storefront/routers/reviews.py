"""
Reviews API Router.

Reviews are open to read; writing one requires a completed purchase of
the product.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth_middleware import CurrentUser, get_current_user
from storefront.database import get_db
from storefront.schemas import ApiResponse, ProductSummary, ReviewResponse, UserSummary, ok
from storefront.services.reviews import ReviewGate

router = APIRouter()


class ReviewRequest(BaseModel):
    product_id: Optional[int] = Field(None, alias="productId")
    rating: Optional[int] = None
    comment: Optional[str] = ""

    class Config:
        populate_by_name = True


class ProductReviewResponse(ReviewResponse):
    user: UserSummary


class MyReviewResponse(ReviewResponse):
    product: ProductSummary
    updated_at: datetime


@router.post("", response_model=ApiResponse[ReviewResponse])
async def submit_review(
    body: ReviewRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create or update the caller's review of a product they bought."""
    review = await ReviewGate(db).submit_review(
        user_id=user.user_id,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
    )
    return ok("Review saved", ReviewResponse.model_validate(review))


@router.get("/product/{product_id}", response_model=ApiResponse[List[ProductReviewResponse]])
async def list_product_reviews(
    product_id: int,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    reviews = await ReviewGate(db).list_product_reviews(product_id, page=page, page_size=limit)
    return ok("OK", [ProductReviewResponse.model_validate(r) for r in reviews])


@router.get("/my", response_model=ApiResponse[List[MyReviewResponse]])
async def list_my_reviews(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    rating: Optional[int] = Query(None),
    q: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reviews = await ReviewGate(db).list_my_reviews(
        user.user_id, page=page, page_size=limit, rating=rating, q=q
    )
    return ok("OK", [MyReviewResponse.model_validate(r) for r in reviews])


@router.get("/my/eligible", response_model=ApiResponse[List[ProductSummary]])
async def list_eligible_products(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Products the caller has received but not reviewed yet."""
    products = await ReviewGate(db).list_eligible_products(user.user_id, page=page, page_size=limit)
    return ok("OK", [ProductSummary.model_validate(p) for p in products])


@router.delete("/{review_id}", response_model=ApiResponse[None])
async def delete_review(
    review_id: int,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ReviewGate(db).delete_review(user.user_id, review_id)
    return ok("Review deleted")
