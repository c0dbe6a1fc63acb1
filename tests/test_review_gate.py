"""
Tests for the Review Gate.
"""

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.errors import NotEligibleError, NotFoundError, ValidationError
from storefront.models import Base, Review
from storefront.services.orders import OrderLedger
from storefront.services.reviews import ReviewGate


async def _complete_order(db, user_id=5):
    ledger = OrderLedger(db)
    order = await ledger.checkout(user_id, "Jl. Thamrin 3", "JNE", "MANDIRI")
    for item in order.items:
        await ledger.complete_item(user_id, item.id)
    return order


@pytest.mark.asyncio
async def test_review_requires_completed_order(db, seed):
    gate = ReviewGate(db)

    with pytest.raises(NotEligibleError):
        await gate.submit_review(5, seed["product_a"], 5, "Great")

    await _complete_order(db)
    review = await gate.submit_review(5, seed["product_a"], 5, "Great")

    assert review.id is not None
    assert review.rating == 5


@pytest.mark.asyncio
async def test_paid_but_not_completed_is_not_eligible(db, seed):
    await OrderLedger(db).checkout(5, "Jl. Thamrin 3", "JNE", "BNI")

    with pytest.raises(NotEligibleError):
        await ReviewGate(db).submit_review(5, seed["product_a"], 4, "")


@pytest.mark.asyncio
async def test_second_submission_updates_same_row(db, seed):
    await _complete_order(db)
    gate = ReviewGate(db)

    first = await gate.submit_review(5, seed["product_a"], 2, "Meh")
    second = await gate.submit_review(5, seed["product_a"], 4, "Grew on me")

    assert second.id == first.id
    assert second.rating == 4
    assert second.comment == "Grew on me"
    count = await db.scalar(
        select(func.count(Review.id)).where(Review.user_id == 5, Review.product_id == seed["product_a"])
    )
    assert count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("product_id,rating", [(101, 0), (101, 6), (0, 3), (None, 3), (101, None)])
async def test_invalid_rating_or_product(db, seed, product_id, rating):
    with pytest.raises(ValidationError) as exc_info:
        await ReviewGate(db).submit_review(5, product_id, rating, "")
    assert exc_info.value.message == "Invalid productId or rating"


@pytest.mark.asyncio
async def test_eligible_products_excludes_reviewed(db, seed):
    await _complete_order(db)
    gate = ReviewGate(db)

    eligible = await gate.list_eligible_products(5)
    assert [p.id for p in eligible] == [seed["product_a"], seed["product_b"]]

    await gate.submit_review(5, seed["product_a"], 5, "")
    eligible = await gate.list_eligible_products(5)
    assert [p.id for p in eligible] == [seed["product_b"]]


@pytest.mark.asyncio
async def test_my_reviews_search_and_rating_filter(db, seed):
    await _complete_order(db)
    gate = ReviewGate(db)
    await gate.submit_review(5, seed["product_a"], 5, "Breathable fabric")
    await gate.submit_review(5, seed["product_b"], 3, "Runs small")

    assert [r.product_id for r in await gate.list_my_reviews(5, q="fabric")] == [seed["product_a"]]
    assert [r.product_id for r in await gate.list_my_reviews(5, q="canvas")] == [seed["product_b"]]
    assert [r.rating for r in await gate.list_my_reviews(5, rating=3)] == [3]


@pytest.mark.asyncio
async def test_product_reviews_unknown_product(db, seed):
    with pytest.raises(NotFoundError):
        await ReviewGate(db).list_product_reviews(999)


@pytest.mark.asyncio
async def test_delete_only_own_review(db, seed):
    await _complete_order(db)
    gate = ReviewGate(db)
    review_id = (await gate.submit_review(5, seed["product_a"], 5, "")).id

    with pytest.raises(NotFoundError):
        await gate.delete_review(seed["other_buyer_id"], review_id)

    await gate.delete_review(5, review_id)
    assert await db.scalar(select(func.count(Review.id))) == 0


@pytest.mark.asyncio
async def test_upsert_with_per_mapper_binds(engine, seed):
    """Sessions routed through `binds=` have no session-wide bind to inspect."""
    async with AsyncSession(binds={Base: engine}, expire_on_commit=False) as session:
        await _complete_order(session)

        review = await ReviewGate(session).submit_review(5, seed["product_a"], 4, "Still good")

        assert review.rating == 4
