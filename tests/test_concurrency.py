"""
Concurrent writers against a file-backed database.

Each coroutine gets its own session and connection, so the database, not
the test, decides who waits. SQLite serializes writers; the guarded stock
update and the order row lock must still produce the right outcome.
"""

import asyncio

import pytest
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from storefront.errors import InsufficientStockError
from storefront.models import Base, User, Shop, Product, CartItem, Order
from storefront.models.status import OrderItemStatus, OrderStatus
from storefront.services.orders import OrderLedger

SHIRT = 101
SHOES = 102
CHECKOUT = {"address": "Jl. Merdeka 1, Jakarta", "shipping": "JNE", "payment": "BCA"}


@pytest.fixture
async def file_sessions(tmp_path):
    """
    Session factory over an on-disk database. Buyers 5 and 6 each hold a
    cart line for 6 shirts; only 10 are in stock.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}",
        connect_args={"timeout": 15},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with sessions() as session:
        session.add_all([
            User(id=1, name="Seller", email="seller@example.com", is_seller=True),
            User(id=5, name="Buyer", email="buyer@example.com"),
            User(id=6, name="Other", email="other@example.com"),
        ])
        await session.flush()
        session.add(Shop(id=1, user_id=1, name="Demo Shop", slug="demo-shop"))
        await session.flush()
        session.add_all([
            Product(id=SHIRT, shop_id=1, title="Linen Shirt", price=100, stock=10, images=[]),
            Product(id=SHOES, shop_id=1, title="Canvas Shoes", price=50, stock=5, images=[]),
        ])
        await session.flush()
        session.add_all([
            CartItem(user_id=5, product_id=SHIRT, quantity=6),
            CartItem(user_id=6, product_id=SHIRT, quantity=6),
        ])
        await session.commit()

    yield sessions
    await engine.dispose()


async def _checkout_alone(sessions, user_id):
    async with sessions() as session:
        return await OrderLedger(session).checkout(user_id=user_id, **CHECKOUT)


async def _complete_alone(sessions, user_id, item_id):
    async with sessions() as session:
        return await OrderLedger(session).complete_item(user_id, item_id)


@pytest.mark.asyncio
async def test_two_buyers_racing_for_the_last_stock(file_sessions):
    results = await asyncio.gather(
        _checkout_alone(file_sessions, 5),
        _checkout_alone(file_sessions, 6),
        return_exceptions=True,
    )

    orders = [r for r in results if isinstance(r, Order)]
    failures = [r for r in results if isinstance(r, InsufficientStockError)]
    assert len(orders) == 1, results
    assert len(failures) == 1, results
    assert failures[0].product_id == SHIRT

    async with file_sessions() as session:
        assert await session.scalar(select(Product.stock).where(Product.id == SHIRT)) == 4
        assert await session.scalar(select(func.count(Order.id))) == 1
        # The loser keeps their cart line
        loser = 6 if orders[0].user_id == 5 else 5
        lines = await session.scalar(select(func.count(CartItem.id)).where(CartItem.user_id == loser))
        assert lines == 1


@pytest.mark.asyncio
async def test_sibling_items_completed_together_complete_the_order(file_sessions):
    async with file_sessions() as session:
        session.add(CartItem(user_id=5, product_id=SHOES, quantity=1))
        await session.commit()
    order = await _checkout_alone(file_sessions, 5)
    first, second = (item.id for item in order.items)

    completed = await asyncio.gather(
        _complete_alone(file_sessions, 5, first),
        _complete_alone(file_sessions, 5, second),
    )

    assert [item.status for item in completed] == [OrderItemStatus.COMPLETED] * 2
    async with file_sessions() as session:
        status = await session.scalar(select(Order.status).where(Order.id == order.id))
        assert status == OrderStatus.COMPLETED
