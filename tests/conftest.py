"""
Shared fixtures: an isolated in-memory database per test, seeded users,
shop, products and cart, and an HTTP client bound to the ASGI app.
"""

import os

# Settings are cached on first import, so the environment goes first.
TEST_SECRET = "test-secret-key-for-testing-only"
os.environ["SECRET_KEY"] = TEST_SECRET
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from storefront.auth_middleware import create_access_token
from storefront.database import get_db
from storefront.main import app
from storefront.models import Base, User, Shop, Category, Product, CartItem

BUYER_ID = 5
OTHER_BUYER_ID = 6
SELLER_ID = 1
PRODUCT_A = 101
PRODUCT_B = 102
FASHION = 1


def auth_headers(user_id: int, is_seller: bool = False) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, is_seller=is_seller)}"}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def seed(session_maker):
    """
    Seller 1 owns "Demo Shop" with product A (price 100, stock 10, in
    Fashion) and product B (price 50, stock 5). Buyer 5 has A x2 and B x1
    in the cart.
    """
    async with session_maker() as session:
        session.add_all([
            User(id=SELLER_ID, name="Seller", email="seller@example.com", is_seller=True),
            User(id=BUYER_ID, name="Buyer", email="buyer@example.com"),
            User(id=OTHER_BUYER_ID, name="Other", email="other@example.com"),
        ])
        await session.flush()
        session.add(Shop(id=1, user_id=SELLER_ID, name="Demo Shop", slug="demo-shop"))
        session.add(Category(id=FASHION, name="Fashion", slug="fashion"))
        await session.flush()
        session.add_all([
            Product(id=PRODUCT_A, shop_id=1, category_id=FASHION, title="Linen Shirt", price=100, stock=10, images=[]),
            Product(id=PRODUCT_B, shop_id=1, title="Canvas Shoes", price=50, stock=5, images=[]),
        ])
        await session.flush()
        session.add_all([
            CartItem(id=1, user_id=BUYER_ID, product_id=PRODUCT_A, quantity=2),
            CartItem(id=2, user_id=BUYER_ID, product_id=PRODUCT_B, quantity=1),
        ])
        await session.commit()

    return {
        "buyer_id": BUYER_ID,
        "other_buyer_id": OTHER_BUYER_ID,
        "seller_id": SELLER_ID,
        "product_a": PRODUCT_A,
        "product_b": PRODUCT_B,
        "category_id": FASHION,
    }


@pytest.fixture
async def client(session_maker):
    async def _get_test_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Build Authorization headers: auth(user_id, is_seller=False)."""
    return auth_headers
