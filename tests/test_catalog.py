"""
Tests for the Catalog Store: browsing, categories and seller product management.
"""

import pytest
from sqlalchemy import select, func

from storefront.errors import InvalidState, NotFoundError, ValidationError
from storefront.models import CartItem, Category, Product, Shop
from storefront.services.catalog import CatalogStore
from storefront.services.orders import OrderLedger


async def _second_shop(db) -> int:
    """User 6 opens shop 2 selling one product (id 201)."""
    db.add(Shop(id=2, user_id=6, name="Other Shop", slug="other-shop"))
    await db.flush()
    db.add(Product(id=201, shop_id=2, title="Wool Hat", price=75, stock=3, images=[]))
    await db.commit()
    return 2


class TestBrowsing:

    @pytest.mark.asyncio
    async def test_sort_by_price_ascending(self, db, seed):
        products, total = await CatalogStore(db).list_products(sort="price", order="asc")

        assert total == 2
        assert [p.price for p in products] == [50, 100]

    @pytest.mark.asyncio
    async def test_sort_by_name_descending(self, db, seed):
        products, _ = await CatalogStore(db).list_products(sort="name", order="desc")

        assert [p.title for p in products] == ["Linen Shirt", "Canvas Shoes"]

    @pytest.mark.asyncio
    async def test_unknown_sort_is_newest_first(self, db, seed):
        created = await CatalogStore(db).create_product(
            1, title="Denim Jacket", price=300, stock=2, category_id=seed["category_id"],
        )

        products, _ = await CatalogStore(db).list_products(sort="popularity", order="sideways")

        assert products[0].id == created.id

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive_on_title(self, db, seed):
        products, total = await CatalogStore(db).list_products(q="linen")

        assert total == 1
        assert [p.id for p in products] == [seed["product_a"]]

    @pytest.mark.asyncio
    async def test_total_counts_every_match_not_just_the_page(self, db, seed):
        products, total = await CatalogStore(db).list_products(page=2, page_size=1, sort="price", order="asc")

        assert total == 2
        assert [p.price for p in products] == [100]

    @pytest.mark.asyncio
    async def test_listed_products_carry_category_and_shop(self, db, seed):
        products, _ = await CatalogStore(db).list_products(sort="price", order="desc")

        assert products[0].category.slug == "fashion"
        assert products[0].shop.slug == "demo-shop"
        assert products[1].category is None

    @pytest.mark.asyncio
    async def test_unknown_product_detail(self, db, seed):
        with pytest.raises(NotFoundError) as exc_info:
            await CatalogStore(db).get_product_detail(999)
        assert exc_info.value.message == "Product not found"


class TestCategories:

    @pytest.mark.asyncio
    async def test_base_categories_are_created_once(self, db, seed):
        catalog = CatalogStore(db)

        await catalog.list_categories()
        categories = await catalog.list_categories()

        assert [c.slug for c in categories] == ["fashion", "electronics", "others"]
        assert await db.scalar(select(func.count(Category.id))) == 3

    @pytest.mark.asyncio
    async def test_existing_category_keeps_its_id(self, db, seed):
        categories = await CatalogStore(db).list_categories()

        assert categories[0].id == seed["category_id"]


class TestSellerProducts:

    @pytest.mark.asyncio
    async def test_create_product_with_image_urls(self, db, seed):
        product = await CatalogStore(db).create_product(
            1,
            title="  Denim Jacket ",
            description="Heavy denim",
            price="300",
            stock=4,
            category_id=seed["category_id"],
            images=["https://cdn.example.com/jacket.png"],
        )

        assert product.title == "Denim Jacket"
        assert product.price == 300
        assert product.images == ["https://cdn.example.com/jacket.png"]
        assert product.category.name == "Fashion"
        assert product.shop_id == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides, message", [
        ({"title": "  "}, "Title is required"),
        ({"price": -1}, "Invalid price"),
        ({"price": "cheap"}, "Invalid price"),
        ({"stock": 1.5}, "Invalid stock"),
        ({"category_id": 99}, "Invalid categoryId"),
        ({"category_id": None}, "Invalid categoryId"),
        ({"images": "https://cdn.example.com/one.png"}, "Invalid images"),
    ])
    async def test_create_product_validation(self, db, seed, overrides, message):
        fields = {"title": "Denim Jacket", "price": 300, "stock": 4, "category_id": seed["category_id"]}
        fields.update(overrides)

        with pytest.raises(ValidationError) as exc_info:
            await CatalogStore(db).create_product(1, **fields)

        assert exc_info.value.message == message
        assert await db.scalar(select(func.count(Product.id))) == 2

    @pytest.mark.asyncio
    async def test_update_is_partial_and_stock_absolute(self, db, seed):
        product = await CatalogStore(db).update_product(1, seed["product_a"], price=120, stock=3)

        assert product.price == 120
        assert product.stock == 3
        assert product.title == "Linen Shirt"
        assert product.category_id == seed["category_id"]

    @pytest.mark.asyncio
    async def test_update_rejects_bad_price(self, db, seed):
        with pytest.raises(ValidationError):
            await CatalogStore(db).update_product(1, seed["product_a"], price=-5)

        product = await db.get(Product, seed["product_a"], populate_existing=True)
        assert product.price == 100

    @pytest.mark.asyncio
    async def test_other_shops_product_is_not_found(self, db, seed):
        await _second_shop(db)
        catalog = CatalogStore(db)

        with pytest.raises(NotFoundError):
            await catalog.update_product(1, 201, price=1)
        with pytest.raises(NotFoundError):
            await catalog.delete_product(1, 201)

        assert [p.id for p in await catalog.list_shop_products(2)] == [201]

    @pytest.mark.asyncio
    async def test_delete_removes_cart_lines(self, db, seed):
        await CatalogStore(db).delete_product(1, seed["product_b"])

        assert await db.get(Product, seed["product_b"]) is None
        lines = (await db.execute(select(CartItem.product_id))).scalars().all()
        assert list(lines) == [seed["product_a"]]

    @pytest.mark.asyncio
    async def test_ordered_product_cannot_be_deleted(self, db, seed):
        await OrderLedger(db).checkout(5, "Jl. Merdeka 1", "JNE", "BCA")

        with pytest.raises(InvalidState) as exc_info:
            await CatalogStore(db).delete_product(1, seed["product_a"])

        assert exc_info.value.message == "Product has orders and cannot be deleted"
        assert await db.scalar(select(Product.id).where(Product.id == seed["product_a"])) is not None
