"""
The Alembic revision must build the same tables and columns as the models.
"""

import importlib.util
from pathlib import Path

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

from storefront.models import Base

MIGRATION = Path(__file__).resolve().parents[1] / "alembic" / "versions" / "0001_initial_schema.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def migrated():
    engine = create_engine("sqlite://")
    migration = _load_migration()
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()
    yield engine, migration
    engine.dispose()


def test_upgrade_matches_models(migrated):
    engine, _ = migrated
    inspector = inspect(engine)

    assert set(inspector.get_table_names()) == set(Base.metadata.tables)
    for name, table in Base.metadata.tables.items():
        columns = {c["name"] for c in inspector.get_columns(name)}
        assert columns == {c.name for c in table.columns}, name


def test_stock_cannot_go_negative(migrated):
    engine, _ = migrated
    with engine.begin() as conn:
        conn.execute(text("INSERT INTO users (id, name, email) VALUES (1, 'Seller', 's@example.com')"))
        conn.execute(text("INSERT INTO shops (id, user_id, name, slug) VALUES (1, 1, 'Shop', 'shop')"))

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(text(
                "INSERT INTO products (shop_id, title, price, stock, images) "
                "VALUES (1, 'Hat', 10, -1, '[]')"
            ))


def test_downgrade_drops_everything(migrated):
    engine, migration = migrated
    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.downgrade()

    assert inspect(engine).get_table_names() == []
