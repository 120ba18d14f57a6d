"""SqlBatchStore のテスト (インメモリの SQLite で実際の SQL を流す)"""

from datetime import date, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from services.inventory.app import db
from services.inventory.app.store import SqlBatchStore

TODAY = date(2026, 1, 15)


def _batch_row(number: str, product_pk: int, quantity: int, expires_in: int) -> dict:
    return {
        "batch_number": number,
        "product_id": product_pk,
        "quantity": quantity,
        "expiry_date": TODAY + timedelta(days=expires_in),
        "manufacturing_date": TODAY - timedelta(days=30),
    }


@pytest_asyncio.fixture
async def store():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(db.metadata.create_all)
        await conn.execute(
            insert(db.products),
            [
                {"id": 1, "product_id": "PROD-001", "name": "Organic Whole Milk", "description": None},
                {"id": 2, "product_id": "PROD-002", "name": "Greek Yogurt", "description": "500g tub"},
            ],
        )
        await conn.execute(
            insert(db.inventory_batches),
            [
                _batch_row("B2", 1, 30, 365),
                _batch_row("B1", 1, 50, 180),
                _batch_row("EXPIRED", 1, 99, -1),
                _batch_row("EXPIRES-TODAY", 1, 99, 0),
                _batch_row("EMPTY", 1, 0, 30),
                _batch_row("OTHER", 2, 10, 30),
            ],
        )
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield SqlBatchStore(session)
    await engine.dispose()


@pytest.mark.asyncio
async def test_get_product(store):
    product = await store.get_product("PROD-001")
    assert product.name == "Organic Whole Milk"
    assert product.description == ""
    assert await store.get_product("NOPE") is None


@pytest.mark.asyncio
async def test_list_batches_returns_every_batch_by_expiry(store):
    batches = await store.list_batches("PROD-001")

    assert [b.batch_number for b in batches] == ["EXPIRED", "EXPIRES-TODAY", "EMPTY", "B1", "B2"]
    assert batches[3].expiry_date == TODAY + timedelta(days=180)
    assert batches[3].product_id == "PROD-001"
    assert batches[3].product_name == "Organic Whole Milk"


@pytest.mark.asyncio
async def test_list_available_batches_filters_empty_and_expired(store):
    batches = await store.list_available_batches("PROD-001", TODAY)

    assert [(b.batch_number, b.quantity) for b in batches] == [("B1", 50), ("B2", 30)]


@pytest.mark.asyncio
async def test_list_available_batches_for_product_without_stock(store):
    assert await store.list_available_batches("PROD-002", TODAY + timedelta(days=30)) == []


@pytest.mark.asyncio
async def test_save_batches_persists_quantities(store):
    b1, b2 = await store.list_available_batches("PROD-001", TODAY)
    b1.reduce_quantity(50)
    b2.reduce_quantity(10)

    await store.save_batches([b1, b2])

    saved = {b.batch_number: b.quantity for b in await store.list_batches("PROD-001")}
    assert saved == {"EXPIRED": 99, "EXPIRES-TODAY": 99, "EMPTY": 0, "B1": 0, "B2": 20}
    assert [b.batch_number for b in await store.list_available_batches("PROD-001", TODAY)] == ["B2"]


@pytest.mark.asyncio
async def test_save_nothing_is_a_no_op(store):
    await store.save_batches([])
    assert len(await store.list_batches("PROD-001")) == 5
