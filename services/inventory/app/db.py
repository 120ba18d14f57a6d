"""
Inventory Service - データベース

テーブル定義は SQLAlchemy Core のメタデータで持ち、起動時に create_all する。
クエリ自体は store.py で text() を使って書く。
"""

import logging
from datetime import date, timedelta

from sqlalchemy import (
    Column,
    Date,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    func,
    insert,
    select,
)
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from . import config

logger = logging.getLogger(__name__)

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("product_id", String(64), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("description", String(1024)),
)

# 商品を削除するとバッチも消える (ON DELETE CASCADE)
inventory_batches = Table(
    "inventory_batches",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("batch_number", String(64), nullable=False, unique=True),
    Column(
        "product_id",
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("quantity", Integer, nullable=False),
    Column("expiry_date", Date, nullable=False),
    Column("manufacturing_date", Date, nullable=False),
)

engine = create_async_engine(config.DATABASE_URL, echo=False)
async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── デモデータ ───────────────────────────────────

SEED_PRODUCTS = [
    ("PROD-001", "Organic Whole Milk", "1L carton, keep refrigerated"),
    ("PROD-002", "Greek Yogurt", "500g tub"),
    ("PROD-003", "Cheddar Cheese", "Aged 12 months, 250g block"),
]

# (batch_number, product_id, quantity, 有効期限までの日数, 製造からの日数)
SEED_BATCHES = [
    ("BATCH-001", "PROD-001", 50, 180, 30),
    ("BATCH-002", "PROD-001", 30, 365, 30),
    ("BATCH-003", "PROD-001", 20, 90, 60),
    ("BATCH-004", "PROD-002", 100, 45, 5),
    ("BATCH-005", "PROD-002", 40, 20, 10),
    ("BATCH-006", "PROD-003", 75, 240, 120),
]


async def create_schema(db_engine: AsyncEngine) -> None:
    async with db_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def seed(db_engine: AsyncEngine, today: date | None = None) -> None:
    """products が空のときだけデモデータを投入する。"""
    today = today or date.today()
    async with db_engine.begin() as conn:
        count = (await conn.execute(select(func.count()).select_from(products))).scalar_one()
        if count:
            return

        ids: dict[str, int] = {}
        for product_id, name, description in SEED_PRODUCTS:
            result = await conn.execute(
                insert(products)
                .values(product_id=product_id, name=name, description=description)
                .returning(products.c.id)
            )
            ids[product_id] = result.scalar_one()

        await conn.execute(
            insert(inventory_batches),
            [
                {
                    "batch_number": batch_number,
                    "product_id": ids[product_id],
                    "quantity": quantity,
                    "expiry_date": today + timedelta(days=expires_in),
                    "manufacturing_date": today - timedelta(days=made_ago),
                }
                for batch_number, product_id, quantity, expires_in, made_ago in SEED_BATCHES
            ],
        )
    logger.info("Seeded %d products and %d batches", len(SEED_PRODUCTS), len(SEED_BATCHES))
