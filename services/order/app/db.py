"""
Order Service - データベース

Database per Service パターン: 注文テーブルは Order Service だけが持つ。
"""

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from . import config
from .models import MAX_FAILURE_REASON_LENGTH

metadata = MetaData()

orders = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", String(32), nullable=False, unique=True),
    Column("product_id", String(64), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("customer_name", String(255), nullable=False),
    Column("customer_email", String(255), nullable=False, index=True),
    Column("status", String(16), nullable=False, index=True),
    Column("failure_reason", String(MAX_FAILURE_REASON_LENGTH)),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

engine = create_async_engine(config.DATABASE_URL, echo=False)
async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(db_engine: AsyncEngine) -> None:
    async with db_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
