"""
Inventory Service - バッチストア

コーディネーターは BatchStore インターフェースだけを知っている。
SqlBatchStore はリクエストごとの AsyncSession の上で動く。
トランザクション分離は DB に任せる。
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date

from sqlalchemy import Date, bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Batch, Product


class BatchStore(ABC):
    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None:
        ...

    @abstractmethod
    async def list_batches(self, product_id: str) -> list[Batch]:
        """商品の全バッチを有効期限の昇順で返す。"""

    @abstractmethod
    async def list_available_batches(self, product_id: str, today: date) -> list[Batch]:
        """数量 > 0 かつ有効期限が today より後のバッチを有効期限の昇順で返す。"""

    @abstractmethod
    async def save_batches(self, batches: Sequence[Batch]) -> None:
        """変更されたバッチの数量を 1 回の書き込みで保存する。"""


_BATCH_COLUMNS = """
    b.batch_number, p.product_id, p.name AS product_name,
    b.quantity, b.expiry_date, b.manufacturing_date
"""

_DATE_COLUMNS = {"expiry_date": Date, "manufacturing_date": Date}


def _to_batch(row) -> Batch:
    return Batch(
        batch_number=row.batch_number,
        product_id=row.product_id,
        quantity=row.quantity,
        expiry_date=row.expiry_date,
        manufacturing_date=row.manufacturing_date,
        product_name=row.product_name,
    )


class SqlBatchStore(BatchStore):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_product(self, product_id: str) -> Product | None:
        result = await self.session.execute(
            text("SELECT product_id, name, description FROM products WHERE product_id = :pid"),
            {"pid": product_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return Product(
            product_id=row.product_id,
            name=row.name,
            description=row.description or "",
        )

    async def list_batches(self, product_id: str) -> list[Batch]:
        result = await self.session.execute(
            text(f"""
                SELECT {_BATCH_COLUMNS}
                FROM inventory_batches b
                JOIN products p ON p.id = b.product_id
                WHERE p.product_id = :pid
                ORDER BY b.expiry_date ASC
            """).columns(**_DATE_COLUMNS),
            {"pid": product_id},
        )
        return [_to_batch(row) for row in result.fetchall()]

    async def list_available_batches(self, product_id: str, today: date) -> list[Batch]:
        result = await self.session.execute(
            text(f"""
                SELECT {_BATCH_COLUMNS}
                FROM inventory_batches b
                JOIN products p ON p.id = b.product_id
                WHERE p.product_id = :pid
                  AND b.quantity > 0
                  AND b.expiry_date > :today
                ORDER BY b.expiry_date ASC
            """).bindparams(bindparam("today", type_=Date)).columns(**_DATE_COLUMNS),
            {"pid": product_id, "today": today},
        )
        return [_to_batch(row) for row in result.fetchall()]

    async def save_batches(self, batches: Sequence[Batch]) -> None:
        if not batches:
            return
        await self.session.execute(
            text("""
                UPDATE inventory_batches
                SET quantity = :quantity
                WHERE batch_number = :batch_number
            """),
            [{"quantity": b.quantity, "batch_number": b.batch_number} for b in batches],
        )
        await self.session.commit()
