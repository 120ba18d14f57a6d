"""
テスト用のインメモリ実装

SQL ストア / Redis / Inventory Service クライアントと同じインターフェースを持つ。
DB もネットワークも使わない。
"""

from collections.abc import Sequence
from dataclasses import replace
from datetime import date

from redis.exceptions import ConnectionError as RedisConnectionError

from services.inventory.app.models import Batch, Product
from services.inventory.app.store import BatchStore
from services.order.app.models import Order, OrderStatus
from services.order.app.schemas import BatchDeduction, InventoryUpdateResponse
from services.order.app.store import OrderStore


class FakeBatchStore(BatchStore):
    """読み出しはコピーを返し、save_batches で初めて数量が反映される。"""

    def __init__(
        self,
        products: list[Product] | None = None,
        batches: list[Batch] | None = None,
    ) -> None:
        self.products = {p.product_id: p for p in products or []}
        self.batches = {b.batch_number: b for b in batches or []}
        self.saved: list[list[str]] = []

    async def get_product(self, product_id: str) -> Product | None:
        return self.products.get(product_id)

    async def list_batches(self, product_id: str) -> list[Batch]:
        rows = [b for b in self.batches.values() if b.product_id == product_id]
        product = self.products.get(product_id)
        name = product.name if product else ""
        return [replace(b, product_name=name) for b in sorted(rows, key=lambda b: b.expiry_date)]

    async def list_available_batches(self, product_id: str, today: date) -> list[Batch]:
        return [
            b
            for b in await self.list_batches(product_id)
            if b.quantity > 0 and b.expiry_date > today
        ]

    async def save_batches(self, batches: Sequence[Batch]) -> None:
        self.saved.append([b.batch_number for b in batches])
        for b in batches:
            self.batches[b.batch_number] = replace(b)


class FakeOrderStore(OrderStore):
    """書き込みごとに (操作, 状態) を writes に記録する。"""

    def __init__(self, existing_ids: set[str] | None = None, fail_insert: bool = False) -> None:
        self.orders: dict[str, Order] = {}
        self.existing_ids = set(existing_ids or ())
        self.fail_insert = fail_insert
        self.writes: list[tuple[str, OrderStatus]] = []

    async def exists(self, order_id: str) -> bool:
        return order_id in self.orders or order_id in self.existing_ids

    async def get(self, order_id: str) -> Order | None:
        order = self.orders.get(order_id)
        return replace(order) if order else None

    async def insert(self, order: Order) -> None:
        if self.fail_insert:
            raise RuntimeError("database is unavailable")
        self.writes.append(("insert", order.status))
        self.orders[order.order_id] = replace(order)

    async def update(self, order: Order) -> None:
        self.writes.append(("update", order.status))
        self.orders[order.order_id] = replace(order)

    async def find(
        self,
        status: OrderStatus | None = None,
        customer_email: str | None = None,
    ) -> list[Order]:
        found = [
            o
            for o in self.orders.values()
            if (status is None or o.status is status)
            and (not customer_email or o.customer_email == customer_email)
        ]
        return sorted(found, key=lambda o: o.created_at, reverse=True)


class FakeInventoryClient:
    """error を設定するとそれを送出し、なければ要求数量どおり引き当てたことにする。"""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def update_inventory(self, product_id: str, quantity: int) -> InventoryUpdateResponse:
        self.calls.append((product_id, quantity))
        if self.error is not None:
            raise self.error
        return InventoryUpdateResponse(
            product_id=product_id,
            total_quantity_deducted=quantity,
            batch_deductions=[BatchDeduction(batch_number="BATCH-001", quantity_deducted=quantity)],
            strategy="FIFO",
            message="Inventory deducted successfully using FIFO strategy",
        )


class FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, message: str) -> int:
        if self.fail:
            raise RedisConnectionError("redis is down")
        self.published.append((channel, message))
        return 1
