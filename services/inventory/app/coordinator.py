"""
Inventory Service - 在庫コーディネーター

1 商品に対する「引き当て可能バッチ取得 → 戦略選択 → 引き当て → 保存」をまとめる。

  フロー:
    1. 商品を取得 (なければ ProductNotFound)
    2. 数量 > 0 かつ期限内のバッチを期限昇順で取得
    3. StrategyRegistry で戦略を解決
    4. 戦略で引き当て (不足なら InsufficientInventory)
    5. 変更したバッチをまとめて保存
    6. InventoryDeducted イベントを発行
"""

import json
import logging
from collections.abc import Callable
from datetime import date, datetime, timezone

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .events import BatchDeducted, InventoryDeducted
from .exceptions import ProductNotFound
from .models import Batch, DeductionResult
from .store import BatchStore
from .strategies import StrategyRegistry

logger = logging.getLogger(__name__)

EVENTS_CHANNEL = "inventory_events"


class InventoryCoordinator:
    def __init__(
        self,
        store: BatchStore,
        registry: StrategyRegistry,
        redis: aioredis.Redis | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.registry = registry
        self.redis = redis
        self.today = today

    async def get_batches(self, product_id: str) -> list[Batch]:
        logger.info("Fetching inventory for product: %s", product_id)
        if await self.store.get_product(product_id) is None:
            raise ProductNotFound(f"Product not found with ID: {product_id}")

        batches = await self.store.list_batches(product_id)
        logger.info("Found %d batches for product %s", len(batches), product_id)
        return batches

    async def update_inventory(
        self,
        product_id: str,
        quantity: int,
        strategy_name: str | None = None,
    ) -> DeductionResult:
        logger.info(
            "Updating inventory for product %s with quantity %d using strategy %s",
            product_id, quantity, strategy_name,
        )
        if await self.store.get_product(product_id) is None:
            raise ProductNotFound(f"Product not found with ID: {product_id}")

        batches = await self.store.list_available_batches(product_id, self.today())
        if not batches:
            raise ProductNotFound(f"No available inventory batches for product: {product_id}")

        strategy = self.registry.resolve(strategy_name)
        ledger = strategy.deduct(batches, quantity)

        touched = {entry.batch_number for entry in ledger}
        await self.store.save_batches([b for b in batches if b.batch_number in touched])

        result = DeductionResult(
            product_id=product_id,
            strategy=strategy.name,
            total_quantity_deducted=sum(e.quantity_deducted for e in ledger),
            batch_deductions=ledger,
            message=f"Inventory deducted successfully using {strategy.name} strategy",
        )
        logger.info("Successfully updated inventory for product %s", product_id)

        await self._publish_deducted(result)
        return result

    async def _publish_deducted(self, result: DeductionResult) -> None:
        """InventoryDeducted を Redis に発行する。保存済みなので失敗してもログだけ残す。"""
        if self.redis is None:
            return
        event = InventoryDeducted(
            product_id=result.product_id,
            strategy=result.strategy,
            total_quantity_deducted=result.total_quantity_deducted,
            batch_deductions=[
                BatchDeducted(batch_number=e.batch_number, quantity_deducted=e.quantity_deducted)
                for e in result.batch_deductions
            ],
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self.redis.publish(
                EVENTS_CHANNEL,
                json.dumps(
                    {
                        "event_type": "InventoryDeducted",
                        "data": event.model_dump(mode="json"),
                    },
                    default=str,
                ),
            )
        except RedisError:
            logger.exception("Failed to publish InventoryDeducted for product %s", result.product_id)
