"""
Order Service - 注文コーディネーター (注文 Saga)

  フロー:
    1. 注文 ID を採番
    2. PENDING で注文を保存 (リモート呼び出しより前に必ず完了させる)
    3. Inventory Service に在庫引き当てを依頼
       ├─ 成功 → CONFIRMED で保存
       ├─ 在庫側の失敗 → FAILED + 失敗理由で保存し、同じ例外を再送出
       └─ 想定外の失敗 (CONFIRMED の保存失敗を含む)
            → FAILED で保存し、OrderProcessingError を送出

保存は insert 1 回 + 状態更新 1 回。失敗した注文も監査用に残す。
"""

import json
import logging
import uuid
from dataclasses import replace
from typing import Protocol

import redis.asyncio as aioredis
from pydantic import BaseModel
from redis.exceptions import RedisError

from .events import OrderCancelled, OrderConfirmed, OrderFailed
from .exceptions import InventoryServiceError, OrderNotFound, OrderProcessingError
from .models import Order, OrderStatus
from .schemas import InventoryUpdateResponse
from .store import OrderStore

logger = logging.getLogger(__name__)

EVENTS_CHANNEL = "order_events"
MAX_ID_ATTEMPTS = 5


class InventoryGateway(Protocol):
    async def update_inventory(self, product_id: str, quantity: int) -> InventoryUpdateResponse:
        ...


def generate_order_id() -> str:
    return "ORD-" + uuid.uuid4().hex[:8].upper()


class OrderCoordinator:
    def __init__(
        self,
        store: OrderStore,
        inventory: InventoryGateway,
        redis: aioredis.Redis | None = None,
        id_factory=generate_order_id,
    ):
        self.store = store
        self.inventory = inventory
        self.redis = redis
        self.id_factory = id_factory

    async def place_order(
        self,
        product_id: str,
        quantity: int,
        customer_name: str,
        customer_email: str,
    ) -> Order:
        logger.info("Processing order for product %s with quantity %d", product_id, quantity)

        order = Order(
            order_id=await self._new_order_id(),
            product_id=product_id,
            quantity=quantity,
            customer_name=customer_name,
            customer_email=customer_email,
        )
        await self.store.insert(order)
        logger.info("Order %s created with PENDING status", order.order_id)

        try:
            result = await self.inventory.update_inventory(product_id, quantity)
            # 保存に成功するまで order は PENDING のまま残す
            confirmed = replace(order)
            confirmed.confirm()
            await self.store.update(confirmed)
        except InventoryServiceError as e:
            logger.warning("Failed to update inventory for order %s: %s", order.order_id, e)
            await self._mark_failed(order, str(e))
            raise
        except Exception as e:
            logger.exception("Unexpected error while processing order %s", order.order_id)
            await self._mark_failed(order, f"Unexpected error: {e}")
            raise OrderProcessingError(f"Failed to process order: {e}") from e

        order = confirmed
        logger.info("Order %s confirmed", order.order_id)

        await self._publish(
            "OrderConfirmed",
            OrderConfirmed(
                order_id=order.order_id,
                product_id=order.product_id,
                quantity=order.quantity,
                total_quantity_deducted=result.total_quantity_deducted,
                timestamp=order.updated_at,
            ),
        )
        return order

    async def get_order(self, order_id: str) -> Order:
        logger.info("Fetching order: %s", order_id)
        order = await self.store.get(order_id)
        if order is None:
            raise OrderNotFound(f"Order not found with ID: {order_id}")
        return order

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        customer_email: str | None = None,
    ) -> list[Order]:
        return await self.store.find(status=status, customer_email=customer_email)

    async def cancel_order(self, order_id: str) -> Order:
        logger.info("Cancelling order: %s", order_id)
        order = await self.get_order(order_id)
        order.cancel()
        await self.store.update(order)

        await self._publish(
            "OrderCancelled",
            OrderCancelled(order_id=order.order_id, timestamp=order.updated_at),
        )
        return order

    # ── 内部処理 ─────────────────────────────────

    async def _new_order_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            order_id = self.id_factory()
            if not await self.store.exists(order_id):
                return order_id
            logger.warning("Generated order id %s already exists, retrying", order_id)
        raise OrderProcessingError(
            f"Could not generate a unique order id after {MAX_ID_ATTEMPTS} attempts"
        )

    async def _mark_failed(self, order: Order, reason: str) -> None:
        order.fail(reason)
        await self.store.update(order)
        await self._publish(
            "OrderFailed",
            OrderFailed(
                order_id=order.order_id,
                product_id=order.product_id,
                quantity=order.quantity,
                reason=order.failure_reason,
                timestamp=order.updated_at,
            ),
        )

    async def _publish(self, event_type: str, event: BaseModel) -> None:
        """注文イベントを Redis に発行する。状態は保存済みなので失敗してもログだけ残す。"""
        if self.redis is None:
            return
        try:
            await self.redis.publish(
                EVENTS_CHANNEL,
                json.dumps(
                    {"event_type": event_type, "data": event.model_dump(mode="json")},
                    default=str,
                ),
            )
        except RedisError:
            logger.exception("Failed to publish %s", event_type)
