"""
Order Service - Inventory Service クライアント

/inventory/update を同期的に (await して) 呼び出す。
タイムアウトは固定で、リトライはしない。

  404 → ProductNotFound
  400 → InsufficientInventory
  その他のエラー / タイムアウト / 接続失敗 → InventoryServiceUnavailable
"""

import logging

import httpx
from pydantic import ValidationError

from .exceptions import InsufficientInventory, InventoryServiceUnavailable, ProductNotFound
from .schemas import InventoryUpdateRequest, InventoryUpdateResponse

logger = logging.getLogger(__name__)


class InventoryClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        strategy: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.strategy = strategy or None
        self.transport = transport

    async def update_inventory(self, product_id: str, quantity: int) -> InventoryUpdateResponse:
        logger.info("Calling Inventory Service to update inventory for product: %s", product_id)
        payload = InventoryUpdateRequest(product_id=product_id, quantity=quantity)
        params = {"strategy": self.strategy} if self.strategy else None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(
                    f"{self.base_url}/inventory/update",
                    json=payload.model_dump(by_alias=True),
                    params=params,
                )
        except httpx.TimeoutException as e:
            logger.error("Inventory Service timed out for product %s", product_id)
            raise InventoryServiceUnavailable(
                f"Inventory service timed out after {self.timeout}s"
            ) from e
        except httpx.RequestError as e:
            logger.error("Inventory Service unreachable: %s", e)
            raise InventoryServiceUnavailable(
                f"Failed to communicate with Inventory Service: {e}"
            ) from e

        if resp.status_code == 404:
            raise ProductNotFound(f"Product not found in inventory: {product_id}")
        if resp.status_code == 400:
            raise InsufficientInventory(f"Insufficient inventory: {_error_message(resp)}")
        if resp.is_error:
            raise InventoryServiceUnavailable(
                f"Inventory service error: HTTP {resp.status_code}"
            )

        try:
            return InventoryUpdateResponse.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise InventoryServiceUnavailable(
                f"Invalid response from Inventory Service: {e}"
            ) from e


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and body.get("message"):
        return body["message"]
    return resp.text
