"""
Order Service - リクエスト / レスポンスモデル

InventoryUpdate* は Inventory Service の /inventory/update との契約。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Order, OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Order API ────────────────────────────────────


class OrderRequest(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    customer_name: str = Field(min_length=1)
    customer_email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class OrderResponse(CamelModel):
    order_id: str
    product_id: str
    quantity: int
    customer_name: str
    customer_email: str
    status: OrderStatus
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime
    message: str | None = None

    @classmethod
    def from_order(cls, order: Order, message: str | None = None) -> "OrderResponse":
        return cls(
            order_id=order.order_id,
            product_id=order.product_id,
            quantity=order.quantity,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            status=order.status,
            failure_reason=order.failure_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
            message=message,
        )


# ── Inventory Service 契約 ───────────────────────


class InventoryUpdateRequest(CamelModel):
    product_id: str
    quantity: int


class BatchDeduction(CamelModel):
    batch_number: str
    quantity_deducted: int


class InventoryUpdateResponse(CamelModel):
    product_id: str
    total_quantity_deducted: int
    batch_deductions: list[BatchDeduction] = []
    strategy: str | None = None
    message: str | None = None
