"""
Order Service - 注文モデル

状態遷移:
    PENDING → CONFIRMED  (在庫引き当て成功)
    PENDING → FAILED     (在庫引き当て失敗)
    PENDING / FAILED → CANCELLED  (明示的なキャンセル)

CONFIRMED と CANCELLED は終端状態。
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .exceptions import InvalidState

# orders.failure_reason の列幅
MAX_FAILURE_REASON_LENGTH = 1024


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Order:
    order_id: str
    product_id: str
    quantity: int
    customer_name: str
    customer_email: str
    status: OrderStatus = OrderStatus.PENDING
    failure_reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def _transition(self, target: OrderStatus, allowed_from: tuple[OrderStatus, ...]) -> None:
        if self.status not in allowed_from:
            raise InvalidState(
                f"Cannot move order {self.order_id} from {self.status.value} to {target.value}"
            )
        self.status = target
        self.updated_at = utcnow()

    def confirm(self) -> None:
        self._transition(OrderStatus.CONFIRMED, (OrderStatus.PENDING,))

    def fail(self, reason: str) -> None:
        self._transition(OrderStatus.FAILED, (OrderStatus.PENDING,))
        self.failure_reason = reason[:MAX_FAILURE_REASON_LENGTH]

    def cancel(self) -> None:
        if self.status is OrderStatus.CONFIRMED:
            raise InvalidState(f"Cannot cancel confirmed order. Order ID: {self.order_id}")
        if self.status is OrderStatus.CANCELLED:
            raise InvalidState(f"Order is already cancelled. Order ID: {self.order_id}")
        self._transition(OrderStatus.CANCELLED, (OrderStatus.PENDING, OrderStatus.FAILED))
