"""
Order Service - 注文ストア

SqlOrderStore は書き込みのたびに commit する。
注文の保存は 1 回の配置につき insert 1 回 + update 1 回。
"""

from abc import ABC, abstractmethod

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order, OrderStatus


class OrderStore(ABC):
    @abstractmethod
    async def exists(self, order_id: str) -> bool:
        ...

    @abstractmethod
    async def get(self, order_id: str) -> Order | None:
        ...

    @abstractmethod
    async def insert(self, order: Order) -> None:
        ...

    @abstractmethod
    async def update(self, order: Order) -> None:
        """状態・失敗理由・更新日時を保存する。"""

    @abstractmethod
    async def find(
        self,
        status: OrderStatus | None = None,
        customer_email: str | None = None,
    ) -> list[Order]:
        """新しい順に返す。"""


def _to_order(row) -> Order:
    return Order(
        order_id=row.order_id,
        product_id=row.product_id,
        quantity=row.quantity,
        customer_name=row.customer_name,
        customer_email=row.customer_email,
        status=OrderStatus(row.status),
        failure_reason=row.failure_reason,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


_ORDER_COLUMNS = """
    order_id, product_id, quantity, customer_name, customer_email,
    status, failure_reason, created_at, updated_at
"""

_TIMESTAMP = DateTime(timezone=True)


def _select(where: str = "", order_by: str = ""):
    """日時列を DateTime として読み出す SELECT。"""
    return text(f"SELECT {_ORDER_COLUMNS} FROM orders {where} {order_by}").columns(
        created_at=_TIMESTAMP, updated_at=_TIMESTAMP,
    )


_INSERT_ORDER = text(f"""
    INSERT INTO orders ({_ORDER_COLUMNS})
    VALUES
        (:order_id, :product_id, :quantity, :customer_name, :customer_email,
         :status, :failure_reason, :created_at, :updated_at)
""").bindparams(
    bindparam("created_at", type_=_TIMESTAMP),
    bindparam("updated_at", type_=_TIMESTAMP),
)

_UPDATE_ORDER = text("""
    UPDATE orders
    SET status = :status, failure_reason = :failure_reason, updated_at = :now
    WHERE order_id = :id
""").bindparams(bindparam("now", type_=_TIMESTAMP))


class SqlOrderStore(OrderStore):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def exists(self, order_id: str) -> bool:
        result = await self.session.execute(
            text("SELECT 1 FROM orders WHERE order_id = :id"),
            {"id": order_id},
        )
        return result.first() is not None

    async def get(self, order_id: str) -> Order | None:
        result = await self.session.execute(
            _select("WHERE order_id = :id"),
            {"id": order_id},
        )
        row = result.fetchone()
        return _to_order(row) if row else None

    async def insert(self, order: Order) -> None:
        await self.session.execute(
            _INSERT_ORDER,
            {
                "order_id": order.order_id,
                "product_id": order.product_id,
                "quantity": order.quantity,
                "customer_name": order.customer_name,
                "customer_email": order.customer_email,
                "status": order.status.value,
                "failure_reason": order.failure_reason,
                "created_at": order.created_at,
                "updated_at": order.updated_at,
            },
        )
        await self.session.commit()

    async def update(self, order: Order) -> None:
        try:
            await self.session.execute(
                _UPDATE_ORDER,
                {
                    "id": order.order_id,
                    "status": order.status.value,
                    "failure_reason": order.failure_reason,
                    "now": order.updated_at,
                },
            )
            await self.session.commit()
        except Exception:
            # 失敗後も同じセッションで FAILED を書けるようにする
            await self.session.rollback()
            raise

    async def find(
        self,
        status: OrderStatus | None = None,
        customer_email: str | None = None,
    ) -> list[Order]:
        clauses = []
        params: dict = {}
        if status is not None:
            clauses.append("status = :status")
            params["status"] = status.value
        if customer_email:
            clauses.append("customer_email = :email")
            params["email"] = customer_email
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        result = await self.session.execute(
            _select(where, "ORDER BY created_at DESC"),
            params,
        )
        return [_to_order(row) for row in result.fetchall()]
