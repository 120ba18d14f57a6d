"""
Order Service - FastAPI エントリーポイント

注文を受け付け、Inventory Service に在庫引き当てを依頼する。
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis.asyncio as aioredis
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from . import config, db
from .client import InventoryClient
from .coordinator import OrderCoordinator
from .exceptions import (
    InvalidState,
    InventoryServiceError,
    OrderNotFound,
    OrderProcessingError,
)
from .models import OrderStatus
from .schemas import OrderRequest, OrderResponse
from .store import SqlOrderStore

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("order_service")

inventory_client = InventoryClient(
    config.INVENTORY_SERVICE_URL,
    timeout=config.INVENTORY_TIMEOUT_SECONDS,
    strategy=config.INVENTORY_STRATEGY,
)
redis_pool: aioredis.Redis | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global redis_pool
    if config.CREATE_SCHEMA:
        await db.create_schema(db.engine)
    redis_pool = aioredis.from_url(config.REDIS_URL, decode_responses=True)
    logger.info("Inventory Service configured at %s", config.INVENTORY_SERVICE_URL)
    yield
    await redis_pool.aclose()
    await db.engine.dispose()


app = FastAPI(title="Order Service", lifespan=lifespan)


# ── Dependencies ─────────────────────────────────


async def get_session():
    async with db.async_session() as session:
        yield session


def get_coordinator(session: AsyncSession = Depends(get_session)) -> OrderCoordinator:
    return OrderCoordinator(SqlOrderStore(session), inventory_client, redis_pool)


# ── Error Handlers ───────────────────────────────


def error_body(status_code: int, error: str, message: str, **extra) -> dict:
    return {
        "status": status_code,
        "error": error,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


@app.exception_handler(OrderNotFound)
async def handle_order_not_found(request: Request, exc: OrderNotFound):
    return JSONResponse(status_code=404, content=error_body(404, "Not Found", str(exc)))


@app.exception_handler(InvalidState)
async def handle_invalid_state(request: Request, exc: InvalidState):
    return JSONResponse(status_code=400, content=error_body(400, "Invalid State", str(exc)))


@app.exception_handler(InventoryServiceError)
async def handle_inventory_error(request: Request, exc: InventoryServiceError):
    return JSONResponse(
        status_code=503,
        content=error_body(503, "Inventory Service Error", str(exc)),
    )


@app.exception_handler(OrderProcessingError)
async def handle_processing_error(request: Request, exc: OrderProcessingError):
    return JSONResponse(
        status_code=500,
        content=error_body(500, "Internal Server Error", str(exc)),
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = {".".join(str(p) for p in err["loc"][1:]): err["msg"] for err in exc.errors()}
    return JSONResponse(
        status_code=400,
        content=error_body(400, "Validation Failed", "Invalid request", details=details),
    )


# ── Endpoints ────────────────────────────────────


@app.get("/order/health", response_class=PlainTextResponse)
async def health():
    return "Order Service is running"


@app.post("/order", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    req: OrderRequest,
    coordinator: OrderCoordinator = Depends(get_coordinator),
):
    """注文を作成し、Inventory Service で在庫を引き当てる。"""
    order = await coordinator.place_order(
        req.product_id, req.quantity, req.customer_name, req.customer_email,
    )
    return OrderResponse.from_order(order, "Order placed successfully")


@app.get("/order", response_model=list[OrderResponse])
async def list_orders(
    order_status: OrderStatus | None = Query(default=None, alias="status"),
    customer_email: str | None = Query(default=None, alias="customerEmail"),
    coordinator: OrderCoordinator = Depends(get_coordinator),
):
    """状態・顧客メールで絞り込んだ注文一覧を返す。"""
    orders = await coordinator.list_orders(status=order_status, customer_email=customer_email)
    return [OrderResponse.from_order(o) for o in orders]


@app.get("/order/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    coordinator: OrderCoordinator = Depends(get_coordinator),
):
    order = await coordinator.get_order(order_id)
    return OrderResponse.from_order(order)


@app.put("/order/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    coordinator: OrderCoordinator = Depends(get_coordinator),
):
    """PENDING / FAILED の注文をキャンセルする。"""
    order = await coordinator.cancel_order(order_id)
    return OrderResponse.from_order(order, "Order cancelled successfully")
