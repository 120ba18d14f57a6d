"""
Inventory Service - FastAPI エントリーポイント

商品ごとのバッチ在庫を管理し、FIFO / LIFO 戦略で引き当てる。
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import redis.asyncio as aioredis
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from . import config, db
from .coordinator import InventoryCoordinator
from .exceptions import InsufficientInventory, ProductNotFound
from .schemas import BatchResponse, InventoryUpdateRequest, InventoryUpdateResponse
from .store import SqlBatchStore
from .strategies import default_registry

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("inventory_service")

registry = default_registry()
redis_pool: aioredis.Redis | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global redis_pool
    if config.CREATE_SCHEMA:
        await db.create_schema(db.engine)
    if config.SEED_DATA:
        await db.seed(db.engine)
    redis_pool = aioredis.from_url(config.REDIS_URL, decode_responses=True)
    yield
    await redis_pool.aclose()
    await db.engine.dispose()


app = FastAPI(title="Inventory Service", lifespan=lifespan)


# ── Dependencies ─────────────────────────────────


async def get_session():
    async with db.async_session() as session:
        yield session


def get_coordinator(session: AsyncSession = Depends(get_session)) -> InventoryCoordinator:
    return InventoryCoordinator(SqlBatchStore(session), registry, redis_pool)


# ── Error Handlers ───────────────────────────────


def error_body(status: int, error: str, message: str, **extra) -> dict:
    return {
        "status": status,
        "error": error,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **extra,
    }


@app.exception_handler(ProductNotFound)
async def handle_product_not_found(request: Request, exc: ProductNotFound):
    logger.warning("Product lookup failed: %s", exc)
    return JSONResponse(status_code=404, content=error_body(404, "Not Found", str(exc)))


@app.exception_handler(InsufficientInventory)
async def handle_insufficient_inventory(request: Request, exc: InsufficientInventory):
    logger.warning("Deduction rejected: %s", exc)
    return JSONResponse(
        status_code=400,
        content=error_body(
            400,
            "Insufficient Inventory",
            str(exc),
            requested=exc.requested,
            available=exc.available,
        ),
    )


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = {".".join(str(p) for p in err["loc"][1:]): err["msg"] for err in exc.errors()}
    return JSONResponse(
        status_code=400,
        content=error_body(400, "Validation Failed", "Invalid request", details=details),
    )


# ── Endpoints ────────────────────────────────────


@app.get("/inventory/health", response_class=PlainTextResponse)
async def health():
    return "Inventory Service is running"


@app.post("/inventory/update", response_model=InventoryUpdateResponse)
async def update_inventory(
    req: InventoryUpdateRequest,
    strategy: str = "FIFO",
    coordinator: InventoryCoordinator = Depends(get_coordinator),
):
    """注文に応じて在庫を引き当てる。strategy は FIFO (デフォルト) / LIFO。"""
    result = await coordinator.update_inventory(req.product_id, req.quantity, strategy)
    return InventoryUpdateResponse.from_result(result)


@app.get("/inventory/{product_id}", response_model=list[BatchResponse])
async def get_inventory(
    product_id: str,
    coordinator: InventoryCoordinator = Depends(get_coordinator),
):
    """商品のバッチ一覧を有効期限の早い順に返す。"""
    batches = await coordinator.get_batches(product_id)
    today = coordinator.today()
    return [BatchResponse.from_batch(b, today) for b in batches]
