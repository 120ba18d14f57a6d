"""
Inventory Service - リクエスト / レスポンスモデル

JSON のキーは camelCase (Order Service との契約)。
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .models import Batch, DeductionResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InventoryUpdateRequest(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0)


class BatchResponse(CamelModel):
    batch_number: str
    product_id: str
    product_name: str
    quantity: int
    expiry_date: date
    manufacturing_date: date
    expired: bool

    @classmethod
    def from_batch(cls, batch: Batch, today: date) -> "BatchResponse":
        return cls(
            batch_number=batch.batch_number,
            product_id=batch.product_id,
            product_name=batch.product_name,
            quantity=batch.quantity,
            expiry_date=batch.expiry_date,
            manufacturing_date=batch.manufacturing_date,
            expired=batch.is_expired(today),
        )


class BatchDeductionResponse(CamelModel):
    batch_number: str
    quantity_deducted: int


class InventoryUpdateResponse(CamelModel):
    product_id: str
    strategy: str
    total_quantity_deducted: int
    batch_deductions: list[BatchDeductionResponse]
    message: str

    @classmethod
    def from_result(cls, result: DeductionResult) -> "InventoryUpdateResponse":
        return cls(
            product_id=result.product_id,
            strategy=result.strategy,
            total_quantity_deducted=result.total_quantity_deducted,
            batch_deductions=[
                BatchDeductionResponse(
                    batch_number=e.batch_number,
                    quantity_deducted=e.quantity_deducted,
                )
                for e in result.batch_deductions
            ],
            message=result.message,
        )
