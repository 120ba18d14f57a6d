"""
Inventory Service - イベント定義

引き当てが成功したときに inventory_events チャネルへ発行する。
"""

from datetime import datetime

from pydantic import BaseModel


class BatchDeducted(BaseModel):
    batch_number: str
    quantity_deducted: int


class InventoryDeducted(BaseModel):
    """在庫が引き当てられた"""
    product_id: str
    strategy: str
    total_quantity_deducted: int
    batch_deductions: list[BatchDeducted]
    timestamp: datetime
