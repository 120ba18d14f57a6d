"""
Order Service - イベント定義

注文の状態が確定したときに order_events チャネルへ発行する。
イベントは過去形で命名する。
"""

from datetime import datetime

from pydantic import BaseModel


class OrderConfirmed(BaseModel):
    """在庫引き当てに成功し、注文が確定した"""
    order_id: str
    product_id: str
    quantity: int
    total_quantity_deducted: int
    timestamp: datetime


class OrderFailed(BaseModel):
    """在庫引き当てに失敗した"""
    order_id: str
    product_id: str
    quantity: int
    reason: str
    timestamp: datetime


class OrderCancelled(BaseModel):
    order_id: str
    timestamp: datetime
