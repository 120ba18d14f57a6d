"""
Inventory Service - 例外

main.py の例外ハンドラで HTTP ステータスに変換される。
"""


class InventoryError(Exception):
    """在庫ドメインの例外の基底クラス"""


class ProductNotFound(InventoryError):
    """商品が存在しない、または引き当て可能なバッチがない"""


class InsufficientInventory(InventoryError):
    """要求数量に対して在庫が足りない"""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient inventory. Required: {requested}, Available: {available}"
        )
