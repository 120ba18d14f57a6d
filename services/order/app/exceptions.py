"""
Order Service - 例外

InventoryServiceError 系は Inventory Service 呼び出しの失敗を表し、
API では 503 として返す。
"""


class OrderError(Exception):
    """注文ドメインの例外の基底クラス"""


class OrderNotFound(OrderError):
    pass


class InvalidState(OrderError):
    """許可されていない状態遷移"""


class OrderProcessingError(OrderError):
    """注文処理中の想定外のエラー"""


class InventoryServiceError(OrderError):
    """在庫引き当てに失敗した"""


class ProductNotFound(InventoryServiceError):
    pass


class InsufficientInventory(InventoryServiceError):
    pass


class InventoryServiceUnavailable(InventoryServiceError):
    """タイムアウト・接続失敗・想定外のレスポンス"""
