"""
Inventory Service - ドメインモデル

Product は複数の Batch (ロット) を所有する。
Batch の数量を変更するのは引き当て戦略 (strategies.py) だけ。
"""

from dataclasses import dataclass, field
from datetime import date


@dataclass
class Product:
    product_id: str
    name: str
    description: str = ""


@dataclass
class Batch:
    """同一の製造日・有効期限を持つ在庫のまとまり。"""

    batch_number: str
    product_id: str
    quantity: int
    expiry_date: date
    manufacturing_date: date
    product_name: str = ""

    def reduce_quantity(self, amount: int) -> None:
        if amount > self.quantity:
            raise ValueError(
                f"Cannot reduce quantity by {amount}. Available quantity: {self.quantity}"
            )
        self.quantity -= amount

    def is_expired(self, today: date) -> bool:
        return today > self.expiry_date


@dataclass(frozen=True)
class DeductionLedgerEntry:
    batch_number: str
    quantity_deducted: int


@dataclass
class DeductionResult:
    """1 回の引き当て操作の結果。batch_deductions は戦略が訪れた順。"""

    product_id: str
    strategy: str
    total_quantity_deducted: int
    batch_deductions: list[DeductionLedgerEntry] = field(default_factory=list)
    message: str = ""
