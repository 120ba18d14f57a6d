"""
Inventory Service - 引き当て戦略 (Strategy パターン)

呼び出し側は「数量 > 0 かつ期限切れでない」バッチを有効期限の昇順で渡す。

  FIFO: 渡された順 (有効期限が早いもの) から引き当てる
  LIFO: 逆順 (有効期限が遅いもの) から引き当てる

引き当ては all-or-nothing。合計が足りない場合はどのバッチも変更せずに
InsufficientInventory を送出する。
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from .exceptions import InsufficientInventory
from .models import Batch, DeductionLedgerEntry

logger = logging.getLogger(__name__)


class DeductionStrategy(ABC):
    name: str = ""

    @abstractmethod
    def visit_order(self, batches: Sequence[Batch]) -> list[Batch]:
        """バッチを訪れる順序を返す。"""

    def deduct(self, batches: Sequence[Batch], quantity: int) -> list[DeductionLedgerEntry]:
        """
        バッチの数量をその場で減らし、引き当て台帳を返す。

        台帳は 1 バッチ 1 エントリで、訪れた順に並ぶ。
        """
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got {quantity}")

        logger.info("Applying %s strategy to deduct %d units", self.name, quantity)
        ordered = self.visit_order(batches)

        available = sum(batch.quantity for batch in ordered)
        if available < quantity:
            raise InsufficientInventory(requested=quantity, available=available)

        remaining = quantity
        ledger: list[DeductionLedgerEntry] = []
        for batch in ordered:
            if remaining <= 0:
                break
            to_deduct = min(remaining, batch.quantity)
            if to_deduct == 0:
                continue
            batch.reduce_quantity(to_deduct)
            remaining -= to_deduct
            ledger.append(DeductionLedgerEntry(batch.batch_number, to_deduct))
            logger.debug("Deducted %d units from batch %s", to_deduct, batch.batch_number)

        return ledger


class FifoStrategy(DeductionStrategy):
    name = "FIFO"

    def visit_order(self, batches: Sequence[Batch]) -> list[Batch]:
        return list(batches)


class LifoStrategy(DeductionStrategy):
    name = "LIFO"

    def visit_order(self, batches: Sequence[Batch]) -> list[Batch]:
        return list(reversed(batches))


class StrategyRegistry:
    """
    戦略名 -> 戦略インスタンスの対応表。

    起動時に 1 度だけ組み立て、コーディネーターに渡す。
    未知の名前や空の名前はエラーにせず FIFO にフォールバックする。
    フォールバック先が必ずあるよう、FIFO は最初から登録しておく。
    """

    DEFAULT = "FIFO"

    def __init__(self) -> None:
        self._strategies: dict[str, DeductionStrategy] = {}
        self.register(FifoStrategy())

    def register(self, strategy: DeductionStrategy) -> None:
        self._strategies[strategy.name.upper()] = strategy
        logger.info("Registered inventory strategy: %s", strategy.name)

    def names(self) -> list[str]:
        return sorted(self._strategies)

    @property
    def default(self) -> DeductionStrategy:
        return self._strategies[self.DEFAULT]

    def resolve(self, name: str | None = None) -> DeductionStrategy:
        key = (name or "").strip().upper()
        strategy = self._strategies.get(key)
        if strategy is None:
            logger.warning("Strategy '%s' not found, using %s as default", name, self.DEFAULT)
            return self.default
        return strategy


def default_registry() -> StrategyRegistry:
    registry = StrategyRegistry()
    registry.register(LifoStrategy())
    return registry
