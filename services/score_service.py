"""
計分服務：答對率

純計算邏輯
"""
from decimal import Decimal, ROUND_HALF_UP

from core.exceptions import InvalidArgument


def accuracy(correct: int, total: int) -> int:
    """
    答對率（0-100 的整數百分比）

    四捨五入：.5 一律進位（12.5 -> 13），不是銀行家捨入

    返回：
        total 為 0 時返回 0（沒作答就沒有答對率）

    異常：
        InvalidArgument: 數量為負，或 correct > total

    範例：
        accuracy(5, 10) -> 50
        accuracy(1, 8) -> 13
        accuracy(0, 0) -> 0
    """
    if correct < 0 or total < 0:
        raise InvalidArgument(f"Counts must be non-negative, got {correct}/{total}")
    if correct > total:
        raise InvalidArgument(f"Correct count {correct} exceeds total {total}")

    if total == 0:
        return 0

    percentage = Decimal(correct) * 100 / Decimal(total)
    return int(percentage.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
