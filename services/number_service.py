"""
抽號服務：抽出一個還沒用過的隨機數字

除了消耗亂數以外沒有副作用；呼叫者負責記錄抽到的數字，
excluded 不會被修改
"""
import random
from typing import Iterable, Optional

from core.exceptions import Exhausted, InvalidArgument

# 每個 process 只 seed 一次
_rng = random.Random()


def draw_number(
    min_number: int,
    max_number: int,
    excluded: Iterable[int],
    rng: Optional[random.Random] = None
) -> int:
    """
    從 [min_number, max_number] 中抽出一個不在 excluded 裡的數字

    剩下的每個數字機率都是 1/len(pool)

    參數：
        min_number: 下界（含，>= 1）
        max_number: 上界（含，> min_number）
        excluded: 已經抽過的數字
        rng: 可選的亂數來源（測試時傳入固定 seed）

    返回：
        抽到的數字

    異常：
        InvalidArgument: min_number < 1 或 max_number <= min_number
        Exhausted: 範圍內的數字都用完了
    """
    if min_number < 1:
        raise InvalidArgument("Minimum number must be positive")
    if max_number <= min_number:
        raise InvalidArgument("Maximum number must be greater than minimum")

    excluded = set(excluded)
    pool = [n for n in range(min_number, max_number + 1) if n not in excluded]
    if not pool:
        raise Exhausted(min_number, max_number)

    return (rng or _rng).choice(pool)
