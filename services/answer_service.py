"""
答案服務：計算數字的標準答案、檢查玩家答案

純計算邏輯，沒有狀態
"""
from typing import Iterable, Optional

from core.entities import Rule
from core.exceptions import InvalidArgument


def compute_answer(number: int, rules: Iterable[Rule]) -> str:
    """
    計算一個數字的標準答案

    規則：
    - 依 order 由小到大套用（order 相同時保持原本順序）
    - 能整除的規則，把 word 接在答案後面（不加分隔符）
    - 沒有任何規則命中時，答案就是數字本身

    參數：
        number: 抽到的數字（>= 1）
        rules: RuleSet 或任何 Rule 的 iterable

    返回：
        標準答案字串

    異常：
        InvalidArgument: number < 1，或規則的 divisor <= 0
            （未經 build_rule_set 驗證的規則）

    範例：
        規則 3->Fizz (order 0), 5->Buzz (order 1)
        compute_answer(15, rules) -> "FizzBuzz"
        compute_answer(7, rules) -> "7"
    """
    if number < 1:
        raise InvalidArgument(f"Number must be positive, got {number}")

    ordered = sorted(rules, key=lambda r: r.order)
    for rule in ordered:
        if rule.divisor <= 0:
            raise InvalidArgument(f"Divisor must be positive: {rule.divisor}")

    answer = "".join(rule.word for rule in ordered if number % rule.divisor == 0)
    return answer or str(number)


def is_correct(expected: str, submitted: Optional[str]) -> bool:
    """
    比對玩家答案與標準答案

    規則：
    - 空字串或只有空白：一律答錯
    - 忽略兩邊的前後空白
    - 不分大小寫：逐字元 lower()，不做 casefold 的 Unicode 展開
      （"ß" 不等於 "SS"），也不受 locale 影響
    """
    if submitted is None or not submitted.strip():
        return False

    return expected.strip().lower() == submitted.strip().lower()
