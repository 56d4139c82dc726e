"""
規則服務：驗證與排序 divisor/word 規則

純計算邏輯。建立 Game 時（還沒有任何 Session）與 Session 快照規則時都會用到
"""
from typing import Iterable, List

from core.entities import Rule, RuleSet
from core.exceptions import InvalidArgument

MAX_WORD_LENGTH = 20


def validate_rules(rules: Iterable[Rule]) -> List[Rule]:
    """
    檢查規則列表，並以 list 返回

    規則：
    - 至少一條規則
    - divisor > 0
    - word 不可空白，最多 20 字元
    - order >= 0
    - divisor 不可重複

    異常：
        InvalidArgument: 第一個不符合的規則
    """
    rules = list(rules)
    if not rules:
        raise InvalidArgument("At least one rule must be provided.")

    seen = set()
    for rule in rules:
        if rule.divisor <= 0:
            raise InvalidArgument(f"Divisor must be positive: {rule.divisor}")
        if not rule.word or not rule.word.strip():
            raise InvalidArgument("Replace word cannot be empty.")
        if len(rule.word) > MAX_WORD_LENGTH:
            raise InvalidArgument(
                f"Replace word must be at most {MAX_WORD_LENGTH} characters: {rule.word!r}"
            )
        if rule.order < 0:
            raise InvalidArgument(f"Sort order must be non-negative: {rule.order}")
        if rule.divisor in seen:
            raise InvalidArgument("Duplicate divisors are not allowed.")
        seen.add(rule.divisor)

    return rules


def build_rule_set(rules: Iterable[Rule]) -> RuleSet:
    """驗證規則並凍結成排序好的 RuleSet"""
    if isinstance(rules, RuleSet):
        rules = rules.rules
    return RuleSet(validate_rules(rules))


def normalize_sort_orders(rules: Iterable[Rule]) -> List[Rule]:
    """
    為新建立的規則補上預設排序

    order 為 0 的規則改用它在列表中的位置；非 0 的 order 保持不變

    範例：
        [(3, Fizz, 0), (5, Buzz, 0)] -> [(3, Fizz, 0), (5, Buzz, 1)]
        [(3, Fizz, 7), (5, Buzz, 0)] -> [(3, Fizz, 7), (5, Buzz, 1)]
    """
    return [
        rule if rule.order != 0 else Rule(divisor=rule.divisor, word=rule.word, order=index)
        for index, rule in enumerate(rules)
    ]
