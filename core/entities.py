"""
引擎資料結構

純 dataclass，不碰 DB 也不碰 HTTP。資料層先把 ORM rows 轉成這些物件
交給狀態機，處理完再轉回去
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Rule:
    """一條 divisor -> word 規則"""
    divisor: int
    word: str
    order: int = 0

    def to_dict(self) -> dict:
        return {"divisor": self.divisor, "word": self.word, "order": self.order}

    @classmethod
    def from_dict(cls, data: dict) -> "Rule":
        return cls(
            divisor=int(data["divisor"]),
            word=str(data["word"]),
            order=int(data.get("order", 0)),
        )


class RuleSet:
    """
    不可變、已排序的 Rule 集合

    依 order 排序；Python 的 sort 是穩定排序，order 相同時保持加入順序

    注意：
        建構子不做驗證（非空、divisor 為正且不重複），
        這些不變量由 services.rule_service.build_rule_set 保證。
        對外請一律透過 build_rule_set 建立 RuleSet
    """

    def __init__(self, rules: Iterable[Rule]):
        self._rules: Tuple[Rule, ...] = tuple(sorted(rules, key=lambda r: r.order))

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RuleSet):
            return NotImplemented
        return self._rules == other._rules

    def __repr__(self) -> str:
        return f"RuleSet({list(self._rules)!r})"

    def to_list(self) -> List[dict]:
        return [rule.to_dict() for rule in self._rules]

    @classmethod
    def from_list(cls, data: List[dict]) -> "RuleSet":
        return cls(Rule.from_dict(item) for item in data)


@dataclass(frozen=True)
class Round:
    """一次抽號 + 作答；每次成功提交答案建立一筆，建立後不可變"""
    number: int
    expected_answer: str
    player_answer: Optional[str]
    is_correct: bool


@dataclass
class GameSession:
    """
    一場計時遊戲

    used_numbers 保留抽號順序，used_numbers[-1] 就是玩家正在作答的數字
    """
    id: str
    rule_set: RuleSet
    start_time: datetime
    duration_seconds: int
    game_id: Optional[str] = None
    used_numbers: List[int] = field(default_factory=list)
    rounds: List[Round] = field(default_factory=list)
    correct_count: int = 0
    incorrect_count: int = 0
    end_time: Optional[datetime] = None

    @property
    def last_number(self) -> Optional[int]:
        return self.used_numbers[-1] if self.used_numbers else None


@dataclass(frozen=True)
class AnswerResult:
    is_correct: bool
    expected_answer: str
    is_session_over: bool


@dataclass(frozen=True)
class GameResult:
    total_answers: int
    correct_count: int
    incorrect_count: int
    accuracy: int
    is_completed: bool
