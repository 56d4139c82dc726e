"""
Pydantic 請求 / 回應模型
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from database import get_settings

_settings = get_settings()


# ============ Game ============

class GameRuleCreate(BaseModel):
    divisor: int = Field(..., ge=1, description="Divisor must be positive")
    replace_word: str = Field(..., min_length=1, max_length=20)
    sort_order: int = Field(0, ge=0)


class GameRuleResponse(BaseModel):
    id: str
    divisor: int
    replace_word: str
    sort_order: int

    class Config:
        from_attributes = True


class GameCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=50)
    author: str = Field(..., min_length=2, max_length=50)
    rules: List[GameRuleCreate] = Field(..., min_length=1)


class GameResponse(BaseModel):
    id: str
    name: str
    author: str
    created_at: datetime
    rules: List[GameRuleResponse]

    class Config:
        from_attributes = True


# ============ Session ============

class SessionCreate(BaseModel):
    game_id: str
    duration: int = Field(
        ...,
        ge=_settings.min_duration_seconds,
        le=_settings.max_duration_seconds,
        description="Session length in seconds"
    )
    player_id: Optional[str] = Field(None, max_length=100)


class SessionRuleResponse(BaseModel):
    divisor: int
    replace_word: str
    sort_order: int


class SessionResponse(BaseModel):
    id: str
    game_id: Optional[str]
    game_name: str
    start_time: datetime
    duration: int
    remaining_time: int
    correct_answers: int
    incorrect_answers: int
    rules: List[SessionRuleResponse]


class NumberResponse(BaseModel):
    number: int


class AnswerSubmit(BaseModel):
    # 答案長度跟著規則數成長，不設上限
    answer: str


class AnswerResultResponse(BaseModel):
    is_correct: bool
    correct_answer: str
    is_game_over: bool


class GameResultResponse(BaseModel):
    id: str
    game_id: Optional[str]
    game_name: str
    total_answers: int
    correct_answers: int
    incorrect_answers: int
    accuracy_percentage: int
    is_completed: bool


class RoundResponse(BaseModel):
    number: int
    expected_answer: str
    player_answer: Optional[str]
    is_correct: bool
