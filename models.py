"""
SQLAlchemy ORM 模型

games ──< game_rules
game_sessions ──< game_rounds

注意：
    Session 開始時會把規則存成 JSON 快照（rules_snapshot），
    之後修改或刪除 Game 都不會影響進行中的 Session
"""
from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(50), nullable=False, unique=True, index=True)
    author = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    rules = relationship(
        "GameRule",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="GameRule.sort_order",
    )


class GameRule(Base):
    __tablename__ = "game_rules"

    id = Column(String(36), primary_key=True, default=_uuid)
    game_id = Column(String(36), ForeignKey("games.id", ondelete="CASCADE"), nullable=False, index=True)
    divisor = Column(Integer, nullable=False)
    replace_word = Column(String(20), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    game = relationship("Game", back_populates="rules")


class SessionRecord(Base):
    __tablename__ = "game_sessions"

    id = Column(String(36), primary_key=True, default=_uuid)
    # 不設 FK：Game 被刪除後，Session 仍靠規則快照繼續存在
    game_id = Column(String(36), nullable=True, index=True)
    game_name = Column(String(50), nullable=False, default="")
    player_id = Column(String(100), nullable=False, default="anonymous")
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Integer, nullable=False)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    used_numbers = Column(JSON, nullable=False, default=list)
    rules_snapshot = Column(JSON, nullable=False, default=list)

    rounds = relationship(
        "RoundRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="RoundRecord.sequence",
    )


class RoundRecord(Base):
    __tablename__ = "game_rounds"

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(String(36), ForeignKey("game_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    number = Column(Integer, nullable=False)
    # 答案長度 = 每個字最多 20 字元 × 命中的規則數，沒有固定上限，所以用 Text
    expected_answer = Column(Text, nullable=False)
    player_answer = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    # 固定為 0：目前沒有量測前端回應時間
    response_time_ms = Column(Integer, nullable=False, default=0)

    session = relationship("SessionRecord", back_populates="rounds")
