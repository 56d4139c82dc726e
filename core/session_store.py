"""
Session 存取層：引擎的持久化這一側

負責 ORM rows（models.py）與引擎資料結構（core.entities）之間的轉換：

- load_session(db, id) -> GameSession          (SessionNotFound)
- save_session(db, GameSession) -> SessionRecord
- load_rule_set(db, game_id) -> RuleSet         (GameNotFound)

這裡不 commit，由呼叫者的 transaction 決定
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from models import Game, RoundRecord, SessionRecord
from core.entities import GameSession, Round, Rule, RuleSet
from core.exceptions import GameNotFound, SessionNotFound
from core.locks import with_session_lock


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite 取回來的是 naive datetime，一律當作 UTC"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def get_game_record(db: Session, game_id: str) -> Game:
    game = db.query(Game).filter(Game.id == str(game_id)).first()
    if not game:
        raise GameNotFound(game_id)
    return game


def rule_set_from_game(game: Game) -> RuleSet:
    return RuleSet(
        Rule(divisor=rule.divisor, word=rule.replace_word, order=rule.sort_order)
        for rule in game.rules
    )


def load_rule_set(db: Session, game_id: str) -> RuleSet:
    """Game 目前的規則"""
    return rule_set_from_game(get_game_record(db, game_id))


def get_session_record(db: Session, session_id: str, for_update: bool = False) -> SessionRecord:
    if for_update:
        record = with_session_lock(str(session_id), db).first()
    else:
        record = db.query(SessionRecord).filter(SessionRecord.id == str(session_id)).first()
    if not record:
        raise SessionNotFound(session_id)
    return record


def to_entity(record: SessionRecord) -> GameSession:
    return GameSession(
        id=record.id,
        game_id=record.game_id,
        rule_set=RuleSet.from_list(record.rules_snapshot or []),
        start_time=as_utc(record.start_time),
        duration_seconds=record.duration_seconds,
        used_numbers=list(record.used_numbers or []),
        rounds=[
            Round(
                number=r.number,
                expected_answer=r.expected_answer,
                player_answer=r.player_answer,
                is_correct=r.is_correct
            )
            for r in record.rounds
        ],
        correct_count=record.correct_count,
        incorrect_count=record.incorrect_count,
        end_time=as_utc(record.end_time),
    )


def load_session(db: Session, session_id: str, for_update: bool = False) -> GameSession:
    """
    讀取 Session 並轉成引擎資料結構

    參數：
        for_update: 是否加行級鎖（在會修改資料的 transaction 內使用）

    異常：
        SessionNotFound: Session 不存在
    """
    return to_entity(get_session_record(db, session_id, for_update=for_update))


def save_session(
    db: Session,
    session: GameSession,
    player_id: Optional[str] = None,
    game_name: Optional[str] = None
) -> SessionRecord:
    """
    把 Session 寫回 DB（第一次儲存時新增）

    Round 只會追加：只新增 DB 裡還沒有的回合
    """
    record = db.query(SessionRecord).filter(SessionRecord.id == session.id).first()
    if record is None:
        record = SessionRecord(
            id=session.id,
            game_id=session.game_id,
            start_time=session.start_time,
            duration_seconds=session.duration_seconds,
            rules_snapshot=session.rule_set.to_list(),
            player_id=player_id or "anonymous",
            game_name=game_name or "",
        )
        db.add(record)

    record.end_time = session.end_time
    record.correct_count = session.correct_count
    record.incorrect_count = session.incorrect_count
    # 必須給新的 list，JSON 欄位才會被標記為已修改
    record.used_numbers = list(session.used_numbers)

    stored = len(record.rounds)
    for sequence, round_ in enumerate(session.rounds[stored:], start=stored + 1):
        record.rounds.append(RoundRecord(
            sequence=sequence,
            number=round_.number,
            expected_answer=round_.expected_answer,
            player_answer=round_.player_answer,
            is_correct=round_.is_correct,
            response_time_ms=0
        ))

    db.flush()
    return record
