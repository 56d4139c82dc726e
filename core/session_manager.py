"""
Session Manager：把 Session 狀態機接上資料庫

職責：
1. 開始 Session（快照 Game 的規則）
2. 抽號 / 提交答案 / 結束 / 成績
3. 唯讀的 Session 資訊與回合紀錄

每個會修改資料的呼叫都是一次 讀取-修改-寫回：

    session_guard(id)                      process 鎖
      └─ @transactional                    commit / rollback
           └─ load_session(for_update)     行級鎖
              狀態機操作
              save_session

next_number / submit_answer 裡發現「時間到」會結束 Session，
這個結束會先 commit，SessionEnded 才往上拋給呼叫者
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from core.entities import AnswerResult, GameResult, GameSession, Round
from core.exceptions import SessionEnded
from core.locks import session_guard
from core.session_store import (
    get_game_record,
    get_session_record,
    load_session,
    rule_set_from_game,
    save_session,
    to_entity,
)
from core.state_machine import SessionStateMachine
from database import get_settings, transactional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Session 加上 API 要回傳的顯示欄位"""
    session: GameSession
    game_name: str
    player_id: str
    remaining_time: int


class SessionManager:
    """Session 生命週期管理器"""

    def __init__(self, machine: SessionStateMachine):
        self.machine = machine

    # ============ 開始 ============

    @transactional
    def start_session(
        self,
        db: Session,
        game_id: str,
        duration_seconds: int,
        player_id: str = "anonymous"
    ) -> SessionSnapshot:
        """
        為 Game 開始一個新的 Session

        流程：
        1. 讀取 Game（GameNotFound）
        2. 把規則快照進新的 Session（InvalidArgument）
        3. 儲存 Session

        返回：
            SessionSnapshot，remaining_time 等於 duration
        """
        # 1. 讀取 Game
        game = get_game_record(db, game_id)

        # 2. 建立 Session
        session = self.machine.start_session(
            rule_set_from_game(game),
            duration_seconds,
            game_id=game.id
        )

        # 3. 儲存
        save_session(db, session, player_id=player_id, game_name=game.name)

        logger.info(f"Game session started: {session.id} for game {game.name}")
        return SessionSnapshot(
            session=session,
            game_name=game.name,
            player_id=player_id,
            remaining_time=session.duration_seconds
        )

    # ============ 回合操作 ============

    def next_number(self, db: Session, session_id: str) -> int:
        """
        抽下一個數字

        異常：
            SessionNotFound, SessionEnded, NoNumbersRemaining
        """
        with session_guard(session_id):
            return self._next_number(db, session_id)

    @transactional(commit_on=(SessionEnded,))
    def _next_number(self, db: Session, session_id: str) -> int:
        session = load_session(db, session_id, for_update=True)
        try:
            number = self.machine.request_number(session)
        except SessionEnded:
            save_session(db, session)
            raise

        save_session(db, session)
        logger.info(f"Generated number {number} for session {session_id}")
        return number

    def submit_answer(self, db: Session, session_id: str, answer: Optional[str]) -> AnswerResult:
        """
        對最後抽出的數字評分玩家的答案

        異常：
            SessionNotFound, SessionEnded, NoPriorNumber
        """
        with session_guard(session_id):
            return self._submit_answer(db, session_id, answer)

    @transactional(commit_on=(SessionEnded,))
    def _submit_answer(self, db: Session, session_id: str, answer: Optional[str]) -> AnswerResult:
        session = load_session(db, session_id, for_update=True)
        try:
            result = self.machine.submit_answer(session, answer)
        except SessionEnded:
            save_session(db, session)
            raise

        save_session(db, session)
        logger.info(
            f"Answer submitted for session {session_id}: number={session.last_number}, "
            f"expected={result.expected_answer!r}, player={answer!r}, correct={result.is_correct}"
        )
        return result

    # ============ 結束 / 成績 ============

    def end_session(self, db: Session, session_id: str) -> GameResult:
        """結束 Session（可重複呼叫）並返回最終成績"""
        with session_guard(session_id):
            return self._end_session(db, session_id)

    @transactional
    def _end_session(self, db: Session, session_id: str) -> GameResult:
        session = load_session(db, session_id, for_update=True)
        self.machine.end_session(session)
        result = self.machine.get_result(session)
        save_session(db, session)
        return result

    def get_result(self, db: Session, session_id: str) -> GameResult:
        """成績快照；時間到了會先結束 Session"""
        with session_guard(session_id):
            return self._get_result(db, session_id)

    @transactional
    def _get_result(self, db: Session, session_id: str) -> GameResult:
        session = load_session(db, session_id, for_update=True)
        was_open = session.end_time is None
        result = self.machine.get_result(session)
        if was_open and session.end_time is not None:
            save_session(db, session)
        return result

    # ============ 查詢 ============

    def get_session(self, db: Session, session_id: str) -> SessionSnapshot:
        """唯讀的 Session 資訊（不觸發狀態轉換）"""
        record = get_session_record(db, session_id)
        session = to_entity(record)
        return SessionSnapshot(
            session=session,
            game_name=record.game_name,
            player_id=record.player_id,
            remaining_time=self.machine.remaining_seconds(session)
        )

    def get_rounds(self, db: Session, session_id: str) -> List[Round]:
        """依作答順序返回所有回合"""
        return list(load_session(db, session_id).rounds)


@lru_cache()
def get_session_manager() -> SessionManager:
    """FastAPI 依賴：依 Settings 建立 Manager"""
    settings = get_settings()
    machine = SessionStateMachine(
        min_number=settings.min_number,
        max_number=settings.max_number
    )
    return SessionManager(machine)
