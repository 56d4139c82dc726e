"""
Session 狀態機：所有 Session 狀態變化都經過這裡

狀態（由時間戳推導，不存 DB）：

    ACTIVE  --(elapsed >= duration)-->  EXPIRED  --(下一次觀察)-->  ENDED
    ACTIVE  --(end_session)---------------------------------------->  ENDED

- ACTIVE: end_time 為 None 且 elapsed < duration
- EXPIRED: end_time 為 None 但時間已用完；任何看到這個狀態的操作會先結束 Session
- ENDED: end_time 已設定，終止狀態

沒有計時器：每個操作一開始比對 clock 與 start_time + duration，
才判斷「時間到」

並發：狀態機直接修改傳入的 GameSession，假設同一個 Session 同時只有一個
修改操作。跨 thread / process 共用 Session 時由呼叫者負責序列化（見 core.locks）
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional
import logging
import random
import uuid

from core.entities import AnswerResult, GameResult, GameSession, Round, RuleSet
from core.exceptions import (
    Exhausted,
    InvalidArgument,
    NoNumbersRemaining,
    NoPriorNumber,
    SessionEnded,
)
from services.answer_service import compute_answer, is_correct
from services.number_service import draw_number
from services.rule_service import build_rule_set
from services.score_service import accuracy

logger = logging.getLogger(__name__)

MIN_NUMBER = 1
MAX_NUMBER = 1000


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    ENDED = "ended"


class SessionStateMachine:
    """Session 生命週期操作"""

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        min_number: int = MIN_NUMBER,
        max_number: int = MAX_NUMBER,
        rng: Optional[random.Random] = None
    ):
        self.clock = clock
        self.min_number = min_number
        self.max_number = max_number
        self.rng = rng

    # ============ 狀態查詢 ============

    def elapsed_seconds(self, session: GameSession, now: Optional[datetime] = None) -> float:
        now = now or self.clock()
        return (now - session.start_time).total_seconds()

    def status(self, session: GameSession, now: Optional[datetime] = None) -> SessionStatus:
        if session.end_time is not None:
            return SessionStatus.ENDED
        if self.elapsed_seconds(session, now) >= session.duration_seconds:
            return SessionStatus.EXPIRED
        return SessionStatus.ACTIVE

    def remaining_seconds(self, session: GameSession) -> int:
        """剩餘整數秒；Session 結束後為 0"""
        if session.end_time is not None:
            return 0
        elapsed = int(self.elapsed_seconds(session))
        return max(0, session.duration_seconds - elapsed)

    # ============ 操作 ============

    def start_session(
        self,
        rule_set: RuleSet,
        duration_seconds: int,
        session_id: Optional[str] = None,
        game_id: Optional[str] = None
    ) -> GameSession:
        """
        建立新的 Session

        規則會先驗證再快照；之後 Game 的規則怎麼改都不影響這個 Session

        異常：
            InvalidArgument: duration <= 0，或規則為空/不合法
        """
        if duration_seconds is None or duration_seconds <= 0:
            raise InvalidArgument(f"Game duration must be positive, got {duration_seconds}")
        if rule_set is None:
            raise InvalidArgument("Rule set is required")

        snapshot = build_rule_set(rule_set)

        session = GameSession(
            id=session_id or str(uuid.uuid4()),
            game_id=game_id,
            rule_set=snapshot,
            start_time=self.clock(),
            duration_seconds=duration_seconds,
        )
        logger.info(
            f"Session {session.id} started: duration={duration_seconds}s, rules={len(snapshot)}"
        )
        return session

    def request_number(self, session: GameSession) -> int:
        """
        為 Session 抽下一個數字

        異常：
            SessionEnded: Session 已結束，或這次呼叫才發現時間到（順便結束 Session）
            NoNumbersRemaining: 範圍內的數字都用完了
        """
        self._ensure_playable(session)

        try:
            number = draw_number(
                self.min_number,
                self.max_number,
                session.used_numbers,
                rng=self.rng
            )
        except Exhausted as e:
            logger.warning(f"Number pool exhausted for session {session.id}")
            raise NoNumbersRemaining(session.id, str(e)) from e

        session.used_numbers.append(number)
        logger.debug(f"Drew {number} for session {session.id}")
        return number

    def submit_answer(self, session: GameSession, raw_answer: Optional[str]) -> AnswerResult:
        """
        對最近抽出的數字評分

        流程：
        1. 拒絕已結束 / 已逾時的 Session
        2. 必須先抽過數字
        3. 算出正確答案、比對、記錄一個 Round
        4. 再看一次時間；這次呼叫期間時間用完的話，計分後結束 Session

        異常：
            SessionEnded: Session 已結束，或時間到了
            NoPriorNumber: 還沒抽過數字
        """
        # 1. 時間 / 結束檢查
        self._ensure_playable(session)

        # 2. 正在作答的數字
        number = session.last_number
        if number is None:
            raise NoPriorNumber(session.id)

        # 3. 評分
        expected = compute_answer(number, session.rule_set)
        correct = is_correct(expected, raw_answer)

        session.rounds.append(Round(
            number=number,
            expected_answer=expected,
            player_answer=raw_answer,
            is_correct=correct
        ))
        if correct:
            session.correct_count += 1
        else:
            session.incorrect_count += 1

        # 4. 邊界檢查
        is_over = self.status(session) != SessionStatus.ACTIVE
        if is_over:
            self._end(session)

        return AnswerResult(
            is_correct=correct,
            expected_answer=expected,
            is_session_over=is_over
        )

    def end_session(self, session: GameSession) -> GameSession:
        """結束 Session；重複呼叫不會改動 end_time"""
        if session.end_time is None:
            self._end(session)
        return session

    def get_result(self, session: GameSession) -> GameResult:
        """
        成績摘要，任何時候都可以呼叫

        已逾時的 Session 會先結束，所以結果會標示為已完成
        """
        if self.status(session) == SessionStatus.EXPIRED:
            self._end(session)

        total = session.correct_count + session.incorrect_count
        return GameResult(
            total_answers=total,
            correct_count=session.correct_count,
            incorrect_count=session.incorrect_count,
            accuracy=accuracy(session.correct_count, total),
            is_completed=session.end_time is not None
        )

    # ============ 內部方法 ============

    def _ensure_playable(self, session: GameSession) -> None:
        status = self.status(session)
        if status == SessionStatus.ENDED:
            raise SessionEnded(session.id, SessionEnded.COMPLETED)
        if status == SessionStatus.EXPIRED:
            self._end(session)
            raise SessionEnded(session.id, SessionEnded.TIMEOUT)

    def _end(self, session: GameSession) -> None:
        session.end_time = self.clock()
        logger.info(
            f"Session {session.id} ended: "
            f"{session.correct_count} correct, {session.incorrect_count} incorrect"
        )
