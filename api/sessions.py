"""
Game Session API Endpoints

重點：
1. 所有 Session 邏輯集中在 SessionManager / SessionStateMachine
2. 沒有計時器，「時間到」在下一次呼叫時才判斷
3. 遊戲異常對應 4xx；非預期的錯誤記 log 並返回 500
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from database import get_db
from schemas import (
    AnswerResultResponse,
    AnswerSubmit,
    GameResultResponse,
    NumberResponse,
    RoundResponse,
    SessionCreate,
    SessionResponse,
    SessionRuleResponse,
)
from core.entities import GameResult
from core.session_manager import SessionManager, SessionSnapshot, get_session_manager
from core.exceptions import (
    GameNotFound,
    InvalidArgument,
    NoNumbersRemaining,
    NoPriorNumber,
    SessionEnded,
    SessionNotFound,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])
logger = logging.getLogger(__name__)


def _session_response(snapshot: SessionSnapshot) -> SessionResponse:
    session = snapshot.session
    return SessionResponse(
        id=session.id,
        game_id=session.game_id,
        game_name=snapshot.game_name,
        start_time=session.start_time,
        duration=session.duration_seconds,
        remaining_time=snapshot.remaining_time,
        correct_answers=session.correct_count,
        incorrect_answers=session.incorrect_count,
        rules=[
            SessionRuleResponse(divisor=r.divisor, replace_word=r.word, sort_order=r.order)
            for r in session.rule_set
        ]
    )


def _result_response(snapshot: SessionSnapshot, result: GameResult) -> GameResultResponse:
    return GameResultResponse(
        id=snapshot.session.id,
        game_id=snapshot.session.game_id,
        game_name=snapshot.game_name,
        total_answers=result.total_answers,
        correct_answers=result.correct_count,
        incorrect_answers=result.incorrect_count,
        accuracy_percentage=result.accuracy,
        is_completed=result.is_completed
    )


@router.post("", response_model=SessionResponse)
def start_session(
    payload: SessionCreate,
    request: Request,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    """
    開始新的遊戲 Session

    player_id 沒給時使用 client 位址（沒有位址則為 "anonymous"）
    """
    player_id = payload.player_id or (request.client.host if request.client else None) or "anonymous"
    try:
        snapshot = manager.start_session(db, payload.game_id, payload.duration, player_id)
        return _session_response(snapshot)

    except GameNotFound:
        logger.warning(f"Game with ID {payload.game_id} not found")
        raise HTTPException(status_code=404, detail=f"Game with ID {payload.game_id} not found.")
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start session for game {payload.game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: str,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    """
    取得 Session 資訊

    返回：
        - remaining_time: 剩餘秒數（結束後為 0）
        - rules: 這個 Session 快照的規則
    """
    try:
        return _session_response(manager.get_session(db, session_id))

    except SessionNotFound:
        logger.warning(f"Session with ID {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")
    except Exception as e:
        logger.error(f"Failed to get session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{session_id}/next", response_model=NumberResponse)
def next_number(
    session_id: str,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    """
    抽下一個數字

    異常（400）：
        - Session 已結束（已完成 / 時間到）
        - 範圍內的數字都用完了
    """
    try:
        number = manager.next_number(db, session_id)
        return NumberResponse(number=number)

    except SessionNotFound:
        logger.warning(f"Session with ID {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")
    except SessionEnded as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NoNumbersRemaining as e:
        logger.warning(f"All available numbers used for session {session_id}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to generate next number for session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{session_id}/answer", response_model=AnswerResultResponse)
def submit_answer(
    session_id: str,
    payload: AnswerSubmit,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    """對最近抽出的數字評分"""
    try:
        result = manager.submit_answer(db, session_id, payload.answer)
        return AnswerResultResponse(
            is_correct=result.is_correct,
            correct_answer=result.expected_answer,
            is_game_over=result.is_session_over
        )

    except SessionNotFound:
        logger.warning(f"Session with ID {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")
    except (SessionEnded, NoPriorNumber) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to submit answer for session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{session_id}/end", response_model=GameResultResponse)
def end_session(
    session_id: str,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    """結束 Session（冪等）並返回最終成績"""
    try:
        result = manager.end_session(db, session_id)
        return _result_response(manager.get_session(db, session_id), result)

    except SessionNotFound:
        logger.warning(f"Session with ID {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")
    except Exception as e:
        logger.error(f"Failed to end session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{session_id}/result", response_model=GameResultResponse)
def get_result(
    session_id: str,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    """成績摘要；時間已到的 Session 會在這裡結束"""
    try:
        result = manager.get_result(db, session_id)
        return _result_response(manager.get_session(db, session_id), result)

    except SessionNotFound:
        logger.warning(f"Session with ID {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")
    except Exception as e:
        logger.error(f"Failed to get result for session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{session_id}/rounds", response_model=List[RoundResponse])
def get_rounds(
    session_id: str,
    db: Session = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager)
):
    try:
        return [
            RoundResponse(
                number=r.number,
                expected_answer=r.expected_answer,
                player_answer=r.player_answer,
                is_correct=r.is_correct
            )
            for r in manager.get_rounds(db, session_id)
        ]

    except SessionNotFound:
        logger.warning(f"Session with ID {session_id} not found")
        raise HTTPException(status_code=404, detail="Session not found")
    except Exception as e:
        logger.error(f"Failed to get rounds for session {session_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
