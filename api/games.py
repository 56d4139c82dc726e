"""
Game API Endpoints

職責：
1. 列出 / 取得 Game
2. 建立、更新、刪除 Game 與它的規則
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import Game
from schemas import GameCreate, GameResponse
from core.entities import Rule
from core.game_manager import GameManager
from core.exceptions import GameNameTaken, GameNotFound, InvalidArgument

router = APIRouter(prefix="/api/games", tags=["games"])
logger = logging.getLogger(__name__)


def _rules_from_payload(payload: GameCreate) -> List[Rule]:
    return [
        Rule(divisor=rule.divisor, word=rule.replace_word, order=rule.sort_order)
        for rule in payload.rules
    ]


def _game_response(game: Game) -> GameResponse:
    return GameResponse.model_validate(game)


@router.get("", response_model=List[GameResponse])
def list_games(db: Session = Depends(get_db)):
    """所有 Game（含規則）"""
    try:
        return [_game_response(game) for game in GameManager.list_games(db)]
    except Exception as e:
        logger.error(f"Failed to list games: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("/{game_id}", response_model=GameResponse)
def get_game(game_id: str, db: Session = Depends(get_db)):
    try:
        return _game_response(GameManager.get_game(db, game_id))
    except GameNotFound:
        logger.warning(f"Game with ID {game_id} not found")
        raise HTTPException(status_code=404, detail="Game not found")
    except Exception as e:
        logger.error(f"Failed to get game {game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("", response_model=GameResponse, status_code=201)
def create_game(payload: GameCreate, db: Session = Depends(get_db)):
    """
    建立 Game

    驗證失敗（400）：
    - divisor 重複
    - replace word 空白
    - 名稱已被使用

    注意：
        sort_order 為 0 的規則以它在列表中的位置作為排序
    """
    try:
        game = GameManager.create_game(
            db,
            payload.name,
            payload.author,
            _rules_from_payload(payload)
        )
        return _game_response(game)

    except (InvalidArgument, GameNameTaken) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to create game {payload.name}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.put("/{game_id}", status_code=204)
def update_game(game_id: str, payload: GameCreate, db: Session = Depends(get_db)):
    """替換 Game 的名稱、作者與規則；進行中的 Session 保留原本的規則"""
    try:
        GameManager.update_game(
            db,
            game_id,
            payload.name,
            payload.author,
            _rules_from_payload(payload)
        )
        return Response(status_code=204)

    except GameNotFound:
        logger.warning(f"Game with ID {game_id} not found for update")
        raise HTTPException(status_code=404, detail="Game not found")
    except (InvalidArgument, GameNameTaken) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update game {game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{game_id}", status_code=204)
def delete_game(game_id: str, db: Session = Depends(get_db)):
    try:
        GameManager.delete_game(db, game_id)
        return Response(status_code=204)

    except GameNotFound:
        logger.warning(f"Game with ID {game_id} not found for deletion")
        raise HTTPException(status_code=404, detail="Game not found")
    except Exception as e:
        logger.error(f"Failed to delete game {game_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
