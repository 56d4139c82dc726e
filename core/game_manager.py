"""
Game Manager：建立與維護 Game 及其規則

職責：
1. 建立 / 更新 Game（驗證規則 + 名稱不可重複）
2. 刪除 Game
3. 查詢 Game

進行中的 Session 有自己的規則快照，更新或刪除 Game 都不影響它們
"""
from typing import Iterable, List
import logging

from sqlalchemy.orm import Session

from models import Game, GameRule
from core.entities import Rule
from core.exceptions import GameNameTaken
from core.session_store import get_game_record
from services.rule_service import normalize_sort_orders, validate_rules
from database import transactional

logger = logging.getLogger(__name__)


def _prepare_rules(rules: Iterable[Rule]) -> List[Rule]:
    # 先驗證再補預設排序，不合法的 order（< 0）才會以原值回報
    return normalize_sort_orders(validate_rules(rules))


class GameManager:
    """Game 生命週期管理器"""

    @staticmethod
    def list_games(db: Session) -> List[Game]:
        return db.query(Game).order_by(Game.created_at, Game.name).all()

    @staticmethod
    def get_game(db: Session, game_id: str) -> Game:
        """
        異常：
            GameNotFound: Game 不存在
        """
        return get_game_record(db, game_id)

    @staticmethod
    @transactional
    def create_game(db: Session, name: str, author: str, rules: Iterable[Rule]) -> Game:
        """
        建立 Game 與它的規則

        流程：
        1. 驗證規則（InvalidArgument）
        2. 確認名稱沒被使用（GameNameTaken）
        3. 儲存 Game 與規則
        """
        # 1. 驗證規則
        prepared = _prepare_rules(rules)

        # 2. 名稱不可重複
        if db.query(Game).filter(Game.name == name).first():
            raise GameNameTaken(name)

        # 3. 儲存
        game = Game(name=name, author=author)
        game.rules = [
            GameRule(divisor=rule.divisor, replace_word=rule.word, sort_order=rule.order)
            for rule in prepared
        ]
        db.add(game)
        db.flush()

        logger.info(f"Game created successfully: {game.name} ({game.id})")
        return game

    @staticmethod
    @transactional
    def update_game(db: Session, game_id: str, name: str, author: str, rules: Iterable[Rule]) -> Game:
        """
        替換 Game 的名稱、作者與規則

        異常：
            GameNotFound, InvalidArgument, GameNameTaken
        """
        game = get_game_record(db, game_id)
        prepared = _prepare_rules(rules)

        if game.name != name:
            existing = db.query(Game).filter(Game.name == name).first()
            if existing and existing.id != game.id:
                raise GameNameTaken(name)

        game.name = name
        game.author = author
        # delete-orphan cascade 會刪掉舊規則
        game.rules = [
            GameRule(divisor=rule.divisor, replace_word=rule.word, sort_order=rule.order)
            for rule in prepared
        ]
        db.flush()

        logger.info(f"Game updated successfully: {game.name} ({game.id})")
        return game

    @staticmethod
    @transactional
    def delete_game(db: Session, game_id: str) -> None:
        """
        異常：
            GameNotFound: Game 不存在
        """
        game = get_game_record(db, game_id)
        db.delete(game)
        logger.info(f"Game deleted successfully: {game.name} ({game_id})")
