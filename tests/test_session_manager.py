"""Tests for SessionManager / GameManager against an in-memory database."""

import pytest
from sqlalchemy import Text

from models import RoundRecord, SessionRecord
from core.entities import Rule
from core.exceptions import (
    GameNameTaken,
    GameNotFound,
    InvalidArgument,
    NoPriorNumber,
    SessionEnded,
    SessionNotFound,
)
from core.game_manager import GameManager
from core.session_store import load_rule_set, load_session, save_session
from services.answer_service import compute_answer

FIZZBUZZ = [Rule(3, "Fizz", 0), Rule(5, "Buzz", 1)]


@pytest.fixture
def game(db):
    return GameManager.create_game(db, "Classic FizzBuzz", "tester", FIZZBUZZ)


class TestGameManager:

    def test_create_and_load_rules(self, db, game):
        rule_set = load_rule_set(db, game.id)
        assert [r.word for r in rule_set] == ["Fizz", "Buzz"]

    def test_default_sort_orders(self, db):
        game = GameManager.create_game(
            db, "Reversed", "tester", [Rule(5, "Buzz", 0), Rule(3, "Fizz", 0)]
        )
        assert [(r.divisor, r.sort_order) for r in game.rules] == [(5, 0), (3, 1)]

    def test_duplicate_name_rejected(self, db, game):
        with pytest.raises(GameNameTaken):
            GameManager.create_game(db, "Classic FizzBuzz", "someone", FIZZBUZZ)

    def test_duplicate_divisor_rejected(self, db):
        with pytest.raises(InvalidArgument):
            GameManager.create_game(db, "Broken", "tester", [Rule(3, "A", 0), Rule(3, "B", 1)])
        assert GameManager.list_games(db) == []

    def test_update_replaces_rules(self, db, game):
        GameManager.update_game(db, game.id, "Renamed", "tester", [Rule(7, "Bang", 0)])
        updated = GameManager.get_game(db, game.id)
        assert updated.name == "Renamed"
        assert [r.replace_word for r in updated.rules] == ["Bang"]

    def test_delete(self, db, game):
        GameManager.delete_game(db, game.id)
        with pytest.raises(GameNotFound):
            GameManager.get_game(db, game.id)

    def test_missing_game(self, db):
        with pytest.raises(GameNotFound):
            load_rule_set(db, "missing")


class TestSessionManager:

    def test_start_session_persists_snapshot(self, db, manager, game):
        snapshot = manager.start_session(db, game.id, 60, "player-1")
        record = db.query(SessionRecord).filter(SessionRecord.id == snapshot.session.id).one()
        assert record.game_name == "Classic FizzBuzz"
        assert record.player_id == "player-1"
        assert record.rules_snapshot == [
            {"divisor": 3, "word": "Fizz", "order": 0},
            {"divisor": 5, "word": "Buzz", "order": 1},
        ]
        assert snapshot.remaining_time == 60

    def test_start_unknown_game(self, db, manager):
        with pytest.raises(GameNotFound):
            manager.start_session(db, "missing", 60)

    def test_start_invalid_duration(self, db, manager, game):
        with pytest.raises(InvalidArgument):
            manager.start_session(db, game.id, 0)
        assert db.query(SessionRecord).count() == 0

    def test_play_round_trip(self, db, manager, game):
        session_id = manager.start_session(db, game.id, 60).session.id

        number = manager.next_number(db, session_id)
        expected = compute_answer(number, load_rule_set(db, game.id))
        result = manager.submit_answer(db, session_id, expected.upper())

        assert result.is_correct
        assert not result.is_session_over

        stored = load_session(db, session_id)
        assert stored.used_numbers == [number]
        assert stored.correct_count == 1
        assert stored.rounds[0].number == number

        game_result = manager.get_result(db, session_id)
        assert game_result.accuracy == 100
        assert not game_result.is_completed

        rounds = db.query(RoundRecord).all()
        assert len(rounds) == 1
        assert rounds[0].response_time_ms == 0

    def test_rule_changes_do_not_reach_running_session(self, db, manager, game):
        session_id = manager.start_session(db, game.id, 60).session.id
        GameManager.update_game(db, game.id, game.name, "tester", [Rule(2, "Even", 0)])

        session = load_session(db, session_id)
        assert [r.word for r in session.rule_set] == ["Fizz", "Buzz"]

    def test_game_deletion_keeps_session(self, db, manager, game):
        session_id = manager.start_session(db, game.id, 60).session.id
        GameManager.delete_game(db, game.id)
        manager.next_number(db, session_id)
        assert manager.get_session(db, session_id).game_name == "Classic FizzBuzz"

    def test_answer_before_number(self, db, manager, game):
        session_id = manager.start_session(db, game.id, 60).session.id
        with pytest.raises(NoPriorNumber):
            manager.submit_answer(db, session_id, "Fizz")

    def test_timeout_end_is_persisted(self, db, manager, game, clock):
        session_id = manager.start_session(db, game.id, 60).session.id
        manager.next_number(db, session_id)
        manager.submit_answer(db, session_id, "wrong")

        clock.advance(70)
        with pytest.raises(SessionEnded) as exc_info:
            manager.next_number(db, session_id)
        assert exc_info.value.reason == SessionEnded.TIMEOUT

        db.expire_all()
        record = db.query(SessionRecord).filter(SessionRecord.id == session_id).one()
        assert record.end_time is not None

        with pytest.raises(SessionEnded) as exc_info:
            manager.submit_answer(db, session_id, "Fizz")
        assert exc_info.value.reason == SessionEnded.COMPLETED

        result = manager.get_result(db, session_id)
        assert result.is_completed
        assert result.incorrect_count == 1

    def test_result_ends_expired_session(self, db, manager, game, clock):
        session_id = manager.start_session(db, game.id, 30).session.id
        clock.advance(31)
        assert manager.get_result(db, session_id).is_completed
        assert load_session(db, session_id).end_time is not None

    def test_end_session_idempotent(self, db, manager, game, clock):
        session_id = manager.start_session(db, game.id, 60).session.id
        manager.end_session(db, session_id)
        first_end = load_session(db, session_id).end_time

        clock.advance(10)
        result = manager.end_session(db, session_id)

        assert result.is_completed
        assert load_session(db, session_id).end_time == first_end

    def test_session_view_remaining_time(self, db, manager, game, clock):
        session_id = manager.start_session(db, game.id, 60).session.id
        clock.advance(20)
        assert manager.get_session(db, session_id).remaining_time == 40
        manager.end_session(db, session_id)
        assert manager.get_session(db, session_id).remaining_time == 0

    def test_rounds_in_play_order(self, db, manager, game):
        session_id = manager.start_session(db, game.id, 60).session.id
        numbers = []
        for answer in ("a", "b", "c"):
            numbers.append(manager.next_number(db, session_id))
            manager.submit_answer(db, session_id, answer)

        rounds = manager.get_rounds(db, session_id)
        assert [r.number for r in rounds] == numbers
        assert [r.player_answer for r in rounds] == ["a", "b", "c"]

    def test_unknown_session(self, db, manager):
        with pytest.raises(SessionNotFound):
            manager.next_number(db, "missing")
        with pytest.raises(SessionNotFound):
            manager.get_session(db, "missing")

    def test_answer_columns_are_unbounded(self):
        assert isinstance(RoundRecord.__table__.c.expected_answer.type, Text)
        assert isinstance(RoundRecord.__table__.c.player_answer.type, Text)

    def test_long_answer_stored_and_reloaded(self, db, manager):
        rules = [Rule(d, f"W{d:02d}".ljust(20, "z"), i) for i, d in enumerate(range(1, 41))]
        game = GameManager.create_game(db, "Forty Rules", "tester", rules)
        session_id = manager.start_session(db, game.id, 60).session.id

        # 840 = 2^3 * 3 * 5 * 7 is divisible by 19 of the divisors 1..40
        session = load_session(db, session_id)
        session.used_numbers.append(840)
        save_session(db, session)
        db.commit()

        expected = compute_answer(840, load_rule_set(db, game.id))
        assert len(expected) == 380

        result = manager.submit_answer(db, session_id, expected.lower())
        assert result.is_correct
        assert result.expected_answer == expected

        db.expire_all()
        stored = manager.get_rounds(db, session_id)[0]
        assert stored.expected_answer == expected
        assert stored.player_answer == expected.lower()
