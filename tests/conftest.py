"""Shared fixtures: in-memory database, controllable clock, API client."""

from datetime import datetime, timedelta, timezone
import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
import models  # noqa: F401
from core.entities import Rule, RuleSet
from core.session_manager import SessionManager, get_session_manager
from core.state_machine import SessionStateMachine
from main import app


class FakeClock:
    """Clock the tests move by hand."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fizzbuzz_rules():
    return RuleSet([Rule(3, "Fizz", 0), Rule(5, "Buzz", 1)])


@pytest.fixture
def machine(clock):
    return SessionStateMachine(clock=clock, rng=random.Random(42))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def manager(machine):
    return SessionManager(machine)


@pytest.fixture
def client(session_factory, manager):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()
