"""Test configuration: an in-memory database and doubles for external services."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import future_echoes.models  # noqa: F401
from future_echoes.database import Base
from future_echoes.errors import SentimentUnavailable
from future_echoes.sentiment import Sentiment
from future_echoes.store import SqlRecordStore

DAY0 = datetime(2026, 3, 1, 9, 0)


class FakeClassifier:
    def __init__(self, label="neutral", score=0.9, fail=False):
        self.label = label
        self.score = score
        self.fail = fail
        self.calls = []

    def analyze(self, text):
        self.calls.append(text)
        if self.fail:
            raise SentimentUnavailable("classifier offline")
        return Sentiment(label=self.label, score=self.score)


class FakeSender:
    def __init__(self, fail_for=(), raise_for=()):
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.sent = []

    def send(self, recipient, template_data):
        capsule_id = template_data["capsule_id"]
        if capsule_id in self.raise_for:
            raise ConnectionError("mail server unreachable")
        if capsule_id in self.fail_for:
            return False
        self.sent.append((recipient, template_data))
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return SqlRecordStore(db)


@pytest.fixture
def user(store):
    return store.create("user", username="alice", email="alice@example.com")


@pytest.fixture
def make_capsule(store, user):
    def _make(created_at=DAY0, days=10, label=None, owner=None, revealed=False, message="Dear future me"):
        return store.create(
            "capsule",
            owner_id=(owner or user).id,
            message=message,
            created_at=created_at,
            reveal_at=created_at + timedelta(days=days),
            is_revealed=revealed,
            sentiment_label=label,
            sentiment_score=0.9 if label else None,
            media_refs=[],
        )
    return _make
