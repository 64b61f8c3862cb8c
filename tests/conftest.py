"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leaguetracker.db.models import Base
from leaguetracker.league import LeagueOrchestrator


@pytest.fixture
def test_engine():
    """
    Create a test database engine.

    Uses SQLite in-memory. The orchestrator commits after every
    operation, so each test gets a brand new database instead of a
    rolled-back transaction; StaticPool keeps that database alive
    across connections.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    """Create a database session for a test."""
    Session = sessionmaker(bind=test_engine)
    session = Session()

    yield session

    session.close()


@pytest.fixture
def league(db_session):
    """Orchestrator with a fixed RNG and a sanitized league state."""
    orchestrator = LeagueOrchestrator(db_session, rng=random.Random(1234))
    orchestrator.validate_and_sanitize_state()
    return orchestrator


@pytest.fixture
def four_players(league):
    """Four roster players: Alice, Bob, Cara, Dan."""
    return [league.add_player(name) for name in ("Alice", "Bob", "Cara", "Dan")]
