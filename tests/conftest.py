"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from kuu.config import ChannelIds, EmojiIds, KuuConfig, RoleIds
from kuu.database.models import Base


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Kuu tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


def make_config(**overrides) -> KuuConfig:
    """A :class:`KuuConfig` with small fake IDs.  Usable outside fixtures."""
    values = dict(
        guild_id=100,
        role_ids=RoleIds(
            intro=201, freshie=202, member=203, birthday=204, it_manager=205, admin=206
        ),
        channel_ids=ChannelIds(intro=301, verification=302, birthday=303, event=304),
        emoji_ids=EmojiIds(),
    )
    values.update(overrides)
    return KuuConfig(**values)


@pytest.fixture
def cfg() -> KuuConfig:
    return make_config()


@pytest.fixture
def fake_bot(cfg, db_engine):
    """A lightweight stand-in for KuuBot carrying config and engine."""
    return SimpleNamespace(cfg=cfg, engine=db_engine)
