"""Fixtures: a temporary panel database (SQLite) with the tables used by
policy daemon, and SQL engines connected to it."""

import pytest

import settings
from policyd.utils import create_db_engine, get_required_db_conns
from tests import utils


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / 'panel.db')

    engine = create_db_engine(path)
    utils.create_schema(engine)
    engine.dispose()

    monkeypatch.setattr(settings, 'panel_db_path', path)
    monkeypatch.setattr(settings, 'DAILY_LIMIT_TIMEZONE', '')

    return path


@pytest.fixture
def conns(db_path):
    conns = get_required_db_conns(db_path)
    assert conns

    yield conns

    for engine in conns.values():
        engine.dispose()


@pytest.fixture
def engine(conns):
    """Read-write engine, used to prepare and verify records."""
    return conns['engine_panel_rw']


@pytest.fixture
def tenant(engine):
    """User 7 owns example.com, no package assigned (default limits)."""
    utils.add_tenant(engine)
