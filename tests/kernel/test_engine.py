"""Tests for engine initialization and the transactional session scope."""

import pytest
from sqlalchemy import func, inspect, select

from pnl_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    session_scope,
)
from pnl_kernel.models.clinic import Clinic


@pytest.fixture
def sqlite_engine():
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_engine()
    reset_engine()


def _clinic_count():
    session = get_session()
    try:
        return session.execute(select(func.count()).select_from(Clinic)).scalar_one()
    finally:
        session.close()


class TestEngineLifecycle:
    def test_uninitialized_engine(self):
        reset_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()

    def test_sqlite_engine(self, sqlite_engine):
        assert sqlite_engine.dialect.name == "sqlite"
        assert not is_postgres()


class TestSessionScope:
    def test_commits_on_success(self, sqlite_engine):
        with session_scope() as session:
            session.add(Clinic(name="Katy", location="Katy"))

        assert _clinic_count() == 1

    def test_rolls_back_on_error(self, sqlite_engine):
        with pytest.raises(RuntimeError, match="boom"):
            with session_scope() as session:
                session.add(Clinic(name="Katy", location="Katy"))
                session.flush()
                raise RuntimeError("boom")

        assert _clinic_count() == 0

    def test_drop_tables(self, sqlite_engine):
        drop_tables()
        assert not inspect(sqlite_engine).has_table("clinics")
        create_tables()
        assert inspect(sqlite_engine).has_table("clinics")
