"""Tests for SQLite transaction handling."""

from datetime import date
from typing import Any

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from parish import create_app
from parish.config import Settings
from parish.database import _sqlite_on_begin, enable_sqlite_savepoints
from parish.extensions import db
from parish.models.member import Member
from parish.services.cache_service import CacheOptimizationService, TaggedMemoryCache
from parish.services.dialect_service import DatabaseCompatibilityService
from parish.services.member_import_service import MemberImportService


@pytest.fixture
def file_engine(tmp_path: Any):
    engine = create_engine(f"sqlite:///{tmp_path / 'parish.db'}")
    assert enable_sqlite_savepoints(engine) is True
    yield engine
    engine.dispose()


class TestSqliteSavepoints:
    """Savepoints nest inside one outer transaction on file databases."""

    def test_rolled_back_savepoint_keeps_outer_work(self, file_engine):
        with file_engine.begin() as conn:
            conn.execute(text("CREATE TABLE notes (body TEXT)"))

        with Session(file_engine) as session:
            nested = session.begin_nested()
            session.execute(text("INSERT INTO notes VALUES ('dropped')"))
            nested.rollback()
            with session.begin_nested():
                session.execute(text("INSERT INTO notes VALUES ('kept')"))
            session.commit()

        with file_engine.connect() as conn:
            assert conn.execute(text("SELECT body FROM notes")).scalars().all() == ["kept"]

    def test_released_savepoint_is_undone_by_outer_rollback(self, file_engine):
        """Test releasing the first savepoint does not commit the transaction."""
        with file_engine.begin() as conn:
            conn.execute(text("CREATE TABLE notes (body TEXT)"))

        with Session(file_engine) as session:
            with session.begin_nested():
                session.execute(text("INSERT INTO notes VALUES ('pending')"))
            session.rollback()

        with file_engine.connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM notes")).scalar() == 0

    def test_import_is_one_transaction(self, file_engine):
        db.metadata.create_all(file_engine)
        content = (
            "first_name,last_name,date_of_birth,gender,local_church,church_group\n"
            "John,Kamau,1980-03-15,Male,Kangemi,CMA\n"
            "Grace,Wanjiku,2005-11-02,Female,Kangemi,Youth\n"
        ).encode("utf-8")

        with Session(file_engine) as session:
            cache_service = CacheOptimizationService(
                db=session,
                cache_store=TaggedMemoryCache(),
                dialect=DatabaseCompatibilityService("sqlite"),
            )
            import_service = MemberImportService(session, cache_service, Settings())

            result = import_service.import_file("members.csv", content, today=date(2024, 6, 1))
            assert result.imported == 2

            session.rollback()
            assert session.query(Member).count() == 0


class TestEnableSqliteSavepoints:
    def test_shared_connection_engines_are_left_alone(self):
        static = create_engine("sqlite://", poolclass=StaticPool)
        memory = create_engine("sqlite://")

        assert enable_sqlite_savepoints(static) is False
        assert enable_sqlite_savepoints(memory) is False
        assert not event.contains(static, "begin", _sqlite_on_begin)

    def test_installing_twice_registers_once(self, file_engine):
        assert enable_sqlite_savepoints(file_engine) is True
        assert event.contains(file_engine, "begin", _sqlite_on_begin)

    def test_app_factory_installs_listeners_for_file_database(self, test_settings, tmp_path):
        settings = test_settings.model_copy(
            update={
                "database_url": f"sqlite:///{tmp_path / 'app.db'}",
                "sqlalchemy_engine_options": {},
            }
        )

        app = create_app(settings, skip_background_services=True)

        with app.app_context():
            assert event.contains(db.engine, "begin", _sqlite_on_begin)
