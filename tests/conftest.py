"""Pytest fixtures.

Tests run against in-memory SQLite. The schema is built once per session in
a template database, and every test gets its own copy of it through
``sqlite3.Connection.backup``.
"""

import sqlite3
from collections.abc import Callable, Generator
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from prometheus_client import REGISTRY
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from parish import create_app
from parish.app import App
from parish.config import Settings
from parish.database import upgrade_database
from parish.models.activity import Activity
from parish.models.family import Family
from parish.models.member import Member
from parish.models.sacrament import Sacrament
from parish.models.tithe import Tithe
from parish.services.container import ServiceContainer


@pytest.fixture(autouse=True)
def clear_prometheus_registry():
    """Clear Prometheus registry before and after each test for isolation."""
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        try:
            REGISTRY.unregister(collector)
        except (KeyError, ValueError):
            pass
    yield
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        try:
            REGISTRY.unregister(collector)
        except (KeyError, ValueError):
            pass


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    return Settings(
        database_url="sqlite:///:memory:",
        secret_key="test-secret-key",
        debug=True,
        flask_env="testing",
        cors_origins=["http://localhost:3000"],
        performance_monitoring_enabled=True,
        slow_query_threshold_ms=100,
        critical_query_threshold_ms=500,
        slow_request_threshold_ms=500,
        cache_backend="tagged",
        import_max_rows=2000,
    )


def _sqlite_settings(settings: Settings, conn: sqlite3.Connection) -> Settings:
    return settings.model_copy(
        update={
            "database_url": "sqlite://",
            "sqlalchemy_engine_options": {
                "poolclass": StaticPool,
                "creator": lambda: conn,
            },
        }
    )


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return _build_test_settings()


@pytest.fixture(scope="session")
def template_connection() -> Generator[sqlite3.Connection, None, None]:
    """Create a template SQLite database once and build the schema."""
    conn = sqlite3.connect(":memory:", check_same_thread=False)

    template_app = create_app(
        _sqlite_settings(_build_test_settings(), conn), skip_background_services=True
    )
    with template_app.app_context():
        upgrade_database(recreate=True)

    yield conn
    conn.close()


@pytest.fixture
def app(
    test_settings: Settings,
    template_connection: sqlite3.Connection,
) -> Generator[App, None, None]:
    """Create Flask app for testing using a fresh copy of the template database."""
    clone_conn = sqlite3.connect(":memory:", check_same_thread=False)
    template_connection.backup(clone_conn)

    application = create_app(_sqlite_settings(test_settings, clone_conn))

    try:
        yield application
    finally:
        with application.app_context():
            from parish.extensions import db as flask_db

            flask_db.session.remove()

        clone_conn.close()


@pytest.fixture
def client(app: App):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def container(app: App) -> ServiceContainer:
    """Access to the DI container for testing with session provided."""
    container = app.container

    with app.app_context():
        from sqlalchemy.orm import sessionmaker

        from parish.extensions import db as flask_db

        SessionLocal = sessionmaker(
            bind=flask_db.engine, autoflush=True, expire_on_commit=False
        )

    container.session_maker.override(SessionLocal)

    return container


@pytest.fixture
def session(container: ServiceContainer) -> Generator[Session, None, None]:
    """Create a new database session for a test."""
    session = container.db_session()

    exc = None
    try:
        yield session
    except Exception as e:
        exc = e

    if exc:
        session.rollback()
    else:
        session.commit()
    session.close()

    container.db_session.reset()


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_member(session: Session) -> Callable[..., Member]:
    """Factory adding a valid member; keyword arguments override defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Member:
        counter["n"] += 1
        data: dict[str, Any] = {
            "first_name": "Member",
            "last_name": f"Test{counter['n']}",
            "gender": "Female",
            "date_of_birth": date(1990, 6, 15),
            "local_church": "St James Kangemi",
            "church_group": "Youth",
            "membership_status": "active",
        }
        data.update(overrides)
        member = Member(**data)
        session.add(member)
        session.flush()
        return member

    return _make


@pytest.fixture
def make_family(session: Session) -> Callable[..., Family]:
    """Factory adding a family; keyword arguments override defaults."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Family:
        counter["n"] += 1
        data: dict[str, Any] = {"family_name": f"Family {counter['n']}"}
        data.update(overrides)
        family = Family(**data)
        session.add(family)
        session.flush()
        return family

    return _make


@pytest.fixture
def make_sacrament(session: Session) -> Callable[..., Sacrament]:
    def _make(member: Member, **overrides: Any) -> Sacrament:
        data: dict[str, Any] = {
            "member_id": member.id,
            "sacrament_type": "baptism",
            "sacrament_date": date(2000, 1, 1),
        }
        data.update(overrides)
        sacrament = Sacrament(**data)
        session.add(sacrament)
        session.flush()
        return sacrament

    return _make


@pytest.fixture
def make_tithe(session: Session) -> Callable[..., Tithe]:
    def _make(member: Member, **overrides: Any) -> Tithe:
        data: dict[str, Any] = {
            "member_id": member.id,
            "amount": Decimal("100.00"),
            "tithe_type": "tithe",
            "payment_method": "cash",
            "date_given": date.today(),
        }
        data.update(overrides)
        tithe = Tithe(**data)
        session.add(tithe)
        session.flush()
        return tithe

    return _make


@pytest.fixture
def make_activity(session: Session) -> Callable[..., Activity]:
    def _make(**overrides: Any) -> Activity:
        data: dict[str, Any] = {
            "title": "Sunday Mass",
            "activity_type": "mass",
            "start_date": date.today(),
            "status": "planned",
        }
        data.update(overrides)
        activity = Activity(**data)
        session.add(activity)
        session.flush()
        return activity

    return _make
