"""Database connectivity checks and migration helpers."""

import logging
import re
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import Engine, MetaData, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import SingletonThreadPool, StaticPool

from parish.config import Settings
from parish.extensions import db

logger = logging.getLogger(__name__)


def _sqlite_on_connect(dbapi_connection, connection_record) -> None:
    # Hand transaction control to SQLAlchemy instead of pysqlite
    dbapi_connection.isolation_level = None


def _sqlite_on_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


def enable_sqlite_savepoints(engine: Engine) -> bool:
    """Make SAVEPOINT and transaction boundaries reliable on pysqlite engines.

    pysqlite defers BEGIN until the first write, so a savepoint opened before
    that write is not nested in any transaction. Engines that share one
    connection per process or thread (StaticPool, SingletonThreadPool) are
    left alone: an explicit BEGIN per checkout would collide on it.

    Returns:
        True if the listeners were installed
    """
    if engine.dialect.name != "sqlite":
        return False
    if isinstance(engine.pool, (StaticPool, SingletonThreadPool)):
        return False

    if not event.contains(engine, "connect", _sqlite_on_connect):
        event.listen(engine, "connect", _sqlite_on_connect)
        event.listen(engine, "begin", _sqlite_on_begin)
    return True


def check_db_connection() -> bool:
    try:
        with db.engine.connect() as conn:
            result = conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except SQLAlchemyError as e:
        logger.warning("Checking database connection failed: %s", e)
        return False


def _get_alembic_config() -> Config:
    alembic_cfg_path = Path(__file__).parent.parent / "alembic.ini"
    config = Config(str(alembic_cfg_path))
    config.set_main_option("script_location", str(Path(__file__).parent.parent / "alembic"))
    settings = Settings.load()
    config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    return config


def get_current_revision() -> str | None:
    try:
        with db.engine.connect() as conn:
            result = conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
            row = result.fetchone()
            return row[0] if row else None
    except SQLAlchemyError:
        return None


def get_pending_migrations() -> list[str]:
    """Revisions between the database's current revision and head, oldest first."""
    config = _get_alembic_config()
    script = ScriptDirectory.from_config(config)
    current_rev = get_current_revision()
    head_rev = script.get_current_head()

    if not head_rev or current_rev == head_rev:
        return []

    revisions = [
        rev.revision
        for rev in script.walk_revisions(base=current_rev or "base", head=head_rev)
        if rev.revision != current_rev
    ]
    revisions.reverse()
    return revisions


def drop_all_tables() -> None:
    metadata = MetaData()
    metadata.reflect(bind=db.engine)
    metadata.drop_all(bind=db.engine)


def _get_migration_info(script_dir: ScriptDirectory, revision: str) -> tuple[str, str]:
    rev_obj = script_dir.get_revision(revision)
    if not rev_obj or not rev_obj.path:
        return revision, "Unknown migration"
    migration_file = Path(rev_obj.path)
    if not migration_file.exists():
        return revision, "Migration file not found"
    docstring_match = re.search(r'"""([^"]+)"""', migration_file.read_text())
    if docstring_match:
        return revision[:7], docstring_match.group(1).strip().splitlines()[0]
    return revision[:7], "Migration"


def upgrade_database(recreate: bool = False) -> list[tuple[str, str]]:
    """Apply pending migrations; ``recreate`` drops everything first.

    A recreated SQLite schema is built from the model metadata and stamped
    at head instead of replaying the migrations.
    """
    engine = db.engine
    is_sqlite = engine.dialect.name == "sqlite"
    config = _get_alembic_config()

    if recreate and is_sqlite:
        logger.info("SQLite detected - rebuilding schema using SQLAlchemy metadata")
        drop_all_tables()
        db.create_all()
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.stamp(config, "head")
        return []

    if recreate:
        drop_all_tables()

    pending = get_pending_migrations()
    if not pending:
        return []

    script = ScriptDirectory.from_config(config)
    applied_migrations: list[tuple[str, str]] = []

    with engine.begin() as connection:
        config.attributes["connection"] = connection
        for revision in pending:
            rev_short, description = _get_migration_info(script, revision)
            logger.info("Applying migration %s: %s", rev_short, description)
            command.upgrade(config, revision)
            applied_migrations.append((rev_short, description))

    return applied_migrations
