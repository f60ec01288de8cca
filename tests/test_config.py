"""Tests for configuration management."""

import pytest

from parish.config import Environment, Settings
from parish.exceptions import ConfigurationError


def test_environment_defaults(monkeypatch):
    """Test Environment loads default values."""
    for name in ("FLASK_ENV", "DEBUG", "SECRET_KEY", "CACHE_BACKEND", "IMPORT_MAX_ROWS"):
        monkeypatch.delenv(name, raising=False)

    env = Environment()

    assert env.FLASK_ENV == "development"
    assert env.DEBUG is True
    assert env.SECRET_KEY == "dev-secret-key-change-in-production"
    assert env.CACHE_BACKEND == "tagged"
    assert env.IMPORT_MAX_ROWS == 2000


def test_environment_from_env_vars(monkeypatch):
    """Test Environment loads from environment variables."""
    monkeypatch.setenv("FLASK_ENV", "production")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("SLOW_QUERY_THRESHOLD_MS", "250")

    env = Environment()

    assert env.FLASK_ENV == "production"
    assert env.DEBUG is False
    assert env.SLOW_QUERY_THRESHOLD_MS == 250


def test_settings_load_sqlite_has_no_pool_options():
    """Test SQLite URLs get no pool sizing options."""
    env = Environment(DATABASE_URL="sqlite:///parish.db", DB_POOL_SIZE=10)
    settings = Settings.load(env)

    assert settings.sqlalchemy_engine_options == {}
    assert settings.database_driver == "sqlite"


def test_settings_load_engine_options_for_server_databases():
    """Test Settings.load() builds engine options from pool settings."""
    env = Environment(
        DATABASE_URL="mysql+pymysql://parish:secret@db/parish",
        DB_POOL_SIZE=10,
        DB_POOL_MAX_OVERFLOW=20,
        DB_POOL_TIMEOUT=15,
    )
    settings = Settings.load(env)

    assert settings.sqlalchemy_engine_options["pool_size"] == 10
    assert settings.sqlalchemy_engine_options["max_overflow"] == 20
    assert settings.sqlalchemy_engine_options["pool_timeout"] == 15
    assert settings.sqlalchemy_engine_options["pool_pre_ping"] is True
    assert settings.database_driver == "mysql"


def test_settings_load_lowercases_cache_backend():
    """Test the cache backend name is case-insensitive."""
    settings = Settings.load(Environment(CACHE_BACKEND="SIMPLE"))

    assert settings.cache_backend == "simple"


def test_database_driver_for_postgres():
    """Test the dialect name is derived from the URL."""
    settings = Settings(database_url="postgresql+psycopg://u:p@localhost/parish")

    assert settings.database_driver == "postgresql"


def test_to_flask_config():
    """Test Settings.to_flask_config() creates FlaskConfig."""
    settings = Settings(
        database_url="sqlite://",
        secret_key="test-key",
        import_max_file_bytes=1024,
    )

    config = settings.to_flask_config()

    assert config.SECRET_KEY == "test-key"
    assert config.SQLALCHEMY_DATABASE_URI == "sqlite://"
    assert config.SQLALCHEMY_TRACK_MODIFICATIONS is False
    assert config.MAX_CONTENT_LENGTH == 1024


def test_environment_flags():
    """Test the is_testing and is_production helpers."""
    assert Settings(flask_env="testing").is_testing is True
    assert Settings(flask_env="production").is_production is True
    assert Settings(flask_env="development").is_production is False


class TestProductionValidation:
    """Tests for Settings.validate_production_config()."""

    def test_default_secret_rejected_in_production(self):
        """Test the development secret key is refused in production."""
        settings = Settings(flask_env="production")

        with pytest.raises(ConfigurationError, match="SECRET_KEY"):
            settings.validate_production_config()

    def test_default_secret_allowed_in_development(self):
        """Test development accepts the default secret key."""
        Settings(flask_env="development").validate_production_config()

    def test_unknown_cache_backend_rejected(self):
        """Test an unsupported cache backend fails validation."""
        settings = Settings(cache_backend="redis")

        with pytest.raises(ConfigurationError, match="CACHE_BACKEND"):
            settings.validate_production_config()

    def test_critical_threshold_below_slow_threshold_rejected(self):
        """Test thresholds must be ordered."""
        settings = Settings(slow_query_threshold_ms=500, critical_query_threshold_ms=100)

        with pytest.raises(ConfigurationError, match="CRITICAL_QUERY_THRESHOLD_MS"):
            settings.validate_production_config()

    def test_all_errors_reported_together(self):
        """Test every problem is listed in one exception."""
        settings = Settings(flask_env="production", cache_backend="memcached")

        with pytest.raises(ConfigurationError) as exc_info:
            settings.validate_production_config()

        assert "SECRET_KEY" in str(exc_info.value)
        assert "CACHE_BACKEND" in str(exc_info.value)
