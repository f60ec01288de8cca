"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean application settings with lowercase fields and derived values
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"

CACHE_BACKENDS = ("tagged", "simple")


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Core ───────────────────────────────────────────────────────────

    SECRET_KEY: str = Field(default=_DEFAULT_SECRET_KEY)
    FLASK_ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)
    CORS_ORIGINS: list[str] = Field(default=["http://localhost:3000"])

    # ── Database ───────────────────────────────────────────────────────

    DATABASE_URL: str = Field(default=f"sqlite:///{_PROJECT_ROOT / 'parish.db'}")
    DB_POOL_SIZE: int = Field(default=20)
    DB_POOL_MAX_OVERFLOW: int = Field(default=30)
    DB_POOL_TIMEOUT: int = Field(default=10)

    # ── Performance monitoring ─────────────────────────────────────────

    PERFORMANCE_MONITORING_ENABLED: bool = Field(default=True)
    SLOW_QUERY_THRESHOLD_MS: int = Field(default=100)
    CRITICAL_QUERY_THRESHOLD_MS: int = Field(default=500)
    SLOW_REQUEST_THRESHOLD_MS: int = Field(default=500)

    # ── Cache ──────────────────────────────────────────────────────────

    CACHE_BACKEND: str = Field(default="tagged")
    CACHE_DEFAULT_TTL: int = Field(default=300)

    # ── Import / export ────────────────────────────────────────────────

    IMPORT_MAX_ROWS: int = Field(default=2000)
    IMPORT_MAX_FILE_BYTES: int = Field(default=10 * 1024 * 1024)

    # ── Certificates ───────────────────────────────────────────────────

    DEFAULT_MARRIAGE_LOCATION: str = Field(default="Sacred Heart Kandara Parish")
    DEFAULT_OFFICIANT: str = Field(default="Rev. Parish Priest")
    DEFAULT_MARRIAGE_RELIGION: str = Field(default="Catholic")

    # ── Storage ────────────────────────────────────────────────────────

    STORAGE_PATH: str = Field(default=str(_PROJECT_ROOT / "storage"))
    LOG_FILE: str | None = Field(default=None)


class Settings(BaseModel):
    """Application settings with lowercase fields and derived values."""

    model_config = ConfigDict(from_attributes=True)

    # ── Core ───────────────────────────────────────────────────────────

    secret_key: str = _DEFAULT_SECRET_KEY
    flask_env: str = "development"
    debug: bool = True
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    # ── Database ───────────────────────────────────────────────────────

    database_url: str = f"sqlite:///{_PROJECT_ROOT / 'parish.db'}"
    db_pool_size: int = 20
    db_pool_max_overflow: int = 30
    db_pool_timeout: int = 10
    sqlalchemy_engine_options: dict[str, Any] = Field(default_factory=dict)

    # ── Performance monitoring ─────────────────────────────────────────

    performance_monitoring_enabled: bool = True
    slow_query_threshold_ms: int = 100
    critical_query_threshold_ms: int = 500
    slow_request_threshold_ms: int = 500

    # ── Cache ──────────────────────────────────────────────────────────

    cache_backend: str = "tagged"
    cache_default_ttl: int = 300

    # ── Import / export ────────────────────────────────────────────────

    import_max_rows: int = 2000
    import_max_file_bytes: int = 10 * 1024 * 1024

    # ── Certificates ───────────────────────────────────────────────────

    default_marriage_location: str = "Sacred Heart Kandara Parish"
    default_officiant: str = "Rev. Parish Priest"
    default_marriage_religion: str = "Catholic"

    # ── Storage ────────────────────────────────────────────────────────

    storage_path: str = str(_PROJECT_ROOT / "storage")
    log_file: str | None = None

    @property
    def is_testing(self) -> bool:
        return self.flask_env == "testing"

    @property
    def is_production(self) -> bool:
        return self.flask_env == "production"

    @property
    def database_driver(self) -> str:
        """Backend name of the configured database ("sqlite", "mysql", ...)."""
        return make_url(self.database_url).get_backend_name()

    def to_flask_config(self) -> "FlaskConfig":
        return FlaskConfig(
            SECRET_KEY=self.secret_key,
            SQLALCHEMY_DATABASE_URI=self.database_url,
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            SQLALCHEMY_ENGINE_OPTIONS=self.sqlalchemy_engine_options,
            MAX_CONTENT_LENGTH=self.import_max_file_bytes,
        )

    def validate_production_config(self) -> None:
        from parish.exceptions import ConfigurationError

        errors: list[str] = []

        if self.is_production and self.secret_key == _DEFAULT_SECRET_KEY:
            errors.append(
                "SECRET_KEY must be set to a secure value in production"
            )

        if self.cache_backend not in CACHE_BACKENDS:
            errors.append(
                f"CACHE_BACKEND must be one of {', '.join(CACHE_BACKENDS)}"
            )

        if self.critical_query_threshold_ms < self.slow_query_threshold_ms:
            errors.append(
                "CRITICAL_QUERY_THRESHOLD_MS must not be lower than SLOW_QUERY_THRESHOLD_MS"
            )

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        # SQLite uses a SingletonThreadPool/NullPool and rejects sizing options
        if make_url(env.DATABASE_URL).get_backend_name() == "sqlite":
            sqlalchemy_engine_options: dict[str, Any] = {}
        else:
            sqlalchemy_engine_options = {
                "pool_size": env.DB_POOL_SIZE,
                "max_overflow": env.DB_POOL_MAX_OVERFLOW,
                "pool_timeout": env.DB_POOL_TIMEOUT,
                "pool_pre_ping": True,
            }

        return cls(
            # Core
            secret_key=env.SECRET_KEY,
            flask_env=env.FLASK_ENV,
            debug=env.DEBUG,
            cors_origins=env.CORS_ORIGINS,

            # Database
            database_url=env.DATABASE_URL,
            db_pool_size=env.DB_POOL_SIZE,
            db_pool_max_overflow=env.DB_POOL_MAX_OVERFLOW,
            db_pool_timeout=env.DB_POOL_TIMEOUT,
            sqlalchemy_engine_options=sqlalchemy_engine_options,

            # Performance monitoring
            performance_monitoring_enabled=env.PERFORMANCE_MONITORING_ENABLED,
            slow_query_threshold_ms=env.SLOW_QUERY_THRESHOLD_MS,
            critical_query_threshold_ms=env.CRITICAL_QUERY_THRESHOLD_MS,
            slow_request_threshold_ms=env.SLOW_REQUEST_THRESHOLD_MS,

            # Cache
            cache_backend=env.CACHE_BACKEND.lower(),
            cache_default_ttl=env.CACHE_DEFAULT_TTL,

            # Import / export
            import_max_rows=env.IMPORT_MAX_ROWS,
            import_max_file_bytes=env.IMPORT_MAX_FILE_BYTES,

            # Certificates
            default_marriage_location=env.DEFAULT_MARRIAGE_LOCATION,
            default_officiant=env.DEFAULT_OFFICIANT,
            default_marriage_religion=env.DEFAULT_MARRIAGE_RELIGION,

            # Storage
            storage_path=env.STORAGE_PATH,
            log_file=env.LOG_FILE,
        )


class FlaskConfig:
    """Flask-specific configuration for app.config.from_object()."""

    def __init__(
        self,
        SECRET_KEY: str,
        SQLALCHEMY_DATABASE_URI: str,
        SQLALCHEMY_TRACK_MODIFICATIONS: bool,
        SQLALCHEMY_ENGINE_OPTIONS: dict[str, Any],
        MAX_CONTENT_LENGTH: int,
    ) -> None:
        self.SECRET_KEY = SECRET_KEY
        self.SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI
        self.SQLALCHEMY_TRACK_MODIFICATIONS = SQLALCHEMY_TRACK_MODIFICATIONS
        self.SQLALCHEMY_ENGINE_OPTIONS = SQLALCHEMY_ENGINE_OPTIONS
        self.MAX_CONTENT_LENGTH = MAX_CONTENT_LENGTH
