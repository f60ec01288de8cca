"""Flask application factory."""

from flask import g
from flask_cors import CORS

from parish.app import App
from parish.config import Settings
from parish.extensions import db


def create_app(settings: "Settings | None" = None, skip_background_services: bool = False) -> App:
    """Create and configure Flask application.

    App-specific wiring lives in parish/startup.py:
    - create_container(): builds the DI container
    - register_blueprints(): registers the resource blueprints on /api
    - register_root_blueprints(): registers health and metrics (not under /api)
    """
    app = App(__name__)

    # Load configuration
    if settings is None:
        settings = Settings.load()

    # Validate configuration before proceeding
    settings.validate_production_config()

    app.config.from_object(settings.to_flask_config())

    # Initialize extensions
    db.init_app(app)

    # Import models to register them with SQLAlchemy
    from parish import models  # noqa: F401

    # Import empty string normalization to register event handlers
    from parish.utils import empty_string_normalization  # noqa: F401

    # db.engine requires an app context
    with app.app_context():
        from sqlalchemy.orm import Session, sessionmaker

        from parish.database import enable_sqlite_savepoints

        enable_sqlite_savepoints(db.engine)

        SessionLocal: sessionmaker[Session] = sessionmaker(
            class_=Session,
            bind=db.engine,
            autoflush=True,
            expire_on_commit=False,
        )

    # Initialize SpecTree for OpenAPI docs; must run before the API modules are imported
    from parish.utils.spectree_config import configure_spectree

    configure_spectree(app)

    from parish.startup import create_container

    container = create_container()
    container.config.override(settings)
    container.session_maker.override(SessionLocal)

    # Wire container to all API modules via package scanning
    container.wire(packages=["parish.api"])

    app.container = container

    # Configure CORS
    CORS(app, origins=settings.cors_origins)

    # Initialize correlation ID tracking
    from parish.utils import _init_request_id

    _init_request_id(app)

    from parish.utils.flask_error_handlers import (
        register_business_error_handlers,
        register_core_error_handlers,
    )

    register_core_error_handlers(app)
    register_business_error_handlers(app)

    from parish.api import api_bp
    from parish.startup import register_blueprints, register_root_blueprints

    register_blueprints(api_bp, app)
    app.register_blueprint(api_bp)

    # Health and metrics are for internal cluster use and sit outside /api
    register_root_blueprints(app)

    @app.teardown_request
    def close_session(exc: Exception | None) -> None:
        """Commit or roll back the request's database session, then close it.

        Error handlers set ``g.needs_rollback`` because Flask does not pass
        a handled exception to teardown_request.
        """
        try:
            db_session = container.db_session()

            needs_rollback = exc or getattr(g, "needs_rollback", False)
            if needs_rollback:
                db_session.rollback()
            else:
                db_session.commit()

            db_session.close()

        finally:
            container.db_session.reset()

    # Query monitoring hooks are skipped in CLI mode
    if not skip_background_services:
        performance_monitor = container.performance_monitor()
        with app.app_context():
            performance_monitor.init_app(app, db.engine)
        app.performance_monitor = performance_monitor

    return app
