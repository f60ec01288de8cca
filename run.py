"""Development server entry point."""

import logging
import os

from dotenv import load_dotenv
from paste.translogger import TransLogger  # type: ignore[import-untyped]
from waitress import serve

from parish import create_app
from parish.config import Settings


def main() -> None:
    load_dotenv()

    settings = Settings.load()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )

    app = create_app(settings)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 5000))

    if settings.flask_env in ("development", "testing"):
        app.logger.info("Running in debug mode")
        app.run(host=host, port=port, debug=True)
    else:
        wsgi = TransLogger(app, setup_console_handler=False)
        threads = int(os.getenv("WAITRESS_THREADS", 50))
        wsgi.logger.info("Using Waitress WSGI server with %d threads", threads)
        serve(wsgi, host=host, port=port, threads=threads)


if __name__ == "__main__":
    main()
