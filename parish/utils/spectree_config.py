"""
Spectree configuration with Pydantic v2 compatibility.
"""
import logging
from typing import Any

from flask import Flask, redirect
from spectree import SpecTree

from parish.consts import API_DESCRIPTION, API_TITLE

logger = logging.getLogger(__name__)

# Global Spectree instance imported by the API modules.
# Initialized by configure_spectree() before the API modules are wired.
api: SpecTree = None  # type: ignore


def configure_spectree(app: Flask) -> SpecTree:
    """
    Configure Spectree with Pydantic v2 models and register the docs routes.

    Returns:
        SpecTree: Configured Spectree instance
    """
    global api

    api = SpecTree(
        backend_name="flask",
        title=API_TITLE,
        version="1.0.0",
        description=API_DESCRIPTION,
        path="api/docs",  # OpenAPI docs available at /api/docs
        validation_error_status=400,
    )

    api.register(app)

    @app.route("/api/docs")
    @app.route("/api/docs/")
    def docs_redirect() -> Any:
        return redirect("/api/docs/swagger/", code=302)

    logger.debug("OpenAPI documentation registered at /api/docs")
    return api
