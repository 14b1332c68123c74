"""Entry point that starts the HTTP server."""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv
from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from steamtg.api import DEFAULT_ORIGINS, create_app
from steamtg.store import connect

log = logging.getLogger(__name__)

HOST = "0.0.0.0"
PORT = 8989


def build_app(database_url: str | None) -> Flask:
    """Connect to the database and build the web application."""
    return create_app(connect(database_url), DEFAULT_ORIGINS)


def main(argv: list[str] | None = None) -> int:
    """Load settings, connect to the database and serve the API."""
    argparse.ArgumentParser(description="Serve the driver and order API.").parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    if not load_dotenv(".env"):
        log.info("no .env file or it could not be loaded, using environment variables")

    try:
        app = build_app(os.environ.get("DATABASE_URL"))
    except (ValueError, ImportError, SQLAlchemyError) as exc:
        log.error("cannot connect to the database: %s", exc)
        return 1

    log.info("server running on port %d", PORT)
    app.run(host=HOST, port=PORT)
    return 0