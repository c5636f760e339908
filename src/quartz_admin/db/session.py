"""SQLAlchemy engine construction for the Quartz database."""

from __future__ import annotations

import logging

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError

from quartz_admin.config import Settings
from quartz_admin.errors import ConnectionFailure

logger = logging.getLogger(__name__)

# Pool bounds: at most five connections; wait up to five seconds for one.
POOL_SIZE = 1
MAX_OVERFLOW = 4
POOL_TIMEOUT = 5

# DBAPI used for a bare backend name when --driver targets another backend.
BACKEND_DRIVERS = {
    "postgresql": "psycopg2",
    "mysql": "pymysql",
}


def build_url(settings: Settings) -> URL:
    """Turn the configured URL, driver and credentials into a SQLAlchemy URL."""
    if not settings.url:
        raise ValueError("No database URL configured (use --url or QUARTZ_URL)")

    raw = settings.url
    if raw.startswith("jdbc:"):
        raw = raw[len("jdbc:") :]
    try:
        url = make_url(raw)
    except ArgumentError as exc:
        raise ConnectionFailure(f"Error connecting: {exc}", exc) from exc

    # Only apply --driver when the URL doesn't already name one.
    if "+" not in url.drivername:
        backend, _, driver = (settings.driver or "").partition("+")
        if backend and not driver:
            url = url.set(drivername=f"{url.drivername}+{backend}")
        elif backend == url.drivername:
            url = url.set(drivername=settings.driver)
        elif url.drivername in BACKEND_DRIVERS:
            url = url.set(drivername=f"{url.drivername}+{BACKEND_DRIVERS[url.drivername]}")

    if settings.user:
        url = url.set(username=settings.user)
    if settings.password:
        url = url.set(password=settings.password)
    return url


def display_url(settings: Settings) -> str:
    """Return the connection URL with the password hidden."""
    try:
        return build_url(settings).render_as_string(hide_password=True)
    except ValueError:
        return "Not configured"


def create_engine(settings: Settings) -> Engine:
    url = build_url(settings)
    kwargs: dict = {}

    if url.get_backend_name() != "sqlite":
        kwargs.update(
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    if url.get_backend_name() == "postgresql" and settings.db_schema:
        kwargs["connect_args"] = {"options": f"-csearch_path={settings.db_schema}"}

    logger.debug("Creating engine for %s", url.render_as_string(hide_password=True))
    try:
        return sa_create_engine(url, **kwargs)
    except (ArgumentError, ImportError) as exc:
        raise ConnectionFailure(f"Error connecting: {exc}", exc) from exc
