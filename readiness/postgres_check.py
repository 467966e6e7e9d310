"""PostgreSQL readiness stage.

A pass opens a connection, pings it until it answers, then runs a catalogue
query that must return at least one non-template database. A ping that
finds the connection closed or broken reopens it first, so a server that
comes up mid-loop is picked up. The connection is closed whatever the
outcome.
"""

from __future__ import annotations

from contextlib import closing
from typing import Any, Callable, Optional

import psycopg
import structlog

from readiness.errors import (
    AuthenticationError,
    EmptyResultError,
    ResponseError,
    TransportError,
)
from readiness.retry import RetryPolicy, wait_for_ping
from readiness.settings import PostgresSettings

logger = structlog.get_logger(__name__)

VERIFICATION_QUERY = "SELECT datname FROM pg_database WHERE datistemplate = false"
PING_QUERY = "SELECT 1"

# SQLSTATE class 28: invalid authorization specification
_AUTH_SQLSTATE_CLASS = "28"


def normalize_ssl_mode(value: str | None) -> str:
    """Map the tri-state flag onto a libpq ``sslmode``.

    ``""`` and ``false`` become ``disable``, ``true`` becomes ``require``;
    anything else is assumed to already be a libpq mode and is kept.
    """
    if not value:
        return "disable"
    lowered = value.lower()
    if lowered == "true":
        return "require"
    if lowered == "false":
        return "disable"
    return value


def _connection_error(exc: psycopg.Error, host: str) -> TransportError:
    sqlstate = getattr(exc, "sqlstate", None) or ""
    if sqlstate.startswith(_AUTH_SQLSTATE_CLASS):
        return AuthenticationError(f"authentication to {host} rejected: {exc}")
    return TransportError(f"connection to {host} failed: {exc}")


class _Session:
    """Holds the stage's connection and reopens it when a ping finds it dead."""

    def __init__(self, connect: Callable[..., Any], params: dict[str, Any]) -> None:
        self._connect = connect
        self._params = params
        self.conn = connect(**params)

    def ping(self) -> None:
        if self.conn.closed or self.conn.broken:
            self.conn.close()
            logger.info("postgres_reconnecting", host=self._params["host"])
            self.conn = self._connect(**self._params)
        self.conn.execute(PING_QUERY)

    def close(self) -> None:
        self.conn.close()


def check_postgres(
    cfg: PostgresSettings,
    ping_policy: RetryPolicy,
    *,
    connect: Optional[Callable[..., Any]] = None,
) -> None:
    """Verify the database accepts connections and answers queries."""
    if not cfg.is_configured:
        logger.info("postgres_readiness_check_skipped")
        return

    ssl_mode = normalize_ssl_mode(cfg.ssl_mode)
    logger.info(
        "postgres_readiness_check_started",
        host=cfg.host,
        port=cfg.port,
        database=cfg.database,
        ssl_mode=ssl_mode,
    )
    params = {
        "host": cfg.host,
        "port": cfg.port,
        "user": cfg.user,
        "password": cfg.password,
        "dbname": cfg.database,
        "sslmode": ssl_mode,
        "connect_timeout": cfg.connect_timeout,
        "autocommit": True,
    }
    try:
        session = _Session(connect or psycopg.connect, params)
    except psycopg.Error as exc:
        raise _connection_error(exc, cfg.host) from exc

    with closing(session):
        wait_for_ping(
            session.ping,
            ping_policy,
            target=f"postgres://{cfg.host}:{cfg.port}",
            errors=(psycopg.Error,),
        )
        try:
            cursor = session.conn.execute(VERIFICATION_QUERY)
        except psycopg.OperationalError as exc:
            raise TransportError(f"query on {cfg.host} failed: {exc}") from exc
        except psycopg.Error as exc:
            raise ResponseError(f"exec statement failed: {exc}") from exc

        rows = cursor.rowcount
        if rows is None or rows < 1:
            raise EmptyResultError(f"rows affected 0 for the query: {VERIFICATION_QUERY}")

    logger.info(
        "postgres_readiness_check_passed",
        host=cfg.host,
        database=cfg.database,
        databases=rows,
    )
