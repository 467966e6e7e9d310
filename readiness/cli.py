"""Command line entry point for the readiness init step.

Usage (as an init container command)::

  readiness-init -c https://api.internal/healthz -u app -p secret -g app -e app -d secret

Every flag defaults to its environment variable (see ``readiness.settings``).
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from observability.logging import configure_logging
from readiness.errors import RetryExhaustedError
from readiness.orchestrator import wait_for_dependencies
from readiness.settings import (
    HTTPCheckSettings,
    MongoSettings,
    PostgresSettings,
    ReadinessSettings,
    RetrySettings,
    load_settings,
)

logger = structlog.get_logger(__name__)


def build_parser(defaults: ReadinessSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="readiness-init",
        description="Block until HTTP endpoints, PostgreSQL and MongoDB are reachable.",
    )

    http = parser.add_argument_group("HTTP readiness")
    http.add_argument(
        "-c",
        "--http-readiness-check-urls",
        default=defaults.http.urls,
        help="HTTP readiness check URLs separated by ','",
    )
    http.add_argument("--http-timeout", type=float, default=defaults.http.timeout,
                      help="Per-request timeout in seconds")
    http.add_argument(
        "--http-verify-tls",
        action=argparse.BooleanOptionalAction,
        default=defaults.http.verify_tls,
        help="Validate TLS certificates of the readiness URLs",
    )

    pg = parser.add_argument_group("PostgreSQL")
    pg.add_argument("-s", "--postgres-host", default=defaults.postgres.host, help="Postgres database host")
    pg.add_argument("-o", "--postgres-port", type=int, default=defaults.postgres.port, help="Postgres database port")
    pg.add_argument("-b", "--postgres-database", default=defaults.postgres.database, help="Postgres database name")
    pg.add_argument("-u", "--postgres-user", default=defaults.postgres.user, help="Postgres database user")
    pg.add_argument("-p", "--postgres-password", default=defaults.postgres.password, help="Postgres database password")
    pg.add_argument("-l", "--postgres-ssl-mode", default=defaults.postgres.ssl_mode, help="Postgres database SSL mode")

    mongo = parser.add_argument_group("MongoDB")
    mongo.add_argument("-m", "--mongo-host", default=defaults.mongo.host, help="Mongo database host")
    mongo.add_argument("-r", "--mongo-port", type=int, default=defaults.mongo.port, help="Mongo database port")
    mongo.add_argument("-g", "--mongo-database", default=defaults.mongo.database, help="Mongo database name")
    mongo.add_argument("-e", "--mongo-user", default=defaults.mongo.user, help="Mongo database user")
    mongo.add_argument("-d", "--mongo-password", default=defaults.mongo.password, help="Mongo database password")

    retry = parser.add_argument_group("Retry")
    retry.add_argument("--retry-delay", type=float, default=defaults.retry.retry_delay,
                       help="Seconds to wait before retrying a failed stage")
    retry.add_argument("--max-attempts", type=int, default=defaults.retry.max_attempts,
                       help="Give up after this many attempts per stage (0 retries forever)")
    retry.add_argument("--ping-attempts", type=int, default=defaults.retry.ping_attempts,
                       help="Database pings per stage attempt")
    retry.add_argument("--ping-delay", type=float, default=defaults.retry.ping_delay,
                       help="Seconds between database pings")

    parser.add_argument("--log-level", default=defaults.log_level, help="Logging level")
    return parser


def settings_from_args(args: argparse.Namespace) -> ReadinessSettings:
    return ReadinessSettings(
        log_level=args.log_level,
        http=HTTPCheckSettings(
            urls=args.http_readiness_check_urls,
            timeout=args.http_timeout,
            verify_tls=args.http_verify_tls,
        ),
        postgres=PostgresSettings(
            host=args.postgres_host,
            port=args.postgres_port,
            database=args.postgres_database,
            user=args.postgres_user,
            password=args.postgres_password,
            ssl_mode=args.postgres_ssl_mode,
        ),
        mongo=MongoSettings(
            host=args.mongo_host,
            port=args.mongo_port,
            database=args.mongo_database,
            user=args.mongo_user,
            password=args.mongo_password,
        ),
        retry=RetrySettings(
            retry_delay=args.retry_delay,
            max_attempts=args.max_attempts,
            ping_attempts=args.ping_attempts,
            ping_delay=args.ping_delay,
        ),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run every readiness stage; return the process exit code."""
    configure_logging()
    try:
        defaults = load_settings()
    except ValidationError as exc:
        logger.error("readiness_init_failed", error=str(exc))
        return 1

    # argparse exits with status 2 on usage errors, positional arguments included
    args = build_parser(defaults).parse_args(argv)
    try:
        settings = settings_from_args(args)
        configure_logging(settings.log_level)
    except (ValidationError, ValueError) as exc:
        logger.error("readiness_init_failed", error=str(exc))
        return 1

    try:
        wait_for_dependencies(settings)
    except RetryExhaustedError as exc:
        logger.error("readiness_init_failed", stage=exc.stage, attempts=exc.attempts, error=str(exc))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
