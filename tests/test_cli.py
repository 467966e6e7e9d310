"""Tests for the ``readiness-init`` command."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from readiness import cli
from readiness.errors import RetryExhaustedError
from readiness.settings import load_settings


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


def test_unconfigured_run_exits_zero_with_three_skips():
    with capture_logs() as logs:
        assert cli.main([]) == 0

    skipped = [entry["event"] for entry in logs if entry["event"].endswith("_skipped")]
    assert skipped == [
        "http_readiness_check_skipped",
        "postgres_readiness_check_skipped",
        "mongo_readiness_check_skipped",
    ]


def test_positional_arguments_are_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["unexpected"])
    assert excinfo.value.code == 2


def test_flags_override_environment(monkeypatch):
    monkeypatch.setenv("READINESS_POSTGRES_USER", "from-env")
    monkeypatch.setenv("POD_NAMESPACE", "team")
    parser = cli.build_parser(load_settings())

    args = parser.parse_args(["-u", "from-flag", "-p", "pw", "-l", "true", "-c", "http://a,http://b", "--max-attempts", "3"])
    settings = cli.settings_from_args(args)

    assert settings.postgres.user == "from-flag"
    assert settings.postgres.password == "pw"
    assert settings.postgres.ssl_mode == "true"
    assert settings.postgres.host == "postgresql.team.svc.cluster.local"
    assert settings.mongo.host == "mongodb.team.svc.cluster.local"
    assert settings.http.url_list == ["http://a", "http://b"]
    assert settings.retry.max_attempts == 3


def test_environment_supplies_defaults(monkeypatch):
    monkeypatch.setenv("READINESS_MONGO_DATABASE", "app")
    monkeypatch.setenv("READINESS_HTTP_VERIFY_TLS", "true")
    args = cli.build_parser(load_settings()).parse_args([])

    assert args.mongo_database == "app"
    assert args.http_verify_tls is True
    assert cli.build_parser(load_settings()).parse_args(["--no-http-verify-tls"]).http_verify_tls is False


def test_invalid_environment_exits_one(monkeypatch):
    monkeypatch.setenv("READINESS_MONGO_PORT", "abc")
    with capture_logs() as logs:
        assert cli.main([]) == 1
    assert logs[-1]["event"] == "readiness_init_failed"


def test_invalid_flag_value_exits_one():
    with capture_logs() as logs:
        assert cli.main(["--ping-attempts", "0"]) == 1
    assert logs[-1]["event"] == "readiness_init_failed"


def test_exhausted_attempts_exit_one(monkeypatch):
    def exhausted(settings):
        raise RetryExhaustedError("http", 2)

    monkeypatch.setattr(cli, "wait_for_dependencies", exhausted)
    with capture_logs() as logs:
        assert cli.main(["--max-attempts", "2"]) == 1
    assert logs[-1]["stage"] == "http"


def test_service_link_variables_do_not_break_startup(monkeypatch):
    monkeypatch.setenv("POSTGRES_PORT", "tcp://10.0.0.5:5432")
    monkeypatch.setenv("MONGO_PORT", "tcp://10.0.0.6:27017")
    monkeypatch.setenv("POSTGRES_SERVICE_HOST", "10.0.0.5")

    with capture_logs() as logs:
        assert cli.main(["-o", "5432"]) == 0

    assert "readiness_init_failed" not in [entry["event"] for entry in logs]
