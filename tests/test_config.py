import pytest

from app.dashboard import create_app
from app.dashboard.config import load_config, missing_s3_settings, production_problems
from scripts.release import check_database_url
from scripts.start import gunicorn_argv, parse_port


def test_load_config_defaults(monkeypatch):
    for k in ("ENV", "DATABASE_URL", "STORAGE_BACKEND", "VIEW_CACHE_ENABLED", "VIEW_CACHE_TTL", "PLACEHOLDER_IMAGE_URL"):
        monkeypatch.delenv(k, raising=False)
    cfg = load_config()
    assert cfg["DATABASE_URL"] == "sqlite:///dashboard.db"
    assert cfg["STORAGE_BACKEND"] == "local"
    assert cfg["PLACEHOLDER_IMAGE_URL"] == "/static/customers/default.svg"
    assert cfg["VIEW_CACHE_ENABLED"] is True
    assert cfg["VIEW_CACHE_TTL"] == 60.0
    assert cfg["SESSION_COOKIE_SECURE"] is False


@pytest.mark.parametrize("raw, expected", [("0", False), ("false", False), ("off", False), ("1", True), ("yes", True)])
def test_view_cache_flag(monkeypatch, raw, expected):
    monkeypatch.setenv("VIEW_CACHE_ENABLED", raw)
    assert load_config()["VIEW_CACHE_ENABLED"] is expected


def test_production_problems():
    assert production_problems({"ENV": "development", "DATABASE_URL": "sqlite:///x.db"}) == []
    problems = production_problems({"ENV": "production", "DATABASE_URL": "sqlite:///x.db", "SECRET_KEY": "change-me"})
    assert len(problems) == 2
    assert production_problems(
        {"ENV": "prod", "DATABASE_URL": "postgresql://db/app", "SECRET_KEY": "s3cr3t-value"}
    ) == []


def test_create_app_refuses_sqlite_in_production(monkeypatch):
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("SECRET_KEY", "not-the-default")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///prod.db")
    with pytest.raises(RuntimeError, match="Postgres"):
        create_app()


def test_missing_s3_settings():
    assert missing_s3_settings({"STORAGE_BACKEND": "local"}) == []
    assert missing_s3_settings({"STORAGE_BACKEND": "s3", "S3_BUCKET": "b"}) == [
        "S3_ENDPOINT",
        "S3_ACCESS_KEY_ID",
        "S3_SECRET_ACCESS_KEY",
    ]


def test_release_database_url_checks():
    assert check_database_url(" postgresql://db/app ", "production") == "postgresql://db/app"
    assert check_database_url("sqlite:///dev.db", "development") == "sqlite:///dev.db"
    with pytest.raises(RuntimeError):
        check_database_url("", "development")
    with pytest.raises(RuntimeError):
        check_database_url("sqlite:///prod.db", "production")


def test_start_helpers():
    assert parse_port(None) == 8080
    assert parse_port("5000") == 5000
    with pytest.raises(ValueError):
        parse_port("70000")
    with pytest.raises(ValueError):
        parse_port("http")

    argv = gunicorn_argv(5000, 3)
    assert argv[:2] == ["gunicorn", "app.wsgi:app"]
    assert "0.0.0.0:5000" in argv
    assert argv[argv.index("--workers") + 1] == "3"
