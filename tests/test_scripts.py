"""Tests for the deploy entrypoints and production config checks."""
import pytest

from app.alumnet import create_app
from app.alumnet.config import check_production_config, is_production
from scripts.release import alembic_config
from scripts.start import WSGI_APP, ServeOptions, gunicorn_argv, serve_options


def test_serve_options_defaults():
    opts = serve_options({})
    assert opts == ServeOptions(port=8080, workers=2, timeout=60, skip_release=False)


def test_serve_options_from_env():
    opts = serve_options({"PORT": " 9000 ", "WEB_CONCURRENCY": "4", "GUNICORN_TIMEOUT": "120", "SKIP_RELEASE": "1"})
    assert opts == ServeOptions(port=9000, workers=4, timeout=120, skip_release=True)


@pytest.mark.parametrize(
    "env",
    [{"PORT": "http"}, {"PORT": "0"}, {"PORT": "70000"}, {"WEB_CONCURRENCY": "0"}, {"GUNICORN_TIMEOUT": "-5"}],
)
def test_serve_options_reject_bad_values(env):
    with pytest.raises(ValueError):
        serve_options(env)


def test_gunicorn_argv_serves_wsgi_app():
    argv = gunicorn_argv(ServeOptions(port=9000, workers=3, timeout=30, skip_release=False))
    assert argv[:2] == ["gunicorn", WSGI_APP]
    assert argv[argv.index("--bind") + 1] == "0.0.0.0:9000"
    assert argv[argv.index("--workers") + 1] == "3"
    assert argv[argv.index("--timeout") + 1] == "30"
    assert "--preload" in argv


def test_alembic_config_escapes_percent_in_url():
    cfg = alembic_config("postgresql://u:p%40ss@db/alumnet")
    assert cfg.get_main_option("sqlalchemy.url") == "postgresql://u:p%40ss@db/alumnet"
    assert cfg.get_main_option("script_location").endswith("migrations")


def test_is_production():
    assert is_production("production")
    assert is_production(" PROD ")
    assert not is_production("test")
    assert not is_production(None)


@pytest.mark.parametrize(
    "config",
    [
        {"DATABASE_URL": "", "SECRET_KEY": "s3cret"},
        {"DATABASE_URL": "sqlite:///alumnet.db", "SECRET_KEY": "s3cret"},
        {"DATABASE_URL": "postgresql://db/alumnet", "SECRET_KEY": "change-me"},
    ],
)
def test_check_production_config_rejects_unsafe_settings(config):
    with pytest.raises(RuntimeError):
        check_production_config(config)


def test_check_production_config_accepts_postgres():
    check_production_config({"DATABASE_URL": "postgresql://db/alumnet", "SECRET_KEY": "s3cret"})


def test_create_app_refuses_sqlite_in_production(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "s3cret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'prod.db'}")
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError, match="Postgres"):
        create_app()
