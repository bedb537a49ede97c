from __future__ import annotations

import logging

import pytest

from app.config import AppConfig, load_config, setup_logging, validate_config


def test_defaults(monkeypatch):
    for name in ("FLORA_ENV", "LLM_PROVIDER", "LLM_API_KEY", "GEMINI_API_KEY", "FLORA_MAX_UPLOAD_MB"):
        monkeypatch.delenv(name, raising=False)

    config = AppConfig()

    assert config.environment == "development"
    assert config.llm_provider == "gemini"
    assert config.as_flask_config()["MAX_CONTENT_LENGTH"] == 20 * 1024 * 1024


def test_gemini_key_alias(monkeypatch):
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "from-gemini")
    assert AppConfig().llm_api_key == "from-gemini"


def test_production_rejects_default_secret(monkeypatch):
    monkeypatch.setenv("FLORA_ENV", "production")
    monkeypatch.delenv("FLORA_SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError):
        AppConfig()


def test_bad_integer_env(monkeypatch):
    monkeypatch.setenv("FLORA_TITLE_WORKERS", "many")
    with pytest.raises(ValueError, match="FLORA_TITLE_WORKERS"):
        AppConfig()


def test_worker_count_must_be_positive(monkeypatch):
    monkeypatch.setenv("FLORA_TITLE_WORKERS", "0")
    with pytest.raises(ValueError):
        AppConfig()


def test_validate_config_warnings(monkeypatch):
    monkeypatch.delenv("FLORA_ENV", raising=False)
    config = AppConfig(llm_provider="gemini", llm_api_key="", llm_timeout=5, storage_path=":memory:")

    warnings = validate_config(config)

    assert any("LLM_API_KEY" in w for w in warnings)
    assert any("timeout" in w for w in warnings)
    assert validate_config(AppConfig(llm_provider="none", storage_path=":memory:")) == []


def test_setup_logging_is_idempotent(tmp_path):
    log_file = tmp_path / "logs" / "flora.log"

    setup_logging(debug=False, log_file=str(log_file))
    setup_logging(debug=True, log_file=str(log_file))

    names = [handler.name for handler in logging.getLogger().handlers]
    assert names.count("flora_console") == 1
    assert names.count("flora_file") == 1
    assert log_file.parent.exists()

    root = logging.getLogger()
    for handler in [h for h in root.handlers if h.name == "flora_file"]:
        root.removeHandler(handler)
        handler.close()


@pytest.mark.parametrize("key", ["DEBUG", "debug"])
def test_overrides_set_the_real_field(monkeypatch, key):
    monkeypatch.delenv("FLORA_DEBUG", raising=False)

    config = load_config({key: True, "storage_path": ":memory:"})

    assert config.DEBUG is True
    assert config.as_flask_config()["DEBUG"] is True
    assert not hasattr(config, "debug")


def test_unknown_override_rejected():
    with pytest.raises(ValueError, match="Unknown configuration key"):
        load_config({"storage_pth": ":memory:"})


def test_overrides_are_validated():
    with pytest.raises(ValueError, match="FLORA_TITLE_WORKERS"):
        load_config({"title_worker_count": 0, "storage_path": ":memory:"})
    with pytest.raises(RuntimeError):
        load_config({"environment": "production", "secret_key": "FloraDevSecretKey", "storage_path": ":memory:"})


def test_override_warnings_are_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="config_loader"):
        load_config({"llm_provider": "gemini", "llm_api_key": "", "storage_path": ":memory:"})
    assert "LLM_API_KEY" in caplog.text


def test_create_app_rejects_unknown_override():
    from app import create_app

    with pytest.raises(ValueError):
        create_app({"no_such_setting": 1})
