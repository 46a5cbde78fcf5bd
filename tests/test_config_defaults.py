from __future__ import annotations

from pathlib import Path

import pytest

from jaen.config import AppConfig, LiveConfig, ProviderConfig, load_config


def test_app_config_defaults():
    cfg = AppConfig()
    assert cfg.provider == ProviderConfig(kind="custom", endpoint=None, api_key=None, timeout_s=30.0)
    assert cfg.live == LiveConfig(debounce_ms=600)
    assert cfg.history_limit == 40
    assert cfg.log_path is None


def test_load_config_empty_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("DEEPL_API_KEY", raising=False)
    config_path = tmp_path / "config.yaml"
    config_path.write_text("", encoding="utf-8")

    cfg = load_config(config_path)
    assert cfg.provider.kind == "custom"
    assert cfg.live.debounce_ms == 600
    assert cfg.history_limit == 40
    assert Path(cfg.settings_path) == (tmp_path / "jaen_settings.sqlite").resolve()


def test_load_config_reads_all_sections(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "provider:\n"
        "  kind: DeepL\n"
        "  endpoint: https://api.deepl.com/v2/translate\n"
        "  api_key: secret\n"
        "  timeout_s: 5\n"
        "live:\n"
        "  debounce_ms: 250\n"
        "history_limit: 10\n"
        "settings_path: state/settings.sqlite\n"
        "log_path: logs/jaen.log\n",
        encoding="utf-8",
    )

    cfg = load_config(config_path)
    assert cfg.provider == ProviderConfig(
        kind="deepl",
        endpoint="https://api.deepl.com/v2/translate",
        api_key="secret",
        timeout_s=5.0,
    )
    assert cfg.live.debounce_ms == 250
    assert cfg.history_limit == 10
    assert Path(cfg.settings_path) == (tmp_path / "state" / "settings.sqlite").resolve()
    assert Path(cfg.log_path) == (tmp_path / "logs" / "jaen.log").resolve()


def test_load_config_falls_back_to_env_api_key(tmp_path, monkeypatch):
    monkeypatch.setenv("GOOGLE_TRANSLATE_API_KEY", "from-env")
    config_path = tmp_path / "config.yaml"
    config_path.write_text("provider:\n  kind: google\n", encoding="utf-8")

    assert load_config(config_path).provider.api_key == "from-env"


def test_load_config_rejects_unknown_provider(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("provider:\n  kind: bing\n", encoding="utf-8")

    with pytest.raises(ValueError, match="provider.kind"):
        load_config(config_path)


def test_load_config_rejects_non_positive_debounce(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("live:\n  debounce_ms: 0\n", encoding="utf-8")

    with pytest.raises(ValueError, match="live.debounce_ms"):
        load_config(config_path)
