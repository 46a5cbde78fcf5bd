from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

PROVIDER_KINDS = frozenset({"deepl", "google", "custom"})

# Used only when neither the config file nor the stored settings carry a key.
API_KEY_ENV_VARS = {
    "deepl": "DEEPL_API_KEY",
    "google": "GOOGLE_TRANSLATE_API_KEY",
}


@dataclass(frozen=True)
class ProviderConfig:
    kind: str = "custom"  # 'deepl' | 'google' | 'custom'
    # deepl/google: optional base URL override. custom: required proxy URL.
    endpoint: str | None = None
    api_key: str | None = None
    timeout_s: float = 30.0


@dataclass(frozen=True)
class LiveConfig:
    debounce_ms: int = 600


@dataclass(frozen=True)
class AppConfig:
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    live: LiveConfig = field(default_factory=LiveConfig)
    history_limit: int = 40
    settings_path: str = "jaen_settings.sqlite"
    log_path: str | None = None


def _resolve_optional_path(base_dir: Path, value: Any) -> str | None:
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    path = Path(raw)
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)


def _normalize_choice(value: Any, *, field_name: str, allowed: set[str] | frozenset[str], default: str) -> str:
    raw = str(default if value is None else value).strip().lower()
    if raw not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(f"Invalid value for {field_name}: {raw!r}. Allowed: {allowed_list}")
    return raw


def _positive_int(value: Any, *, field_name: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"Invalid value for {field_name}: {number}. Must be > 0")
    return number


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    raw = str(value).strip()
    return raw or None


def api_key_from_env(kind: str) -> str | None:
    env_name = API_KEY_ENV_VARS.get(kind.strip().lower())
    if not env_name:
        return None
    return _optional_str(os.environ.get(env_name))


def load_config(path: str | Path) -> AppConfig:
    cfg_path = Path(path)
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

    provider_data = data.get("provider", {}) or {}
    live_data = data.get("live", {}) or {}

    kind = _normalize_choice(
        provider_data.get("kind", "custom"),
        field_name="provider.kind",
        allowed=PROVIDER_KINDS,
        default="custom",
    )
    provider = ProviderConfig(
        kind=kind,
        endpoint=_optional_str(provider_data.get("endpoint")),
        api_key=_optional_str(provider_data.get("api_key")) or api_key_from_env(kind),
        timeout_s=float(provider_data.get("timeout_s", 30.0)),
    )
    live = LiveConfig(
        debounce_ms=_positive_int(live_data.get("debounce_ms", 600), field_name="live.debounce_ms"),
    )

    return AppConfig(
        provider=provider,
        live=live,
        history_limit=_positive_int(data.get("history_limit", 40), field_name="history_limit"),
        settings_path=(
            _resolve_optional_path(cfg_path.parent, data.get("settings_path", "jaen_settings.sqlite"))
            or str((cfg_path.parent / "jaen_settings.sqlite").resolve())
        ),
        log_path=_resolve_optional_path(cfg_path.parent, data.get("log_path")),
    )
