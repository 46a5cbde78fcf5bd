from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any, Protocol

from .config import ProviderConfig
from .errors import ConfigError, ProviderError

logger = logging.getLogger(__name__)

DEEPL_DEFAULT_URL = "https://api-free.deepl.com/v2/translate"
GOOGLE_DEFAULT_URL = "https://translation.googleapis.com/language/translate/v2"


class ProviderClient(Protocol):
    name: str

    async def translate(self, text: str, source_lang: str, target_lang: str, config: ProviderConfig) -> str: ...


def _http_post(provider: str, url: str, data: bytes, content_type: str, timeout_s: float) -> Any:
    req = urllib.request.Request(
        url=url,
        data=data,
        headers={"Content-Type": content_type},
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            body = resp.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        detail = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
        logger.debug(f"{provider} HTTPError {e.code}: {detail[:500]}")
        raise ProviderError(provider, status=e.code) from e
    except Exception as e:
        raise ProviderError(provider, message=str(e)) from e

    try:
        return json.loads(body) if body.strip() else {}
    except json.JSONDecodeError as e:
        raise ProviderError(provider, message=f"unexpected response body: {body[:200]}") from e


async def _post(provider: str, url: str, data: bytes, content_type: str, timeout_s: float) -> Any:
    # urllib blocks; run it off the event loop so other timers and requests keep going.
    logger.debug(f"{provider} POST {url.split('?', 1)[0]} ({len(data)} bytes)")
    return await asyncio.to_thread(_http_post, provider, url, data, content_type, timeout_s)


def _first_translation_field(data: Any, key: str) -> str:
    translations = data.get("translations") if isinstance(data, dict) else None
    if not isinstance(translations, list) or not translations:
        return ""
    first = translations[0]
    if not isinstance(first, dict) or first.get(key) is None:
        return ""
    return str(first[key])


@dataclass(frozen=True)
class DeepLClient:
    """DeepL REST API (form-encoded, key in the `auth_key` field)."""

    name: str = "DeepL"
    default_url: str = DEEPL_DEFAULT_URL

    async def translate(self, text: str, source_lang: str, target_lang: str, config: ProviderConfig) -> str:
        if not config.api_key:
            raise ConfigError("DeepL API key is required")
        body = urllib.parse.urlencode(
            {
                "auth_key": config.api_key,
                "text": text,
                "source_lang": source_lang.upper(),
                "target_lang": target_lang.upper(),
            }
        ).encode("utf-8")
        data = await _post(
            self.name,
            config.endpoint or self.default_url,
            body,
            "application/x-www-form-urlencoded",
            config.timeout_s,
        )
        return _first_translation_field(data, "text")


@dataclass(frozen=True)
class GoogleClient:
    """Google Cloud Translation v2 (JSON body, key as query parameter)."""

    name: str = "Google"
    default_url: str = GOOGLE_DEFAULT_URL

    async def translate(self, text: str, source_lang: str, target_lang: str, config: ProviderConfig) -> str:
        if not config.api_key:
            raise ConfigError("Google Translate API key is required")
        base = config.endpoint or self.default_url
        url = f"{base}?{urllib.parse.urlencode({'key': config.api_key})}"
        payload = {
            "q": text,
            "source": source_lang.lower(),
            "target": target_lang.lower(),
            "format": "text",
        }
        data = await _post(
            self.name,
            url,
            json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            "application/json",
            config.timeout_s,
        )
        inner = data.get("data") if isinstance(data, dict) else None
        return _first_translation_field(inner, "translatedText")


@dataclass(frozen=True)
class CustomProxyClient:
    """User-hosted proxy that holds the real credentials; the endpoint is trusted."""

    name: str = "Custom proxy"

    async def translate(self, text: str, source_lang: str, target_lang: str, config: ProviderConfig) -> str:
        if not config.endpoint:
            raise ConfigError("Custom endpoint required")
        payload = {"q": text, "source": source_lang, "target": target_lang}
        data = await _post(
            self.name,
            config.endpoint,
            json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            "application/json",
            config.timeout_s,
        )
        if not isinstance(data, dict):
            return ""
        for key in ("text", "translation"):
            if data.get(key) is not None:
                return str(data[key])
        return ""


def build_provider_client(config: ProviderConfig) -> ProviderClient:
    kind = (config.kind or "").strip().lower()
    if kind == "deepl":
        return DeepLClient()
    if kind == "google":
        return GoogleClient()
    if kind == "custom":
        return CustomProxyClient()
    raise ConfigError("no provider selected")
