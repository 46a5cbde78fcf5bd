from __future__ import annotations

import datetime as dt
import logging
import sqlite3
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, TypeVar

from .config import ProviderConfig, api_key_from_env
from .glossary import dumps_glossary, loads_glossary
from .models import Glossaries, PaneState

T = TypeVar("T")

logger = logging.getLogger(__name__)

KEY_JA_TEXT = "ja_text"
KEY_EN_TEXT = "en_text"
KEY_LIVE = "live"
KEY_PROVIDER = "provider"
KEY_ENDPOINT = "endpoint"
KEY_API_KEY = "api_key"
KEY_GLOSSARY_JA_EN = "glossary_ja_en"
KEY_GLOSSARY_EN_JA = "glossary_en_ja"


class SettingsStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemorySettingsStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)


class SqliteSettingsStore:
    """String key/value settings in a single sqlite table."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = self._connect_with_recovery()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> SqliteSettingsStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connect_sqlite(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        try:
            conn.execute("PRAGMA journal_mode=WAL;")
        except sqlite3.DatabaseError:
            conn.close()
            raise
        return conn

    def _quarantine_corrupt_sqlite(self) -> None:
        stamp = dt.datetime.now(dt.UTC).strftime("%Y%m%dT%H%M%SZ")
        for suffix in ("", "-wal", "-shm"):
            src = Path(f"{self.path}{suffix}")
            if not src.exists():
                continue
            dst = Path(f"{src}.corrupt-{stamp}")
            try:
                src.replace(dst)
            except OSError:
                continue
        logger.warning(f"Settings file was corrupt and has been moved aside: {self.path}")

    def _connect_with_recovery(self) -> sqlite3.Connection:
        conn: sqlite3.Connection | None = None
        try:
            conn = self._connect_sqlite()
            self.conn = conn
            self._init_db()
            return conn
        except sqlite3.DatabaseError:
            if conn is not None:
                conn.close()
            self._quarantine_corrupt_sqlite()
            conn = self._connect_sqlite()
            self.conn = conn
            self._init_db()
            return conn

    @staticmethod
    def _is_corruption_error(exc: sqlite3.DatabaseError) -> bool:
        message = str(exc).lower()
        return any(
            marker in message
            for marker in (
                "database disk image is malformed",
                "file is not a database",
                "not a database",
                "malformed",
            )
        )

    def _run_with_recovery(self, operation: Callable[[], T]) -> T:
        try:
            return operation()
        except sqlite3.DatabaseError as exc:
            if not self._is_corruption_error(exc):
                raise
            with suppress(sqlite3.Error):
                self.conn.close()
            self._quarantine_corrupt_sqlite()
            self.conn = self._connect_sqlite()
            self._init_db()
            return operation()

    def _init_db(self) -> None:
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS settings (
              key TEXT PRIMARY KEY,
              value TEXT NOT NULL,
              updated_at TEXT NOT NULL
            );
            """
        )
        self.conn.commit()

    def get(self, key: str) -> str | None:
        def _op() -> str | None:
            row = self.conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
            return None if row is None else str(row[0])

        return self._run_with_recovery(_op)

    def set(self, key: str, value: str) -> None:
        now = dt.datetime.now(dt.UTC).isoformat()

        def _op() -> None:
            self.conn.execute(
                """
                INSERT INTO settings(key, value, updated_at) VALUES(?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, str(value), now),
            )
            self.conn.commit()

        self._run_with_recovery(_op)


@dataclass
class AppState:
    """Everything the UI persists between sessions."""

    panes: PaneState = field(default_factory=PaneState)
    glossaries: Glossaries = field(default_factory=Glossaries)
    live: bool = False
    provider: str = "custom"
    endpoint: str = ""
    api_key: str = ""

    def provider_config(self, timeout_s: float = 30.0) -> ProviderConfig:
        return ProviderConfig(
            kind=self.provider,
            endpoint=self.endpoint or None,
            api_key=self.api_key or api_key_from_env(self.provider),
            timeout_s=timeout_s,
        )


def load_state(store: SettingsStore) -> AppState:
    return AppState(
        panes=PaneState(ja=store.get(KEY_JA_TEXT) or "", en=store.get(KEY_EN_TEXT) or ""),
        glossaries=Glossaries(
            ja_en=loads_glossary(store.get(KEY_GLOSSARY_JA_EN)),
            en_ja=loads_glossary(store.get(KEY_GLOSSARY_EN_JA)),
        ),
        live=store.get(KEY_LIVE) == "1",
        provider=store.get(KEY_PROVIDER) or "custom",
        endpoint=store.get(KEY_ENDPOINT) or "",
        api_key=store.get(KEY_API_KEY) or "",
    )


def save_panes(store: SettingsStore, panes: PaneState) -> None:
    store.set(KEY_JA_TEXT, panes.ja)
    store.set(KEY_EN_TEXT, panes.en)


def save_glossaries(store: SettingsStore, glossaries: Glossaries) -> None:
    store.set(KEY_GLOSSARY_JA_EN, dumps_glossary(glossaries.ja_en))
    store.set(KEY_GLOSSARY_EN_JA, dumps_glossary(glossaries.en_ja))


def save_state(store: SettingsStore, state: AppState) -> None:
    save_panes(store, state.panes)
    save_glossaries(store, state.glossaries)
    store.set(KEY_LIVE, "1" if state.live else "0")
    store.set(KEY_PROVIDER, state.provider)
    store.set(KEY_ENDPOINT, state.endpoint)
    store.set(KEY_API_KEY, state.api_key)
