from __future__ import annotations

import logging
from collections.abc import Callable

from .config import ProviderConfig
from .errors import TranslationError
from .glossary import apply_glossary
from .history import HistoryStack
from .models import Direction, Glossaries, Lang, PaneState
from .providers import ProviderClient, build_provider_client

logger = logging.getLogger(__name__)


class TranslationOrchestrator:
    """Runs one translate/swap/clear/undo action against caller-owned pane state.

    Nothing here caches panes, glossaries or provider settings between calls:
    each call works on what it is handed. `busy` is a single flag shared by both
    directions; rejecting a second manual translate while busy is up to the caller.
    """

    def __init__(
        self,
        history: HistoryStack | None = None,
        *,
        client_factory: Callable[[ProviderConfig], ProviderClient] = build_provider_client,
    ) -> None:
        self.history = history if history is not None else HistoryStack()
        self._client_factory = client_factory
        self.busy = False
        self.last_error: str | None = None

    def _save_point(self, panes: PaneState) -> None:
        self.history.push(panes.snapshot())

    async def translate(
        self,
        direction: Direction,
        panes: PaneState,
        glossaries: Glossaries,
        config: ProviderConfig,
    ) -> PaneState:
        text = panes.text(direction.source)
        if not text.strip():
            return panes

        self._save_point(panes)
        self.busy = True
        self.last_error = None
        try:
            client = self._client_factory(config)
            logger.debug(f"Translating {direction.value} via {client.name} ({len(text)} chars)")
            translated = await client.translate(text, direction.source.value, direction.target.value, config)
        except TranslationError as e:
            self.last_error = str(e)
            logger.warning(f"Translation {direction.value} failed: {e}")
            raise
        finally:
            self.busy = False

        # Any earlier in-flight call for the same pane may land after this one; last write wins.
        panes.set_text(direction.target, apply_glossary(translated, glossaries.for_direction(direction), direction))
        return panes

    def swap(self, panes: PaneState) -> PaneState:
        self._save_point(panes)
        panes.ja, panes.en = panes.en, panes.ja
        return panes

    def clear(self, panes: PaneState, lang: Lang) -> PaneState:
        self._save_point(panes)
        panes.set_text(lang, "")
        return panes

    def undo(self, panes: PaneState) -> bool:
        snapshot = self.history.pop()
        if snapshot is None:
            return False
        panes.restore(snapshot)
        return True
