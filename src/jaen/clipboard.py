from __future__ import annotations

import logging
from typing import Protocol

from .models import Lang, PaneState

logger = logging.getLogger(__name__)


class Clipboard(Protocol):
    def write_text(self, text: str) -> None: ...


def copy_pane(panes: PaneState, lang: Lang, clipboard: Clipboard) -> bool:
    text = panes.text(lang)
    if not text:
        return False
    try:
        clipboard.write_text(text)
    except Exception as e:
        # The text is still on screen; a failed copy is not worth interrupting the user.
        logger.debug(f"Clipboard write failed: {e}")
        return False
    return True
