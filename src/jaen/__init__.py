"""jaen - JA<->EN quick translator core: providers, glossaries, live translation, undo."""

from .glossary import apply_glossary
from .history import HistoryStack
from .models import Direction, Glossaries, HistorySnapshot, Lang, PaneState
from .orchestrator import TranslationOrchestrator
from .scheduler import AutoTranslateScheduler, detect_lang

__all__ = [
    "AutoTranslateScheduler",
    "Direction",
    "Glossaries",
    "HistorySnapshot",
    "HistoryStack",
    "Lang",
    "PaneState",
    "TranslationOrchestrator",
    "apply_glossary",
    "detect_lang",
]
