from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Lang(str, Enum):
    JA = "JA"
    EN = "EN"

    @property
    def other(self) -> Lang:
        return Lang.EN if self is Lang.JA else Lang.JA

    @classmethod
    def parse(cls, value: str) -> Lang:
        raw = str(value).strip().upper()
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"Unknown pane/language: {value!r}. Allowed: ja, en") from None


class Direction(str, Enum):
    JA_EN = "JA>EN"
    EN_JA = "EN>JA"

    @property
    def source(self) -> Lang:
        return Lang.JA if self is Direction.JA_EN else Lang.EN

    @property
    def target(self) -> Lang:
        return self.source.other

    @classmethod
    def from_source(cls, lang: Lang) -> Direction:
        return cls.JA_EN if lang is Lang.JA else cls.EN_JA

    @classmethod
    def parse(cls, value: str) -> Direction:
        # Accept CLI spellings (ja-en) as well as the canonical JA>EN form.
        raw = str(value).strip().upper().replace("-", ">").replace("_", ">")
        try:
            return cls(raw)
        except ValueError:
            raise ValueError(f"Unknown direction: {value!r}. Allowed: ja-en, en-ja") from None


GlossaryMap = dict[str, str]


@dataclass
class Glossaries:
    """The two user glossaries, one per direction. Dict order is rule order."""

    ja_en: GlossaryMap = field(default_factory=dict)
    en_ja: GlossaryMap = field(default_factory=dict)

    def for_direction(self, direction: Direction) -> GlossaryMap:
        return self.ja_en if direction is Direction.JA_EN else self.en_ja


@dataclass(frozen=True)
class HistorySnapshot:
    ja: str
    en: str


@dataclass
class PaneState:
    """Text of the two editor panes.

    Owned by the caller (UI layer); the core only mutates the instance it is handed.
    """

    ja: str = ""
    en: str = ""

    def text(self, lang: Lang) -> str:
        return self.ja if lang is Lang.JA else self.en

    def set_text(self, lang: Lang, value: str) -> None:
        if lang is Lang.JA:
            self.ja = value
        else:
            self.en = value

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(ja=self.ja, en=self.en)

    def restore(self, snapshot: HistorySnapshot) -> None:
        self.ja = snapshot.ja
        self.en = snapshot.en
