from __future__ import annotations

import json
import logging
import re
from typing import Pattern

from .models import Direction, GlossaryMap

logger = logging.getLogger(__name__)

GlossaryReplacement = tuple[Pattern[str], str]


def _compile_term_pattern(source_term: str, direction: Direction) -> Pattern[str]:
    escaped = re.escape(source_term)
    if direction is Direction.EN_JA:
        # English terms: whole words only, any case ("cat" must not hit "category").
        return re.compile(rf"\b{escaped}\b", flags=re.IGNORECASE)
    # Japanese has no reliable word boundary; match the literal text.
    return re.compile(escaped)


def build_glossary_replacements(
    glossary: GlossaryMap | None, direction: Direction
) -> tuple[GlossaryReplacement, ...]:
    if not glossary:
        return ()
    replacements: list[GlossaryReplacement] = []
    for source_term, target_term in glossary.items():
        if not source_term:
            continue
        replacements.append((_compile_term_pattern(source_term, direction), str(target_term)))
    return tuple(replacements)


def apply_glossary_replacements(text: str, replacements: tuple[GlossaryReplacement, ...]) -> str:
    """Apply rules in order; each rule sees the output of the previous one."""
    out = text
    for pattern, replacement in replacements:
        # Replacement text is literal: no \1 or \g<0> expansion.
        out = pattern.sub(lambda _m, repl=replacement: repl, out)
    return out


def apply_glossary(text: str, glossary: GlossaryMap | None, direction: Direction) -> str:
    if not glossary:
        return text
    out = apply_glossary_replacements(text, build_glossary_replacements(glossary, direction))
    if out != text:
        logger.debug(f"Glossary {direction.value} rewrote output ({len(text)} -> {len(out)} chars)")
    return out


def parse_glossary_pairs(glossary_text: str | None) -> list[tuple[str, str]]:
    """Parse `term — replacement` lines, keeping file order (order is rule order)."""
    if not glossary_text:
        return []

    pairs: list[tuple[str, str]] = []
    for raw_line in glossary_text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        # Accept lines like: "cat — 猫", "猫 - cat"
        m = re.match(r"^(.+?)\s+[—–-]\s+(.+)$", line)
        if not m:
            continue
        source_term = m.group(1).strip()
        target_term = m.group(2).strip()
        source_term = re.sub(r"^\d+[.)]\s*", "", source_term)
        source_term = source_term.lstrip("•* ").strip()
        if not source_term or not target_term:
            continue
        pairs.append((source_term, target_term))
    return pairs


def add_term(glossary: GlossaryMap, term: str, replacement: str) -> GlossaryMap:
    if not term:
        raise ValueError("Glossary term must not be empty")
    updated = dict(glossary)
    updated[term] = replacement
    return updated


def remove_term(glossary: GlossaryMap, term: str) -> GlossaryMap:
    return {k: v for k, v in glossary.items() if k != term}


def dumps_glossary(glossary: GlossaryMap) -> str:
    return json.dumps(glossary, ensure_ascii=False)


def loads_glossary(raw: str | None) -> GlossaryMap:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"Stored glossary is not valid JSON, ignoring it: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning("Stored glossary is not a JSON object, ignoring it")
        return {}
    return {str(k): str(v) for k, v in data.items()}
