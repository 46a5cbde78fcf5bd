from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TextIO

from .config import AppConfig, ProviderConfig, load_config
from .errors import TranslationError
from .glossary import add_term, parse_glossary_pairs, remove_term
from .history import HistoryStack
from .logging_utils import setup_logging
from .models import Direction, Lang
from .orchestrator import TranslationOrchestrator
from .scheduler import AutoTranslateScheduler
from .settings_store import (
    KEY_API_KEY,
    KEY_ENDPOINT,
    KEY_PROVIDER,
    AppState,
    SettingsStore,
    SqliteSettingsStore,
    load_state,
    save_glossaries,
    save_panes,
)

logger = logging.getLogger(__name__)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", "-c", default=None, help="Path to YAML config (provider, debounce, paths).")
    p.add_argument("--settings", default=None, help="Override settings sqlite path.")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="jaen", description="JA<->EN quick translator.")
    sub = p.add_subparsers(dest="cmd", required=True)

    t = sub.add_parser("translate", help="Translate one pane into the other.")
    t.add_argument("--direction", "-d", required=True, help="ja-en or en-ja")
    t.add_argument("--text", "-t", default=None, help="Replace the source pane with this text first.")
    _add_common(t)

    s = sub.add_parser("show", help="Print both panes.")
    _add_common(s)

    w = sub.add_parser("swap", help="Swap the JA and EN panes.")
    _add_common(w)

    c = sub.add_parser("clear", help="Clear one pane.")
    c.add_argument("--pane", required=True, choices=["ja", "en"])
    _add_common(c)

    pr = sub.add_parser("provider", help="Show or store provider settings.")
    pr.add_argument("--kind", choices=["deepl", "google", "custom"], default=None)
    pr.add_argument("--endpoint", default=None, help="Proxy URL, or base URL override for deepl/google.")
    pr.add_argument("--api-key", default=None, help="API key for deepl/google.")
    _add_common(pr)

    g = sub.add_parser("glossary", help="Edit the per-direction glossaries.")
    g.add_argument("action", choices=["list", "add", "remove", "import"])
    g.add_argument("--direction", "-d", required=True, help="ja-en or en-ja")
    g.add_argument("--term", default=None, help="Source term (add/remove).")
    g.add_argument("--replacement", default=None, help="Replacement text (add).")
    g.add_argument("--file", default=None, help="Text file with 'term — replacement' lines (import).")
    _add_common(g)

    lv = sub.add_parser("live", help="Read pane edits from stdin and auto-translate them.")
    lv.add_argument("--pane", required=True, choices=["ja", "en"])
    _add_common(lv)
    return p


def _provider_config(cfg: AppConfig, state: AppState, *, from_file: bool) -> ProviderConfig:
    # A config file wins; otherwise use what the user stored with `jaen provider`.
    if from_file:
        return cfg.provider
    return state.provider_config(timeout_s=cfg.provider.timeout_s)


def _cmd_translate(args: argparse.Namespace, cfg: AppConfig, store: SettingsStore, provider_cfg: ProviderConfig) -> int:
    direction = Direction.parse(args.direction)
    state = load_state(store)
    if args.text is not None:
        state.panes.set_text(direction.source, args.text)

    orchestrator = TranslationOrchestrator(HistoryStack(cfg.history_limit))
    try:
        asyncio.run(orchestrator.translate(direction, state.panes, state.glossaries, provider_cfg))
    except TranslationError as e:
        save_panes(store, state.panes)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    save_panes(store, state.panes)
    if not state.panes.text(direction.source).strip():
        logger.info(f"{direction.source.value} pane is empty, nothing to translate")
        return 0
    print(state.panes.text(direction.target))
    return 0


def _cmd_glossary(args: argparse.Namespace, store: SettingsStore) -> int:
    direction = Direction.parse(args.direction)
    state = load_state(store)
    glossary = state.glossaries.for_direction(direction)

    if args.action == "list":
        if not glossary:
            print("(empty)")
        for term, replacement in glossary.items():
            print(f"{term} → {replacement}")
        return 0

    if args.action == "add":
        if not args.term or args.replacement is None:
            print("glossary add needs --term and --replacement", file=sys.stderr)
            return 2
        glossary = add_term(glossary, args.term, args.replacement)
    elif args.action == "remove":
        if not args.term:
            print("glossary remove needs --term", file=sys.stderr)
            return 2
        glossary = remove_term(glossary, args.term)
    elif args.action == "import":
        if not args.file:
            print("glossary import needs --file", file=sys.stderr)
            return 2
        pairs = parse_glossary_pairs(Path(args.file).read_text(encoding="utf-8-sig"))
        for term, replacement in pairs:
            glossary = add_term(glossary, term, replacement)
        logger.info(f"Imported {len(pairs)} glossary entries into {direction.value}")

    if direction is Direction.JA_EN:
        state.glossaries.ja_en = glossary
    else:
        state.glossaries.en_ja = glossary
    save_glossaries(store, state.glossaries)
    return 0


async def _run_live(
    pane: Lang,
    cfg: AppConfig,
    store: SettingsStore,
    provider_cfg: ProviderConfig,
    stream: TextIO,
) -> None:
    state = load_state(store)
    orchestrator = TranslationOrchestrator(HistoryStack(cfg.history_limit))

    async def _translate(direction: Direction) -> None:
        await orchestrator.translate(direction, state.panes, state.glossaries, provider_cfg)
        save_panes(store, state.panes)
        print(state.panes.text(direction.target), flush=True)

    scheduler = AutoTranslateScheduler(_translate, delay_s=cfg.live.debounce_ms / 1000.0, live=True)
    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, stream.readline)
            if not line:
                break
            text = line.rstrip("\r\n")
            state.panes.set_text(pane, text)
            save_panes(store, state.panes)
            if not scheduler.on_change(pane, text):
                logger.debug(f"Skipped auto-translate for {pane.value} pane edit")
        await scheduler.drain()
    finally:
        scheduler.close()


def main(argv: list[str] | None = None, *, stdin: TextIO | None = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_config(args.config) if args.config else AppConfig()
    setup_logging(
        Path(cfg.log_path) if cfg.log_path else None,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    settings_path = Path(args.settings or cfg.settings_path)

    with SqliteSettingsStore(settings_path) as store:
        state = load_state(store)
        provider_cfg = _provider_config(cfg, state, from_file=args.config is not None)

        if args.cmd == "translate":
            return _cmd_translate(args, cfg, store, provider_cfg)

        if args.cmd == "show":
            print(f"[JA]\n{state.panes.ja}\n\n[EN]\n{state.panes.en}")
            return 0

        if args.cmd in ("swap", "clear"):
            # History does not outlive the process, so there is nothing to undo later.
            orchestrator = TranslationOrchestrator(HistoryStack(cfg.history_limit))
            if args.cmd == "swap":
                orchestrator.swap(state.panes)
            else:
                orchestrator.clear(state.panes, Lang.parse(args.pane))
            save_panes(store, state.panes)
            return 0

        if args.cmd == "provider":
            if args.kind is not None:
                store.set(KEY_PROVIDER, args.kind)
            if args.endpoint is not None:
                store.set(KEY_ENDPOINT, args.endpoint)
            if args.api_key is not None:
                store.set(KEY_API_KEY, args.api_key)
            current = load_state(store)
            print(f"provider: {current.provider}")
            print(f"endpoint: {current.endpoint or '(default)'}")
            print(f"api_key:  {'(set)' if current.api_key else '(not set)'}")
            return 0

        if args.cmd == "glossary":
            return _cmd_glossary(args, store)

        if args.cmd == "live":
            asyncio.run(_run_live(Lang.parse(args.pane), cfg, store, provider_cfg, stdin or sys.stdin))
            return 0

    print(f"Unknown command: {args.cmd}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
