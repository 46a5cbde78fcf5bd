from __future__ import annotations

import asyncio

from jaen.errors import ProviderError
from jaen.models import Direction, Lang
from jaen.scheduler import AutoTranslateScheduler, DebounceTimer, detect_lang


def test_detect_lang_uses_kana_and_cjk_ranges():
    assert detect_lang("こんにちは") is Lang.JA
    assert detect_lang("カタカナ") is Lang.JA
    assert detect_lang("漢字 and English") is Lang.JA
    assert detect_lang("Hello, world!") is Lang.EN
    assert detect_lang("") is Lang.EN


def test_debounce_fires_once_for_last_change():
    panes = {Lang.JA: ""}
    fired: list[tuple[Direction, str]] = []

    async def translate(direction: Direction) -> None:
        fired.append((direction, panes[Lang.JA]))

    async def scenario() -> None:
        scheduler = AutoTranslateScheduler(translate, delay_s=0.2, live=True)
        for text in ("こん", "こんにち", "こんにちは"):
            panes[Lang.JA] = text
            assert scheduler.on_change(Lang.JA, text)
            await asyncio.sleep(0.01)
        assert scheduler.pending(Direction.JA_EN)
        await scheduler.drain()

    asyncio.run(scenario())
    assert fired == [(Direction.JA_EN, "こんにちは")]


def test_changes_after_quiet_period_fire_again():
    fired: list[Direction] = []

    async def translate(direction: Direction) -> None:
        fired.append(direction)

    async def scenario() -> None:
        scheduler = AutoTranslateScheduler(translate, delay_s=0.02, live=True)
        scheduler.on_change(Lang.EN, "Hello")
        await scheduler.drain()
        scheduler.on_change(Lang.EN, "Hello there")
        await scheduler.drain()

    asyncio.run(scenario())
    assert fired == [Direction.EN_JA, Direction.EN_JA]


def test_language_gate_blocks_mismatched_panes():
    fired: list[Direction] = []

    async def translate(direction: Direction) -> None:
        fired.append(direction)

    async def scenario() -> None:
        scheduler = AutoTranslateScheduler(translate, delay_s=0.01, live=True)
        # JA pane that holds English (e.g. just overwritten by a result) does not schedule.
        assert not scheduler.on_change(Lang.JA, "Hello")
        assert not scheduler.on_change(Lang.EN, "猫です")
        await scheduler.drain()

    asyncio.run(scenario())
    assert fired == []


def test_live_off_never_schedules_and_turning_off_cancels_pending():
    fired: list[Direction] = []

    async def translate(direction: Direction) -> None:
        fired.append(direction)

    async def scenario() -> None:
        scheduler = AutoTranslateScheduler(translate, delay_s=0.02)
        assert not scheduler.on_change(Lang.JA, "こんにちは")

        scheduler.live = True
        assert scheduler.on_change(Lang.JA, "こんにちは")
        scheduler.live = False
        assert not scheduler.pending(Direction.JA_EN)
        await asyncio.sleep(0.05)
        await scheduler.drain()

    asyncio.run(scenario())
    assert fired == []


def test_directions_are_debounced_independently():
    fired: list[Direction] = []

    async def translate(direction: Direction) -> None:
        fired.append(direction)

    async def scenario() -> None:
        scheduler = AutoTranslateScheduler(translate, delay_s=0.03, live=True)
        scheduler.on_change(Lang.JA, "猫")
        scheduler.on_change(Lang.EN, "cat")
        assert scheduler.pending(Direction.JA_EN)
        assert scheduler.pending(Direction.EN_JA)
        # Resetting one direction leaves the other timer alone.
        scheduler.on_change(Lang.EN, "cats")
        await scheduler.drain()

    asyncio.run(scenario())
    assert sorted(fired, key=lambda d: d.value) == [Direction.EN_JA, Direction.JA_EN]


def test_new_change_does_not_cancel_inflight_translation():
    started = []
    finished = []
    first_started = None

    async def translate(direction: Direction) -> None:
        started.append(direction)
        first_started.set()
        await asyncio.sleep(0.05)
        finished.append(direction)

    async def scenario() -> None:
        nonlocal first_started
        first_started = asyncio.Event()
        scheduler = AutoTranslateScheduler(translate, delay_s=0.01, live=True)
        scheduler.on_change(Lang.EN, "first")
        await first_started.wait()
        scheduler.on_change(Lang.EN, "second")
        await scheduler.drain()

    asyncio.run(scenario())
    assert started == [Direction.EN_JA, Direction.EN_JA]
    assert finished == [Direction.EN_JA, Direction.EN_JA]


def test_failed_auto_translation_is_logged_not_raised(caplog):
    async def translate(direction: Direction) -> None:
        raise ProviderError("DeepL", status=500)

    async def scenario() -> None:
        scheduler = AutoTranslateScheduler(translate, delay_s=0.01, live=True)
        scheduler.on_change(Lang.EN, "Hello")
        await scheduler.drain()

    asyncio.run(scenario())
    assert "DeepL error 500" in caplog.text


def test_debounce_timer_cancel():
    fired = []

    async def scenario() -> None:
        timer = DebounceTimer(0.01, lambda: fired.append(1))
        timer.reset()
        assert timer.pending
        timer.cancel()
        assert not timer.pending
        await asyncio.sleep(0.03)

    asyncio.run(scenario())
    assert fired == []
