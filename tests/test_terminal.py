import asyncio
import logging
import time

from autotheme.terminal import (
    OSC11_QUERY,
    BackgroundReplyChannel,
    TtyTerminal,
    extract_background_replies,
)


def test_query_sequence():
    assert OSC11_QUERY == "\x1b]11;?\x07"


def test_extract_bel_and_st_terminated_replies():
    data = "x\x1b]11;rgb:1e1e/1e1e/1e1e\x07y\x1b]11;rgb:ffff/ffff/ffff\x1b\\"
    assert extract_background_replies(data) == ["rgb:1e1e/1e1e/1e1e", "rgb:ffff/ffff/ffff"]


def test_extract_ignores_other_sequences_and_partial_replies():
    assert extract_background_replies("\x1b]10;rgb:0/0/0\x07") == []
    assert extract_background_replies("\x1b]11;rgb:1e1e/1e1e") == []
    assert extract_background_replies("\x1b[?2026;2$y") == []


def test_channel_dispatch_and_unsubscribe():
    channel = BackgroundReplyChannel()
    seen = []
    listener = seen.append
    channel.subscribe(listener)
    channel.subscribe(listener)
    channel.publish("one")
    channel.unsubscribe(listener)
    channel.unsubscribe(listener)
    channel.publish("two")
    assert seen == ["one"]
    assert channel.listener_count == 0


def test_listener_removed_mid_dispatch_is_skipped():
    channel = BackgroundReplyChannel()
    seen = []

    def second(reply):
        seen.append(("second", reply))

    def first(reply):
        seen.append(("first", reply))
        channel.unsubscribe(second)

    channel.subscribe(first)
    channel.subscribe(second)
    channel.publish("r")
    assert seen == [("first", "r")]


def test_failing_listener_does_not_stop_dispatch(caplog):
    channel = BackgroundReplyChannel()
    seen = []

    def broken(reply):
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(seen.append)
    with caplog.at_level(logging.ERROR):
        channel.publish("r")
    assert seen == ["r"]
    assert "failed" in caplog.text


def test_tty_terminal_publishes_reply_on_loop():
    seen = []
    terminal = TtyTerminal(query=lambda: "rgb:ffff/ffff/ffff")
    terminal.subscribe(seen.append)

    async def scenario():
        terminal.query_terminal_background()
        await asyncio.sleep(0.1)

    asyncio.run(scenario())
    assert seen == ["rgb:ffff/ffff/ffff"]


def test_tty_terminal_drops_overlapping_queries():
    calls = []

    def slow_query():
        calls.append(1)
        time.sleep(0.05)
        return None

    terminal = TtyTerminal(query=slow_query)
    seen = []
    terminal.subscribe(seen.append)

    async def scenario():
        terminal.query_terminal_background()
        terminal.query_terminal_background()
        await asyncio.sleep(0.15)

    asyncio.run(scenario())
    assert calls == [1]
    assert seen == []


def test_tty_terminal_swallows_query_errors():
    def failing():
        raise OSError("no tty")

    terminal = TtyTerminal(query=failing)
    seen = []
    terminal.subscribe(seen.append)

    async def scenario():
        terminal.query_terminal_background()
        await asyncio.sleep(0.1)

    asyncio.run(scenario())
    assert seen == []
