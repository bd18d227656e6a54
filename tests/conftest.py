"""Fakes for the watcher's collaborators."""

from __future__ import annotations

import pytest

from autotheme.colors import RGBColor
from autotheme.terminal import BackgroundReplyChannel
from autotheme.themes import ThemeRegistry


class FakeTimer:
    def __init__(self, interval, callback):
        self.interval = interval
        self.callback = callback
        self.stopped = False

    def stop(self):
        self.stopped = True


class FakeScheduler:
    """Stands in for ``set_interval``; ticks only when told to."""

    def __init__(self):
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, callback):
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    def tick(self, times: int = 1) -> None:
        for _ in range(times):
            for timer in list(self.timers):
                if not timer.stopped:
                    timer.callback()


class FakeTerminal:
    """Records queries; replies are pushed with ``reply``."""

    def __init__(self):
        self.channel = BackgroundReplyChannel()
        self.queries = 0
        self.subscribe_calls = 0

    def query_terminal_background(self):
        self.queries += 1

    def subscribe(self, listener):
        self.subscribe_calls += 1
        self.channel.subscribe(listener)

    def unsubscribe(self, listener):
        self.channel.unsubscribe(listener)

    def reply(self, text: str) -> None:
        self.channel.publish(text)


class FakeRuntimeConfig:
    def __init__(self, background: RGBColor | None):
        self.background = background
        self.saved: list[RGBColor] = []

    def get_terminal_background(self):
        return self.background

    def set_terminal_background(self, color):
        self.background = color
        self.saved.append(color)


class RecordingRegistry(ThemeRegistry):
    def __init__(self):
        super().__init__()
        self.backgrounds: list[RGBColor] = []

    def set_terminal_background(self, color):
        self.backgrounds.append(color)
        super().set_terminal_background(color)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep settings and state writes inside the test's tmp dir."""
    home = tmp_path / "home"
    monkeypatch.setenv("AUTOTHEME_HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def terminal():
    return FakeTerminal()


@pytest.fixture()
def registry():
    return RecordingRegistry()
