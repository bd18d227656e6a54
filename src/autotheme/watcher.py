"""The background watcher loop.

While active, a repeating timer asks the terminal for its background color
and a channel listener reacts to whatever replies arrive.  A new reply that
differs from the last one is recorded, then the theme either follows the
background or, when it stays the same, the UI is asked to repaint.

The owning UI calls :meth:`BackgroundWatcher.start` with a fresh
:class:`WatcherConfig` and :meth:`BackgroundWatcher.stop` whenever any of
those settings change, or on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from autotheme.colors import RGBColor, luminance, parse_color_reply
from autotheme.config import SettingScope, UISettings
from autotheme.policy import is_switchable_theme, should_switch_theme

logger = logging.getLogger(__name__)


class Timer(Protocol):
    def stop(self) -> Any: ...


class Terminal(Protocol):
    def query_terminal_background(self) -> None: ...

    def subscribe(self, listener: Callable[[str], None]) -> None: ...

    def unsubscribe(self, listener: Callable[[str], None]) -> None: ...


SetInterval = Callable[[float, Callable[[], None]], Timer]
ThemeSelectHandler = Callable[[str, SettingScope], Any]


class IntervalTimer:
    """Repeating asyncio timer, first call after one full *interval*."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self._callback = callback
        self._loop = asyncio.get_running_loop()
        self._handle: asyncio.TimerHandle | None = self._loop.call_later(interval, self._tick)

    def _tick(self) -> None:
        if self._handle is None:
            return
        self._handle = self._loop.call_later(self.interval, self._tick)
        try:
            self._callback()
        except Exception:
            logger.exception("Interval callback %r failed", self._callback)

    @property
    def active(self) -> bool:
        return self._handle is not None

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def asyncio_interval(interval: float, callback: Callable[[], None]) -> IntervalTimer:
    return IntervalTimer(interval, callback)


@dataclass(frozen=True)
class WatcherConfig:
    """Settings the watcher reads, fixed for one activation."""

    auto_theme_switching_enabled: bool
    poll_interval_seconds: float
    preferred_light_theme: str
    preferred_dark_theme: str
    current_theme: str

    @classmethod
    def from_settings(cls, ui: UISettings) -> WatcherConfig:
        return cls(
            auto_theme_switching_enabled=ui.auto_theme_switching,
            poll_interval_seconds=ui.terminal_background_polling_interval,
            preferred_light_theme=ui.preferred_light_theme,
            preferred_dark_theme=ui.preferred_dark_theme,
            current_theme=ui.theme,
        )


class WatcherHandle:
    """One activation of the watcher: its timer, its listener and its state."""

    def __init__(self, config: WatcherConfig) -> None:
        self.config = config
        self.last_known_background: RGBColor | None = None
        self.timer: Timer | None = None
        self.listener: Callable[[str], None] | None = None
        self.active = True


class BackgroundWatcher:
    """Keeps the theme in step with the terminal background.

    Args:
        runtime_config: Source of the startup background and sink for new
            samples (``get_terminal_background`` / ``set_terminal_background``).
        registry: Theme registry (``is_default_theme``,
            ``get_available_themes``, ``set_terminal_background`` and the
            ``default_dark_name`` / ``default_light_name`` attributes).
        terminal: Transport with ``query_terminal_background``,
            ``subscribe`` and ``unsubscribe``.
        handle_theme_select: Called as ``(theme_name, SettingScope.USER)``
            to switch themes.
        refresh_static: Repaints already rendered content.
        set_interval: Timer factory ``(seconds, callback) -> timer``.
    """

    def __init__(
        self,
        runtime_config,
        registry,
        terminal: Terminal,
        handle_theme_select: ThemeSelectHandler,
        refresh_static: Callable[[], None],
        set_interval: SetInterval = asyncio_interval,
    ) -> None:
        self.runtime_config = runtime_config
        self.registry = registry
        self.terminal = terminal
        self.handle_theme_select = handle_theme_select
        self.refresh_static = refresh_static
        self.set_interval = set_interval

    def start(self, config: WatcherConfig) -> WatcherHandle | None:
        """Arm the timer and subscribe for replies.

        Returns:
            The activation handle, or ``None`` when auto switching is off or
            no background was detected at startup.  Nothing is scheduled or
            subscribed in that case.
        """
        if not config.auto_theme_switching_enabled:
            logger.debug("auto theme switching disabled, watcher inert")
            return None
        if self.runtime_config.get_terminal_background() is None:
            logger.debug("no startup terminal background, watcher inert")
            return None

        handle = WatcherHandle(config)
        handle.listener = lambda reply: self._on_reply(handle, reply)
        self.terminal.subscribe(handle.listener)
        handle.timer = self.set_interval(
            config.poll_interval_seconds, lambda: self._on_tick(handle)
        )
        logger.debug(
            "watcher started (theme=%s, every %ss)",
            config.current_theme,
            config.poll_interval_seconds,
        )
        return handle

    def stop(self, handle: WatcherHandle | None) -> None:
        """Cancel the timer and drop the listener.  Safe to call twice."""
        if handle is None or not handle.active:
            return
        handle.active = False
        if handle.timer is not None:
            handle.timer.stop()
        if handle.listener is not None:
            self.terminal.unsubscribe(handle.listener)
        logger.debug("watcher stopped")

    def restart(self, handle: WatcherHandle | None, config: WatcherConfig) -> WatcherHandle | None:
        """Tear down *handle* and start again with *config*."""
        self.stop(handle)
        return self.start(config)

    def _is_switchable(self, config: WatcherConfig) -> bool:
        return self.registry.is_default_theme(config.current_theme) or is_switchable_theme(
            config.current_theme,
            self.registry.default_dark_name,
            self.registry.default_light_name,
            config.preferred_dark_theme,
            config.preferred_light_theme,
        )

    def _on_tick(self, handle: WatcherHandle) -> None:
        if not handle.active or not self._is_switchable(handle.config):
            return
        self.terminal.query_terminal_background()

    def _on_reply(self, handle: WatcherHandle, reply: str) -> None:
        if not handle.active:
            return
        color = parse_color_reply(reply)
        if color is None:
            return
        if color == handle.last_known_background:
            return
        handle.last_known_background = color

        self.runtime_config.set_terminal_background(color)
        self.registry.set_terminal_background(color)

        config = handle.config
        target = None
        if self._is_switchable(config):
            target = should_switch_theme(
                config.current_theme,
                luminance(color),
                self.registry.default_dark_name,
                self.registry.default_light_name,
                config.preferred_dark_theme,
                config.preferred_light_theme,
                {theme.name for theme in self.registry.get_available_themes()},
            )

        if target is not None:
            logger.info("terminal background %s, switching theme to %s", color.hex, target)
            self.handle_theme_select(target, SettingScope.USER)
        else:
            self.refresh_static()
