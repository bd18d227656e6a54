"""autotheme: keep a terminal UI's theme in step with the terminal background.

Main entry point.  ``autotheme watch`` shows a live panel painted with the
active theme while the background watcher runs.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

from autotheme.colors import classify_background, luminance
from autotheme.config import LoadedSettings, RuntimeConfig, SettingScope, load_settings
from autotheme.terminal import TtyTerminal, detect_terminal_background
from autotheme.themes import ThemeRegistry
from autotheme.watcher import BackgroundWatcher, WatcherConfig, asyncio_interval

logger = logging.getLogger(__name__)

SETTINGS_CHECK_INTERVAL = 2.0


def setup_logging(debug: bool = False) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def register_custom_themes(registry: ThemeRegistry, custom_themes: dict) -> None:
    """Add ``ui.customThemes`` entries to the registry, skipping bad ones."""
    for name, entry in custom_themes.items():
        if not isinstance(entry, dict):
            logger.warning("Custom theme %r is not a mapping, skipped", name)
            continue
        colors = {k: v for k, v in entry.items() if k != "dark"}
        try:
            registry.add_custom_theme(str(name), colors, dark=bool(entry.get("dark", True)))
        except ValueError as exc:
            logger.warning("Custom theme %r skipped: %s", name, exc)


class AutoThemeApp:
    """Owns the watcher and restarts it whenever its settings change."""

    def __init__(
        self,
        settings: LoadedSettings,
        runtime_config: RuntimeConfig,
        terminal: TtyTerminal,
        registry: ThemeRegistry | None = None,
        console: Console | None = None,
        set_interval=asyncio_interval,
    ) -> None:
        self.settings = settings
        self.runtime_config = runtime_config
        self.terminal = terminal
        self.registry = registry or ThemeRegistry()
        self.console = console or Console()
        self.watcher = BackgroundWatcher(
            runtime_config,
            self.registry,
            terminal,
            self.handle_theme_select,
            self.refresh_static,
            set_interval=set_interval,
        )
        self._handle = None
        self._watcher_config: WatcherConfig | None = None
        self._live: Live | None = None
        self._settings_mtimes = self._current_mtimes()

        background = runtime_config.get_terminal_background()
        if background is not None:
            self.registry.set_terminal_background(background)
        register_custom_themes(self.registry, settings.merged.custom_themes)

    def render(self) -> Panel:
        """Build the status panel in the active theme's colors."""
        ui = self.settings.merged
        colors = self.registry.build_theme_colors(ui.theme)
        background = self.registry.terminal_background

        body = Text()
        body.append("theme       ", style="bold")
        body.append(f"{ui.theme}\n", style=colors["accent"])
        body.append("background  ", style="bold")
        if background is None:
            body.append("unknown\n")
        else:
            body.append(
                f"{background.hex} ({classify_background(background)}, "
                f"luminance {luminance(background):.3f})\n"
            )
        body.append("switching   ", style="bold")
        if not ui.auto_theme_switching:
            body.append("off")
        elif self._handle is None:
            body.append("inactive (no background detected)")
        else:
            body.append(f"every {ui.terminal_background_polling_interval:g}s")

        return Panel(
            body,
            title="autotheme",
            style=f"{colors['text-color']} on {colors['bg-color']}",
            border_style=colors["primary"],
        )

    def refresh_static(self) -> None:
        if self._live is not None:
            self._live.update(self.render(), refresh=True)

    def handle_theme_select(self, theme_name: str, scope: SettingScope) -> None:
        """Make *theme_name* the active theme, stored at *scope*."""
        self.settings.set_value(scope, "theme", theme_name)
        self._settings_mtimes = self._current_mtimes()
        self.apply_settings()

    def apply_settings(self) -> None:
        """Re-evaluate the watcher against the merged settings and repaint."""
        config = WatcherConfig.from_settings(self.settings.merged)
        if config != self._watcher_config:
            self._watcher_config = config
            self._handle = self.watcher.restart(self._handle, config)
        self.refresh_static()

    def _current_mtimes(self) -> tuple[float | None, ...]:
        mtimes = []
        for path in self.settings.paths.values():
            try:
                mtimes.append(path.stat().st_mtime)
            except OSError:
                mtimes.append(None)
        return tuple(mtimes)

    def check_settings_files(self) -> None:
        """Pick up edits made to the settings files while running."""
        mtimes = self._current_mtimes()
        if mtimes == self._settings_mtimes:
            return
        self._settings_mtimes = mtimes
        self.settings.reload()
        self.registry.clear_custom_themes()
        register_custom_themes(self.registry, self.settings.merged.custom_themes)
        logger.debug("settings files changed, reloaded")
        self.apply_settings()

    def shutdown(self) -> None:
        self.watcher.stop(self._handle)
        self._handle = None
        self._watcher_config = None

    async def run(self) -> None:
        """Show the panel and watch until cancelled."""
        settings_timer = asyncio_interval(SETTINGS_CHECK_INTERVAL, self.check_settings_files)
        with Live(self.render(), console=self.console, auto_refresh=False) as live:
            self._live = live
            try:
                self.apply_settings()
                await asyncio.Event().wait()
            finally:
                settings_timer.stop()
                self.shutdown()
                self._live = None


def print_help() -> None:
    print("autotheme: follow the terminal background with a light or dark theme")
    print()
    print("Usage: autotheme [command] [--debug]")
    print()
    print("Commands:")
    print("  (no args)     Same as watch")
    print("  watch         Live panel; switches theme as the background changes")
    print("  detect        Print dark, light or unknown for the current terminal")
    print("  themes        List available themes")
    print("  --help        This message")
    print("  --version     Show version")


def cmd_detect() -> int:
    color = detect_terminal_background()
    if color is None:
        logger.debug("unable to determine background color")
        sys.stdout.write("unknown\n")
        return 2
    logger.debug("background=%s luminance=%.3f", color.hex, luminance(color))
    sys.stdout.write(classify_background(color) + "\n")
    return 0


def cmd_themes(settings: LoadedSettings) -> int:
    registry = ThemeRegistry()
    register_custom_themes(registry, settings.merged.custom_themes)
    console = Console()
    for theme in registry.get_available_themes():
        marker = "*" if theme.name == settings.merged.theme else " "
        kind = "dark" if theme.dark else "light"
        swatch = Text("  ", style=f"on {theme.colors['bg-color']}")
        console.print(Text(f"{marker} "), swatch, Text(f" {theme.name} ({kind})"))
    return 0


def cmd_watch(settings: LoadedSettings) -> int:
    background = detect_terminal_background()
    logger.debug("startup background %s", background)
    runtime_config = RuntimeConfig(background)
    if background is not None:
        # Startup detection counts as the last applied background.
        runtime_config.set_terminal_background(background)
    app = AutoThemeApp(settings, runtime_config, TtyTerminal())
    try:
        asyncio.run(app.run())
    except KeyboardInterrupt:
        pass
    return 0


def main() -> None:
    """CLI entry point."""
    args = sys.argv[1:]
    debug = "--debug" in args or bool(os.environ.get("AUTOTHEME_DEBUG"))
    args = [a for a in args if a != "--debug"]
    setup_logging(debug)

    target = args[0] if args else "watch"

    if target == "--help":
        print_help()
        return

    if target == "--version":
        from autotheme import __version__
        print(f"autotheme {__version__}")
        return

    if target == "detect":
        sys.exit(cmd_detect())

    settings = load_settings()
    if target == "themes":
        sys.exit(cmd_themes(settings))
    if target == "watch":
        sys.exit(cmd_watch(settings))

    print(f"Unknown command: {target}")
    print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
