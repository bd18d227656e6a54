"""Settings loading, scopes and runtime state for autotheme.

Settings live in YAML files at two scopes (user and workspace) plus an
in-memory session layer.  Runtime state such as the last applied terminal
background is kept in ``state.json`` next to the user settings.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import yaml

from autotheme.colors import RGBColor
from autotheme.themes import DEFAULT_THEME_NAME

logger = logging.getLogger(__name__)

MIN_POLL_INTERVAL = 1

# YAML key under ``ui:`` -> UISettings attribute
UI_KEYS = {
    "autoThemeSwitching": "auto_theme_switching",
    "theme": "theme",
    "terminalBackgroundPollingInterval": "terminal_background_polling_interval",
    "preferredLightTheme": "preferred_light_theme",
    "preferredDarkTheme": "preferred_dark_theme",
    "customThemes": "custom_themes",
}


class SettingScope(str, Enum):
    """Where a settings change is written."""

    USER = "user"
    WORKSPACE = "workspace"
    SESSION = "session"


@dataclass
class UISettings:
    """The ``ui`` settings section."""

    auto_theme_switching: bool = True
    theme: str = DEFAULT_THEME_NAME
    terminal_background_polling_interval: float = 60
    preferred_light_theme: str = ""
    preferred_dark_theme: str = ""
    custom_themes: dict = field(default_factory=dict)

    def apply(self, ui: dict) -> None:
        """Overlay a raw ``ui`` mapping, ignoring values of the wrong shape."""
        if isinstance(ui.get("autoThemeSwitching"), bool):
            self.auto_theme_switching = ui["autoThemeSwitching"]
        for key in ("theme", "preferredLightTheme", "preferredDarkTheme"):
            value = ui.get(key)
            if isinstance(value, str):
                setattr(self, UI_KEYS[key], value.strip())
        interval = ui.get("terminalBackgroundPollingInterval")
        if isinstance(interval, (int, float)) and not isinstance(interval, bool):
            self.terminal_background_polling_interval = max(MIN_POLL_INTERVAL, interval)
        if isinstance(ui.get("customThemes"), dict):
            self.custom_themes.update(ui["customThemes"])


def autotheme_home() -> Path:
    """Return the autotheme home directory."""
    env = os.environ.get("AUTOTHEME_HOME")
    if env:
        return Path(env)
    return Path.home() / ".autotheme"


def user_settings_path() -> Path:
    return autotheme_home() / "settings.yaml"


def workspace_settings_path() -> Path:
    return Path.cwd() / ".autotheme" / "settings.yaml"


def state_path() -> Path:
    """Return the path to the state.json file."""
    return autotheme_home() / "state.json"


def _read_yaml(path: Path) -> dict:
    """Load a settings file, treating anything unreadable as empty."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


class LoadedSettings:
    """Settings from every scope, merged session > workspace > user > defaults."""

    def __init__(
        self,
        user_path: Path | None = None,
        workspace_path: Path | None = None,
    ) -> None:
        self.paths = {
            SettingScope.USER: user_path or user_settings_path(),
            SettingScope.WORKSPACE: workspace_path or workspace_settings_path(),
        }
        self.scopes: dict[SettingScope, dict] = {
            SettingScope.USER: _read_yaml(self.paths[SettingScope.USER]),
            SettingScope.WORKSPACE: _read_yaml(self.paths[SettingScope.WORKSPACE]),
            SettingScope.SESSION: {},
        }
        self.merged = self._merge()

    def _merge(self) -> UISettings:
        merged = UISettings()
        for scope in (SettingScope.USER, SettingScope.WORKSPACE, SettingScope.SESSION):
            ui = self.scopes[scope].get("ui")
            if isinstance(ui, dict):
                merged.apply(ui)
        return merged

    def reload(self) -> None:
        """Re-read both settings files; the session layer is kept."""
        for scope in (SettingScope.USER, SettingScope.WORKSPACE):
            self.scopes[scope] = _read_yaml(self.paths[scope])
        self.merged = self._merge()

    def set_value(self, scope: SettingScope, key: str, value) -> None:
        """Set ``ui.<key>`` at *scope* and persist it unless it is the session scope."""
        if key not in UI_KEYS:
            raise KeyError(f"unknown setting 'ui.{key}'")
        data = self.scopes[scope]
        ui = data.get("ui")
        if not isinstance(ui, dict):
            ui = data["ui"] = {}
        ui[key] = value
        if scope is not SettingScope.SESSION:
            path = self.paths[scope]
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        self.merged = self._merge()


def load_settings() -> LoadedSettings:
    """Load user and workspace settings from their default locations."""
    return LoadedSettings()


def load_state() -> dict:
    """Load persisted app state (last background, etc.)."""
    sp = state_path()
    if sp.exists():
        try:
            state = json.loads(sp.read_text())
        except (OSError, ValueError):
            return {}
        return state if isinstance(state, dict) else {}
    return {}


def save_state(state: dict) -> None:
    """Save app state to disk."""
    sp = state_path()
    sp.parent.mkdir(parents=True, exist_ok=True)
    sp.write_text(json.dumps(state, indent=2))


class RuntimeConfig:
    """Holds the terminal background detected at startup and every later sample."""

    def __init__(self, terminal_background: RGBColor | None = None, persist: bool = True) -> None:
        self._terminal_background = terminal_background
        self._persist = persist

    def get_terminal_background(self) -> RGBColor | None:
        return self._terminal_background

    def set_terminal_background(self, color: RGBColor) -> None:
        self._terminal_background = color
        if not self._persist:
            return
        state = load_state()
        state["terminal_background"] = color.hex
        try:
            save_state(state)
        except OSError as exc:
            logger.warning("Could not record terminal background in %s: %s", state_path(), exc)
