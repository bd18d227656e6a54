"""Theme presets and the registry the watcher consults.

Provides the built-in palettes (three dark, two light), custom themes
layered on top of them, and a cached terminal background that the two
default themes paint with instead of their preset background.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from autotheme.colors import RGBColor

DEFAULT_THEME_NAME = "default"
DEFAULT_LIGHT_THEME_NAME = "default-light"

PRESETS: dict[str, dict[str, str]] = {
    "default": {
        "bg-color": "#1a1a2e",
        "accent-color": "#0f3460",
        "header-color": "#282840",
        "text-color": "#e0e0e0",
        "primary": "#0f3460",
        "secondary": "#533483",
        "accent": "#e94560",
        "surface": "#16213e",
    },
    "ocean": {
        "bg-color": "#0a1628",
        "accent-color": "#1a6b8a",
        "header-color": "#0d2137",
        "text-color": "#c8e6f0",
        "primary": "#1a6b8a",
        "secondary": "#2d9cbc",
        "accent": "#4fd1c5",
        "surface": "#0d2137",
    },
    "forest": {
        "bg-color": "#1a2e1a",
        "accent-color": "#2d5a27",
        "header-color": "#1e3a1e",
        "text-color": "#d4e8c8",
        "primary": "#2d5a27",
        "secondary": "#8b6914",
        "accent": "#d4a017",
        "surface": "#1e3a1e",
    },
    "default-light": {
        "bg-color": "#fafafa",
        "accent-color": "#3b5bdb",
        "header-color": "#e9ecef",
        "text-color": "#212529",
        "primary": "#3b5bdb",
        "secondary": "#7048e8",
        "accent": "#d6336c",
        "surface": "#f1f3f5",
    },
    "paper": {
        "bg-color": "#f5f0e6",
        "accent-color": "#8a6d3b",
        "header-color": "#e8dfcc",
        "text-color": "#3b3024",
        "primary": "#8a6d3b",
        "secondary": "#5c7c5a",
        "accent": "#b5523b",
        "surface": "#efe7d6",
    },
}

DARK_PRESETS = frozenset({"default", "ocean", "forest"})


@dataclass
class Theme:
    """A named palette."""

    name: str
    dark: bool
    colors: dict[str, str] = field(default_factory=dict)


class ThemeRegistry:
    """Every theme the UI can show, plus the last known terminal background."""

    default_dark_name = DEFAULT_THEME_NAME
    default_light_name = DEFAULT_LIGHT_THEME_NAME

    def __init__(self) -> None:
        self._themes: dict[str, Theme] = {
            name: Theme(name=name, dark=name in DARK_PRESETS, colors=dict(colors))
            for name, colors in PRESETS.items()
        }
        self._terminal_background: RGBColor | None = None

    def is_default_theme(self, name: str) -> bool:
        """True for the built-in dark and light defaults."""
        return name in (self.default_dark_name, self.default_light_name)

    def get_available_themes(self) -> list[Theme]:
        """Built-in themes in preset order, followed by custom ones."""
        return list(self._themes.values())

    def get_theme(self, name: str) -> Theme | None:
        """Look up a theme by name."""
        return self._themes.get(name)

    def add_custom_theme(self, name: str, colors: dict, dark: bool = True) -> Theme:
        """Register a user theme.

        Args:
            name: Theme name; replaces any custom theme of the same name.
            colors: Palette overrides.  Only keys known to the presets are
                kept, everything else comes from the matching default theme.
            dark: Whether the palette is meant for a dark background.

        Raises:
            ValueError: If *name* is empty or collides with a built-in preset.
        """
        if not name:
            raise ValueError("custom theme needs a name")
        if name in PRESETS:
            raise ValueError(f"'{name}' is a built-in theme")

        base_name = self.default_dark_name if dark else self.default_light_name
        palette = dict(PRESETS[base_name])
        # Layer explicit color overrides from user config
        for key, value in colors.items():
            if key in palette:
                palette[key] = str(value)

        theme = Theme(name=name, dark=dark, colors=palette)
        self._themes[name] = theme
        return theme

    def clear_custom_themes(self) -> None:
        """Forget every custom theme, keeping the built-in presets."""
        for name in [n for n in self._themes if n not in PRESETS]:
            del self._themes[name]

    @property
    def terminal_background(self) -> RGBColor | None:
        """The last sampled terminal background, if any."""
        return self._terminal_background

    def set_terminal_background(self, color: RGBColor) -> None:
        """Cache *color* for the default themes to paint with."""
        self._terminal_background = color

    def build_theme_colors(self, name: str) -> dict[str, str]:
        """Return the full palette for *name*.

        Unknown names fall back to the default dark theme.  The default
        themes follow the terminal: once a background has been sampled it
        replaces their ``bg-color``.
        """
        theme = self._themes.get(name) or self._themes[self.default_dark_name]
        colors = dict(theme.colors)
        if self.is_default_theme(theme.name) and self._terminal_background is not None:
            colors["bg-color"] = self._terminal_background.hex
        return colors
