"""Deciding whether the active theme should follow the terminal background."""

from __future__ import annotations

from collections.abc import Collection

from autotheme.colors import is_light


def is_switchable_theme(
    current: str,
    default_dark: str,
    default_light: str,
    preferred_dark: str | None = None,
    preferred_light: str | None = None,
) -> bool:
    """True when *current* is a default theme or one of the preferred pair.

    Any other theme was picked by hand and is never replaced automatically.
    """
    candidates = {default_dark, default_light}
    candidates.update(name for name in (preferred_dark, preferred_light) if name)
    return current in candidates


def should_switch_theme(
    current: str,
    luminance: float,
    default_dark: str,
    default_light: str,
    preferred_dark: str | None,
    preferred_light: str | None,
    available: Collection[str],
) -> str | None:
    """Pick the theme matching a background luminance.

    Only call this when :func:`is_switchable_theme` holds for *current*.

    Args:
        current: Name of the active theme.
        luminance: Relative luminance of the terminal background (0.0-1.0).
        default_dark: Built-in dark theme name.
        default_light: Built-in light theme name.
        preferred_dark: User's dark theme, empty or ``None`` when unset.
        preferred_light: User's light theme, empty or ``None`` when unset.
        available: Names of every registered theme.

    Returns:
        The theme to switch to, or ``None`` to keep *current*.  A returned
        name is always a member of *available*.
    """
    if is_light(luminance):
        preferred, fallback = preferred_light, default_light
    else:
        preferred, fallback = preferred_dark, default_dark

    target = preferred if preferred and preferred in available else fallback

    if target == current or target not in available:
        return None
    return target
