"""autotheme: follow the terminal background with a light or dark theme."""

__version__ = "0.1.0"
