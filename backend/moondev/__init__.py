"""MoonDev recruiting workflow backend."""

__version__ = "1.0.0"
