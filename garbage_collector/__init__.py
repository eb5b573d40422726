"""Leaked resource garbage collector for the experimentation platform."""

__version__ = "1.0.0"
