"""Event ticketing API (Flask + MongoDB)."""

__version__ = "0.1.0"
