"""Telegram movie rating quiz."""

__version__ = "0.1.0"
