"""Centralized color constants."""

ACCENT = "cyan"
DIM = "grey50"
TEXT = "white"
SUCCESS = "green"
WARN = "yellow"
ERROR = "red"

__all__ = ["ACCENT", "DIM", "TEXT", "SUCCESS", "WARN", "ERROR"]
