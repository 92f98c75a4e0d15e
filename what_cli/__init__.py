"""what — ask a language model what went wrong in your terminal."""

__version__ = "0.4.0"
