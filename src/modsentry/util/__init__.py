"""
Utility functions and helpers for ModSentry.

- **logger.py**: Centralized logging configuration with colored console output
  through prompt_toolkit, a rotating per-session log file, and suppression of
  chatty third-party loggers (Discord internals, aiosqlite).
"""
