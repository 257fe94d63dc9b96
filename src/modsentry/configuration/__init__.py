"""
Configuration management for ModSentry.

- **app_configuration.py**: YAML configuration loader for global settings
  (database location, word cache TTL, default sensitivity, notice lifetimes
  and timeout lengths). Falls back gracefully on missing or malformed files.

Per-guild settings live in :mod:`modsentry.settings`.
"""
