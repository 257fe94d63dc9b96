"""Shared data structures: Discord ID wrappers, moderation values, guild settings."""
