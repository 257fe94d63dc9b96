"""Settings persistence repositories."""
