"""Repositories for banned words and the content violation log."""
