"""Per-guild content moderation settings: in-memory manager and persistence."""
