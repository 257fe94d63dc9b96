"""Discord cogs: the message listener and the /filter commands."""
