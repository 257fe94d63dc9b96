"""Discord integration layer for ModSentry."""
