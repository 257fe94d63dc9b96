"""
Database schema initialization.

Handles creation of tables, indexes, triggers, and schema version tracking.
"""

import aiosqlite

from modsentry.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the content moderation tables, indexes and triggers."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all database tables, indexes, and triggers if missing.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._create_triggers(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        # Banned words; guild_id NULL means the word applies to every guild
        await db.execute("""
            CREATE TABLE IF NOT EXISTS bad_words (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                word TEXT NOT NULL,
                category TEXT NOT NULL DEFAULT 'custom',
                severity TEXT NOT NULL DEFAULT 'medium',
                guild_id TEXT,
                added_by TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS content_moderation_settings (
                guild_id TEXT PRIMARY KEY,
                enabled INTEGER NOT NULL DEFAULT 1,
                enable_script_transliteration INTEGER NOT NULL DEFAULT 1,
                action_type TEXT NOT NULL DEFAULT 'warn',
                sensitivity TEXT NOT NULL DEFAULT 'medium',
                custom_words TEXT NOT NULL DEFAULT '[]',
                monitored_channel_ids TEXT NOT NULL DEFAULT '[]',
                excluded_role_ids TEXT NOT NULL DEFAULT '[]',
                log_channel_id TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS content_violations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id TEXT NOT NULL,
                channel_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                message_id TEXT,
                content TEXT NOT NULL DEFAULT '',
                detected_words TEXT NOT NULL DEFAULT '[]',
                severity TEXT NOT NULL,
                confidence REAL NOT NULL DEFAULT 0,
                action TEXT NOT NULL,
                timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes for the word lookups and violation history."""
        await db.execute("CREATE INDEX IF NOT EXISTS idx_bad_words_word_guild ON bad_words(word, guild_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_bad_words_guild ON bad_words(guild_id)")
        await db.execute(
            "CREATE INDEX IF NOT EXISTS idx_content_violations_guild "
            "ON content_violations(guild_id, timestamp DESC)"
        )

    @staticmethod
    async def _create_triggers(db: aiosqlite.Connection) -> None:
        """Create triggers for automatic timestamp updates."""
        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_bad_words_timestamp
            AFTER UPDATE ON bad_words
            FOR EACH ROW
            BEGIN
                UPDATE bad_words SET updated_at = CURRENT_TIMESTAMP
                WHERE id = NEW.id;
            END
        """)

        await db.execute("""
            CREATE TRIGGER IF NOT EXISTS update_content_moderation_settings_timestamp
            AFTER UPDATE ON content_moderation_settings
            FOR EACH ROW
            BEGIN
                UPDATE content_moderation_settings SET updated_at = CURRENT_TIMESTAMP
                WHERE guild_id = NEW.guild_id;
            END
        """)

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        """Record the schema version."""
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
