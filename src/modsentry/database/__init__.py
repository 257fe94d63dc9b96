"""
Database package for ModSentry.

Public API:
    - ConnectionManager: the single aiosqlite connection with WAL pragmas
    - SchemaManager: table, index and trigger creation
"""
