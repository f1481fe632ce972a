"""Dictionary stores: SQLite (persisted, shared) and in-memory (per field)."""
