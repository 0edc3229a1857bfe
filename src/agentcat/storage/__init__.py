"""SQLite persistence helpers shared by the task status store."""
