"""Repository tests against an in-memory SQLite database."""
