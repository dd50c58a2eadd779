"""Database records."""
