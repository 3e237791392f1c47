"""Database engine, sessions and shared master data models."""
