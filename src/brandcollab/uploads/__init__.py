"""File uploads to object storage."""
