"""Brand profiles and profile completion."""
