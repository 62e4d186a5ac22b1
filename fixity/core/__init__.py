"""Core utilities: configuration, errors, canonical serialization."""
