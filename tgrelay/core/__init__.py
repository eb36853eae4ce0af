"""Core building blocks: errors, validation, hashing and background tasks."""
