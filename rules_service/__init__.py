"""Privacy and content rules service."""
