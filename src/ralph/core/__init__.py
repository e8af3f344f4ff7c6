"""Core workflow model: issues, stage configs and settings."""
