"""Base system steps."""
