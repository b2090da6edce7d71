"""Security hardening steps."""
