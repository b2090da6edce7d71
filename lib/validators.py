#!/usr/bin/env python3

"""Validation utilities for hardening configuration."""

import re

from lib.errors import ConfigError


YES_TOKENS = ("y", "yes")
NO_TOKENS = ("n", "no")

SSH_KEY_TYPES = (
    "ssh-ed25519",
    "ssh-rsa",
    "ssh-dss",
    "ecdsa-sha2-nistp256",
    "ecdsa-sha2-nistp384",
    "ecdsa-sha2-nistp521",
    "sk-ssh-ed25519@openssh.com",
    "sk-ecdsa-sha2-nistp256@openssh.com",
)


def validate_username(username: str) -> bool:
    """Validate a Unix username."""
    pattern = r'[a-z_][a-z0-9_-]{0,31}'
    return bool(re.fullmatch(pattern, username))


def validate_port(port: str) -> int:
    """Validate and convert a TCP port.

    Args:
        port: Port as given by the operator (string or int)

    Returns:
        int: Port in the range 1-65535

    Raises:
        ConfigError: If the value is not an integer in range
    """
    port_str = str(port).strip()
    if not re.match(r'^[0-9]+$', port_str):
        raise ConfigError(f"Port '{port}' is invalid. Choose a value between 1 and 65535.")

    port_int = int(port_str)
    if not 1 <= port_int <= 65535:
        raise ConfigError(f"Port '{port}' is invalid. Choose a value between 1 and 65535.")

    return port_int


def parse_yes_no(token: str, default: bool = True) -> bool:
    """Convert a y/yes/n/no token (any case) to a bool; empty means default."""
    normalized = (token or "").strip().lower()
    if not normalized:
        return default
    if normalized in YES_TOKENS:
        return True
    if normalized in NO_TOKENS:
        return False
    raise ConfigError(f"Expected yes or no, got '{token}'.")


def looks_like_ssh_public_key(key: str) -> bool:
    """Check that a key has the '<type> <base64> [comment]' shape of a public key."""
    parts = key.strip().split()
    if len(parts) < 2:
        return False
    if parts[0] not in SSH_KEY_TYPES:
        return False
    return bool(re.match(r'^[A-Za-z0-9+/]+={0,3}$', parts[1]))
