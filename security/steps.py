"""Security hardening steps."""

from __future__ import annotations

from .security_steps import (
    harden_ssh,
    configure_firewall,
    configure_fail2ban,
    configure_auto_updates,
    harden_kernel,
)

__all__ = [
    'harden_ssh',
    'configure_firewall',
    'configure_fail2ban',
    'configure_auto_updates',
    'harden_kernel',
]
