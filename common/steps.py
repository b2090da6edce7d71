"""Base system steps."""

from __future__ import annotations

from .common_steps import (
    update_system,
    setup_admin_user,
    lock_root_account,
)

__all__ = [
    'update_system',
    'setup_admin_user',
    'lock_root_account',
]
