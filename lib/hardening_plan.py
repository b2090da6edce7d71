"""Ordered list of hardening steps."""

from __future__ import annotations

from lib.types import StepList

from common.steps import (
    update_system,
    setup_admin_user,
    lock_root_account,
)

from security.steps import (
    harden_ssh,
    configure_firewall,
    configure_fail2ban,
    configure_auto_updates,
    harden_kernel,
)


def get_hardening_steps() -> StepList:
    """Return (name, func) pairs in the order they must run.

    The SSH login group is created with the admin account, before sshd is
    told to allow only that group. The firewall gets its SSH rule before it
    is enabled.
    """
    return [
        ("Update system packages", update_system),
        ("Provision admin account", setup_admin_user),
        ("Lock root account", lock_root_account),
        ("Harden SSH daemon", harden_ssh),
        ("Configure firewall", configure_firewall),
        ("Configure fail2ban", configure_fail2ban),
        ("Enable unattended upgrades", configure_auto_updates),
        ("Harden kernel network parameters", harden_kernel),
    ]
