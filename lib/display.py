#!/usr/bin/env python3

"""Display utilities for the hardening run."""

from lib.config import ADMIN_GROUP, SSH_LOGIN_GROUP, HardenConfig


def format_summary(config: HardenConfig, dry_run: bool = False) -> list[str]:
    """Return the closing reminders as lines of text."""
    web = "yes" if config.allow_web_traffic else "no"
    lines = [
        f" - Test a new SSH session on port {config.ssh_port} before closing your current one.",
        f" - Primary admin user: {config.admin_user} (member of {ADMIN_GROUP} + {SSH_LOGIN_GROUP}).",
        f" - Firewall: default deny incoming; SSH {config.ssh_port} rate-limited, HTTP/HTTPS allowed: {web}.",
        " - Fail2Ban + unattended upgrades now active.",
    ]
    if not config.ssh_public_key:
        lines.append(f" - No SSH key was installed; add one to /home/{config.admin_user}/.ssh/authorized_keys before logging out.")
    if dry_run:
        lines.append(" - Dry run: no changes were made to this host.")
    return lines


def print_summary(config: HardenConfig, dry_run: bool = False) -> None:
    print()
    print("=" * 60)
    print("All tasks completed. Key reminders:")
    print("=" * 60)
    for line in format_summary(config, dry_run):
        print(line)
    print("=" * 60)


def print_config(config: HardenConfig) -> None:
    """Print the resolved configuration before any step runs."""
    print("=" * 60)
    print("VPS Hardening")
    print("=" * 60)
    print(f"Admin user: {config.admin_user}")
    print(f"SSH port: {config.ssh_port}")
    print(f"SSH key: {'supplied' if config.ssh_public_key else 'none'}")
    print(f"Allow HTTP/HTTPS: {'Yes' if config.allow_web_traffic else 'No'}")
