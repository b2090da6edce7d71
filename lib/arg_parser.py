#!/usr/bin/env python3

from __future__ import annotations

import argparse

from lib.logging_utils import DEFAULT_LOG_FILE


def create_argument_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=description,
        epilog="Values not given as flags are read from NEW_ADMIN_USER, NEW_ADMIN_SSH_KEY, "
               "HARDENED_SSH_PORT and ALLOW_WEB_TRAFFIC, then prompted for on a terminal."
    )

    parser.add_argument("--admin-user", dest="admin_user",
                       help="Name of the privileged user to create (default: deploy)")
    parser.add_argument("--ssh-key", dest="ssh_public_key",
                       help="SSH public key to authorise for the admin user")
    parser.add_argument("--ssh-port", dest="ssh_port",
                       help="Port sshd listens on and the firewall rate-limits (default: 22)")
    parser.add_argument("--web", dest="allow_web_traffic",
                       action=argparse.BooleanOptionalAction, default=None,
                       help="Allow HTTP/HTTPS through the firewall (default: enabled)")

    parser.add_argument("--non-interactive", dest="interactive", action="store_false",
                       help="Never prompt; use flags, environment, then defaults")
    parser.add_argument("--dry-run", dest="dry_run", action="store_true",
                       help="Print commands and files without changing the host")
    parser.add_argument("--log-file", dest="log_file", default=DEFAULT_LOG_FILE,
                       help=f"Log file path (default: {DEFAULT_LOG_FILE})")
    parser.add_argument("--no-log-file", dest="log_file", action="store_const", const=None,
                       help="Log to the console only")
    parser.add_argument("-v", "--verbose", action="store_true",
                       help="Show debug output")

    return parser


def overrides_from_args(args: argparse.Namespace) -> dict[str, str | None]:
    """Map parsed flags onto configuration field overrides."""
    allow_web = args.allow_web_traffic
    return {
        "admin_user": args.admin_user,
        "ssh_public_key": args.ssh_public_key,
        "ssh_port": args.ssh_port,
        "allow_web_traffic": None if allow_web is None else ("yes" if allow_web else "no"),
    }
