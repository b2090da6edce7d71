#!/usr/bin/env python3

from dataclasses import dataclass, asdict
from logging import getLogger
from typing import Dict, Any

from lib.errors import ConfigError
from lib.input_sources import InputSource
from lib.validators import (
    looks_like_ssh_public_key, parse_yes_no, validate_port, validate_username
)


DEFAULT_ADMIN_USER = "deploy"
DEFAULT_SSH_PORT = 22
DEFAULT_ALLOW_WEB = "Y"

ADMIN_GROUP = "sudo"
SSH_LOGIN_GROUP = "sshusers"

logger = getLogger("vps_harden")


@dataclass(frozen=True)
class HardenConfig:
    admin_user: str
    ssh_port: int = DEFAULT_SSH_PORT
    ssh_public_key: str = ""
    allow_web_traffic: bool = True

    def __post_init__(self) -> None:
        if not self.admin_user:
            raise ConfigError("Username cannot be empty.")
        if not validate_username(self.admin_user):
            raise ConfigError(f"Invalid username: {self.admin_user}")
        if isinstance(self.ssh_port, bool) or not isinstance(self.ssh_port, int) or not 1 <= self.ssh_port <= 65535:
            raise ConfigError(f"Port '{self.ssh_port}' is invalid. Choose a value between 1 and 65535.")

    @property
    def groups(self) -> list[str]:
        return [ADMIN_GROUP, SSH_LOGIN_GROUP]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.ssh_public_key:
            # Only the key type and comment end up in logs
            parts = self.ssh_public_key.split()
            data['ssh_public_key'] = f"{parts[0]} ... {' '.join(parts[2:])}".strip()
        return data

    @classmethod
    def resolve(cls, source: InputSource) -> 'HardenConfig':
        """Build the configuration from a preset or interactive input source.

        Raises ConfigError before anything on the host is touched.
        """
        admin_user = source.value(
            "admin_user", DEFAULT_ADMIN_USER,
            f"Enter the name for the privileged user [{DEFAULT_ADMIN_USER}]: "
        ).strip().lower()
        ssh_port = source.value(
            "ssh_port", str(DEFAULT_SSH_PORT),
            f"SSH port to allow [{DEFAULT_SSH_PORT}]: "
        )
        ssh_public_key = source.value(
            "ssh_public_key", "",
            f"Paste an SSH public key for {admin_user} (leave blank to skip): "
        ).strip()
        allow_web = source.value(
            "allow_web_traffic", DEFAULT_ALLOW_WEB,
            "Allow HTTP/HTTPS traffic through UFW? [Y/n]: "
        )

        config = cls(
            admin_user=admin_user,
            ssh_port=validate_port(ssh_port),
            ssh_public_key=ssh_public_key,
            allow_web_traffic=parse_yes_no(allow_web, default=True),
        )

        if not config.ssh_public_key:
            logger.warning(
                f"No SSH key supplied. You can add one later to /home/{config.admin_user}/.ssh/authorized_keys."
            )
        elif not looks_like_ssh_public_key(config.ssh_public_key):
            logger.warning("The supplied SSH key does not look like an OpenSSH public key; installing it anyway.")

        return config
