"""Base system steps: package refresh, admin account, root lockout."""

from __future__ import annotations

import os
import pwd
import shlex
from logging import DEBUG, getLogger

from lib.config import ADMIN_GROUP, SSH_LOGIN_GROUP, HardenConfig
from lib.errors import StepError
from lib.logging_utils import log_subprocess_result
from lib.system_utils import (
    run, is_dry_run, user_exists, group_exists, file_contains_line
)


BASELINE_PACKAGES = [
    "ca-certificates",
    "curl",
    "git",
    "ufw",
    "fail2ban",
    "unattended-upgrades",
    "apt-listchanges",
    "needrestart",
]

SSH_DIR_MODE = 0o700
AUTHORIZED_KEYS_MODE = 0o600

logger = getLogger("vps_harden")


def update_system(config: HardenConfig) -> None:
    logger.info("Refreshing apt metadata and installing baseline packages...")
    os.environ.setdefault("DEBIAN_FRONTEND", "noninteractive")
    os.environ.setdefault("NEEDRESTART_MODE", "a")
    run("apt-get update -y")
    run("apt-get -o Dpkg::Use-Pty=0 dist-upgrade -y")
    run(f"apt-get install -y --no-install-recommends {' '.join(BASELINE_PACKAGES)}")
    run("apt-get autoremove -y")
    run("apt-get clean")

    logger.info("  ✓ System packages updated and baseline tools installed")


def ensure_group(group_name: str) -> None:
    if group_exists(group_name):
        return
    logger.info(f"  Creating group '{group_name}'.")
    run(f"groupadd --system {shlex.quote(group_name)}")


def get_user_home(username: str) -> str:
    try:
        return pwd.getpwnam(username).pw_dir
    except KeyError:
        return f"/home/{username}"


def install_authorized_key(username: str, key: str) -> bool:
    """Make sure the key is present once in the user's authorized_keys.

    Returns True if the key was appended, False if it was already there.
    """
    ssh_dir = os.path.join(get_user_home(username), ".ssh")
    authorized_keys = os.path.join(ssh_dir, "authorized_keys")

    if is_dry_run():
        logger.info(f"  [DRY-RUN] Would install key into {authorized_keys}")
        return False

    try:
        os.makedirs(ssh_dir, exist_ok=True)
        os.chmod(ssh_dir, SSH_DIR_MODE)
        if not os.path.exists(authorized_keys):
            open(authorized_keys, "a").close()
        os.chmod(authorized_keys, AUTHORIZED_KEYS_MODE)

        added = False
        if not file_contains_line(authorized_keys, key):
            with open(authorized_keys, "r+") as f:
                existing = f.read()
                if existing and not existing.endswith("\n"):
                    f.write("\n")
                f.write(f"{key}\n")
            added = True

        entry = pwd.getpwnam(username)
        for path in (ssh_dir, authorized_keys):
            os.chown(path, entry.pw_uid, entry.pw_gid)
    except (OSError, KeyError) as e:
        raise StepError(f"Could not install key into {authorized_keys}: {e}") from e

    return added


def setup_admin_user(config: HardenConfig) -> None:
    username = config.admin_user
    safe_username = shlex.quote(username)
    logger.info(f"Creating or updating privileged user '{username}'.")

    if user_exists(username):
        logger.info(f"  User {username} already exists; ensuring correct group membership.")
    else:
        run(f'adduser --disabled-password --gecos "" {safe_username}')

    run(f"usermod -aG {ADMIN_GROUP} {safe_username}")
    ensure_group(SSH_LOGIN_GROUP)
    run(f"usermod -aG {SSH_LOGIN_GROUP} {safe_username}")

    if not config.ssh_public_key:
        logger.warning(f"  ⚠ No SSH key supplied; skipped key installation for {username}")
        return

    if install_authorized_key(username, config.ssh_public_key):
        logger.info(f"  ✓ Authorised key installed for {username}")
    else:
        logger.info(f"  ✓ Authorised key already present for {username}")


def lock_root_account(config: HardenConfig) -> None:
    logger.info("Locking the root account password to prevent direct logins.")
    result = run("passwd -l root", check=False, capture_output=True)
    # Already locked counts as success
    log_subprocess_result(logger, "passwd -l root", result, success_level=DEBUG, failure_level=DEBUG)
    logger.info("  ✓ Root password login disabled")
