"""Command execution and host probes for the hardening steps."""

from __future__ import annotations

import os
import shlex
import subprocess
import sys
from logging import getLogger
from typing import Optional

from lib.errors import PreconditionError, StepError


OS_RELEASE_FILE = "/etc/os-release"
SUPPORTED_OS_IDS = ("ubuntu", "debian")

logger = getLogger("vps_harden")

_dry_run = False


def set_dry_run(enabled: bool) -> None:
    """Set dry-run mode globally."""
    global _dry_run
    _dry_run = enabled


def is_dry_run() -> bool:
    """Check if dry-run mode is enabled."""
    return _dry_run


def run(cmd: str, check: bool = True, cwd: Optional[str] = None, capture_output: bool = False, text: bool = True) -> subprocess.CompletedProcess[str]:
    """Run a shell command, raising StepError on failure when check is set."""
    logger.info(f"  Running: {cmd[:80]}..." if len(cmd) > 80 else f"  Running: {cmd}")
    sys.stdout.flush()

    if is_dry_run():
        logger.info("  [DRY-RUN] Command not executed")
        # CompletedProcess.args expects a sequence; provide a one-element list for consistency
        return subprocess.CompletedProcess(args=[cmd], returncode=0, stdout="", stderr="")

    result = subprocess.run(cmd, shell=True, capture_output=capture_output, text=text, cwd=cwd)
    if check and result.returncode != 0:
        message = f"Command failed with exit code {result.returncode}: {cmd}"
        stderr = getattr(result, 'stderr', None)
        if stderr:
            message += f" ({stderr.strip()[:200]})"
        raise StepError(message, command=cmd, returncode=result.returncode)
    return result


def write_file(path: str, content: str, mode: Optional[int] = None) -> None:
    """Overwrite a file with the given content."""
    if is_dry_run():
        logger.info(f"  [DRY-RUN] Would write {path}")
        return

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            f.write(content)
        if mode is not None:
            os.chmod(path, mode)
    except OSError as e:
        raise StepError(f"Could not write {path}: {e}") from e


def require_root() -> None:
    if is_dry_run():
        return
    if os.geteuid() != 0:
        raise PreconditionError(
            f"Please run this script as root (e.g. sudo python3 {os.path.basename(sys.argv[0])})."
        )


def read_os_release(path: str = OS_RELEASE_FILE) -> dict[str, str]:
    """Parse an os-release file into a dict of lowercase keys."""
    fields: dict[str, str] = {}
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, value = line.split("=", 1)
            fields[key.strip().lower()] = value.strip().strip('"').strip("'")
    return fields


def detect_os() -> str:
    """Return the distribution name, failing on anything but Ubuntu/Debian."""
    try:
        fields = read_os_release(OS_RELEASE_FILE)
    except FileNotFoundError:
        raise PreconditionError(f"Cannot detect OS - {OS_RELEASE_FILE} not found")
    except OSError as e:
        raise PreconditionError(f"Cannot detect OS - could not read {OS_RELEASE_FILE}: {e}") from e

    os_id = fields.get("id", "").lower()
    id_like = fields.get("id_like", "").lower().split()
    if os_id in SUPPORTED_OS_IDS or any(like in SUPPORTED_OS_IDS for like in id_like):
        return fields.get("pretty_name", os_id)

    raise PreconditionError(f"Unsupported OS '{os_id or 'unknown'}' (only Ubuntu and Debian are supported)")


def is_service_active(service: str) -> bool:
    if is_dry_run():
        return False
    result = subprocess.run(
        f"systemctl is-active {shlex.quote(service)} >/dev/null 2>&1",
        shell=True, capture_output=True
    )
    return result.returncode == 0


def user_exists(username: str) -> bool:
    result = subprocess.run(
        f"id {shlex.quote(username)}",
        shell=True, capture_output=True
    )
    return result.returncode == 0


def group_exists(group: str) -> bool:
    result = subprocess.run(
        f"getent group {shlex.quote(group)}",
        shell=True, capture_output=True
    )
    return result.returncode == 0


def file_contains_line(filepath: str, line: str) -> bool:
    """Return True if any line of the file equals the given line exactly."""
    try:
        with open(filepath, 'r') as f:
            return any(existing.rstrip("\n") == line for existing in f)
    except (FileNotFoundError, PermissionError):
        return False
