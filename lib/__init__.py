"""vps_harden - First-run security hardening for Ubuntu/Debian VPS hosts."""

from __future__ import annotations

from .config import HardenConfig
from .errors import HardeningError, PreconditionError, ConfigError, StepError
from .validators import validate_port, validate_username, parse_yes_no
from .system_utils import run, set_dry_run, is_dry_run

__all__ = [
    "HardenConfig",
    "HardeningError",
    "PreconditionError",
    "ConfigError",
    "StepError",
    "validate_port",
    "validate_username",
    "parse_yes_no",
    "run",
    "set_dry_run",
    "is_dry_run",
]
