"""Exceptions raised by the hardening run."""

from __future__ import annotations

from typing import Optional


class HardeningError(RuntimeError):
    """Base class for errors that abort the hardening run."""


class PreconditionError(HardeningError):
    """Raised before any step runs (missing privilege, unsupported OS)."""


class ConfigError(HardeningError, ValueError):
    """Raised when resolved configuration values are invalid."""


class StepError(HardeningError):
    """A command that had to succeed returned a non-zero exit code."""

    def __init__(self, message: str, step: Optional[str] = None,
                 command: Optional[str] = None, returncode: Optional[int] = None):
        self.step = step
        self.command = command
        self.returncode = returncode
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.step:
            return f"{self.step}: {message}"
        return message
