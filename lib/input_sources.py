"""Where configuration values come from: preset overrides or operator prompts."""

from __future__ import annotations

import os
import sys
from typing import Mapping, Optional, Union

from lib.types import PromptFunc, StrDict


ENV_VARS: StrDict = {
    "admin_user": "NEW_ADMIN_USER",
    "ssh_public_key": "NEW_ADMIN_SSH_KEY",
    "ssh_port": "HARDENED_SSH_PORT",
    "allow_web_traffic": "ALLOW_WEB_TRAFFIC",
}


class OverrideSource:
    """Values preset by the operator.

    Explicit overrides (command-line flags) win over environment variables.
    An empty environment variable counts as unset.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None,
                 overrides: Optional[Mapping[str, Optional[str]]] = None):
        self.environ = os.environ if environ is None else environ
        self.overrides = dict(overrides or {})

    def get(self, field: str) -> Optional[str]:
        value = self.overrides.get(field)
        if value is not None:
            return str(value)
        env_name = ENV_VARS.get(field)
        if env_name:
            env_value = self.environ.get(env_name)
            if env_value:
                return env_value
        return None

    def value(self, field: str, default: str, prompt: str) -> str:
        preset = self.get(field)
        return default if preset is None else preset


class PromptSource:
    """Ask the operator for every value that has no preset override."""

    def __init__(self, overrides: OverrideSource, prompt_func: PromptFunc = input):
        self.overrides = overrides
        self.prompt_func = prompt_func

    def get(self, field: str) -> Optional[str]:
        return self.overrides.get(field)

    def value(self, field: str, default: str, prompt: str) -> str:
        preset = self.overrides.get(field)
        if preset is not None:
            return preset
        try:
            answer = self.prompt_func(prompt)
        except EOFError:
            answer = ""
        answer = answer.strip()
        return answer if answer else default


InputSource = Union[OverrideSource, PromptSource]


def stdin_is_terminal() -> bool:
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except ValueError:
        # stdin closed
        return False


def select_source(overrides: OverrideSource, interactive: bool = True) -> InputSource:
    """Prompt when attached to a terminal, otherwise use presets and defaults."""
    if interactive and stdin_is_terminal():
        return PromptSource(overrides)
    return overrides
