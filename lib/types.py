"""Common type aliases for the project to reduce repetition and improve readability.

Add new aliases here when you spot repeated typing patterns across modules.
"""
from __future__ import annotations

from typing import Any, Callable

# String-based types
StrDict = dict[str, str]

# Size constants
BYTES_PER_KB = 1024
BYTES_PER_MB = 1024 * BYTES_PER_KB

# Project-specific types
StepFunc = Callable[..., Any]
Step = tuple[str, StepFunc]
StepList = list[Step]
PromptFunc = Callable[[str], str]
