"""Progress display and sequential execution of hardening steps."""

from __future__ import annotations

import sys
from logging import getLogger
from typing import Any

from lib.errors import StepError
from lib.types import StepList

logger = getLogger("vps_harden")


def progress_bar(current: int, total: int, width: int = 20) -> str:
    filled = int(width * current / total) if total > 0 else 0
    bar = "█" * filled + "░" * (width - filled)
    percent = int(100 * current / total) if total > 0 else 0
    return f"[{bar}] {percent}%"


def run_steps(steps: StepList, *args: Any, **kwargs: Any) -> None:
    """Run steps in order; the first failure stops the run.

    Steps already applied are left in place. A StepError raised without a
    step name gets the name of the step it came from.
    """
    total = len(steps)
    for i, (name, func) in enumerate(steps, 1):
        bar = progress_bar(i, total)
        logger.info(f"{bar} [{i}/{total}] {name}")
        sys.stdout.flush()
        try:
            func(*args, **kwargs)
        except StepError as e:
            if not e.step:
                e.step = name
            raise

    bar = progress_bar(total, total)
    logger.info(f"{bar} All steps completed!")
    sys.stdout.flush()
