#!/usr/bin/env python3
"""Harden a fresh Ubuntu/Debian VPS with sensible security defaults.

Creates a sudo user restricted to key-based SSH, locks root, configures
sshd, UFW and Fail2Ban, enables unattended upgrades and applies basic kernel
network hardening. Run as root on the target host:

    sudo python3 harden_vps.py
    sudo NEW_ADMIN_USER=ops HARDENED_SSH_PORT=2222 python3 harden_vps.py --non-interactive
"""

import os
import sys
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lib.arg_parser import create_argument_parser, overrides_from_args
from lib.config import HardenConfig
from lib.display import print_config, print_summary
from lib.errors import HardeningError
from lib.hardening_plan import get_hardening_steps
from lib.input_sources import OverrideSource, select_source
from lib.logging_utils import setup_logging
from lib.progress import run_steps
from lib.system_utils import detect_os, require_root, set_dry_run


PROCESS_UMASK = 0o027


def main(argv: Optional[list[str]] = None) -> int:
    parser = create_argument_parser("Harden an Ubuntu VPS with sensible security defaults")
    args = parser.parse_args(argv)

    if args.dry_run:
        set_dry_run(True)
        print("=" * 60)
        print("DRY-RUN MODE ENABLED")
        print("=" * 60)

    logger = setup_logging(None if args.dry_run else args.log_file, verbose=args.verbose)

    try:
        require_root()
        logger.info(f"OS: {detect_os()}")

        overrides = OverrideSource(overrides=overrides_from_args(args))
        config = HardenConfig.resolve(select_source(overrides, interactive=args.interactive))
        logger.debug(f"Resolved configuration: {config.to_dict()}")
        print_config(config)
        sys.stdout.flush()

        os.umask(PROCESS_UMASK)
        run_steps(get_hardening_steps(), config)
    except HardeningError as e:
        logger.error(f"[ERROR] {e}")
        logger.error("Hardening aborted. Check the log above for details.")
        return 1
    except KeyboardInterrupt:
        logger.error("[ERROR] Interrupted. Re-run the script to finish hardening; completed steps are safe to repeat.")
        return 130

    print_summary(config, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    sys.exit(main())
