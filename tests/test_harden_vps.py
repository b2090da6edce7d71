"""Tests for harden_vps.main: preconditions, configuration failures, exit codes."""

from __future__ import annotations

import io
import logging
import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import harden_vps
from lib.config import HardenConfig
from lib.errors import PreconditionError, StepError
from lib.system_utils import is_dry_run, set_dry_run


class TestMain(unittest.TestCase):
    def setUp(self):
        patchers = [
            patch.dict(os.environ, {}, clear=True),
            patch("harden_vps.setup_logging", return_value=logging.getLogger("vps_harden")),
            patch("harden_vps.detect_os", return_value="Ubuntu 24.04 LTS"),
            patch("harden_vps.os.umask"),
            patch("sys.stdout", new_callable=io.StringIO),
        ]
        self.mocks = [p.start() for p in patchers]
        for p in patchers:
            self.addCleanup(p.stop)
        self.mock_umask = self.mocks[3]
        self.stdout = self.mocks[4]
        self.addCleanup(set_dry_run, False)

    @patch("harden_vps.run_steps")
    @patch("harden_vps.require_root")
    def test_success(self, _root, mock_run_steps):
        rc = harden_vps.main(["--non-interactive", "--admin-user", "ops", "--ssh-port", "2222", "--no-web",
                              "--ssh-key", "ssh-ed25519 AAAAC3Nza ops@laptop", "--no-log-file"])
        self.assertEqual(rc, 0)
        steps, config = mock_run_steps.call_args.args
        self.assertEqual(config, HardenConfig(
            admin_user="ops", ssh_port=2222, ssh_public_key="ssh-ed25519 AAAAC3Nza ops@laptop",
            allow_web_traffic=False,
        ))
        self.assertEqual(len(steps), 8)
        self.mock_umask.assert_called_once_with(0o027)
        self.assertIn("All tasks completed", self.stdout.getvalue())

    @patch("harden_vps.run_steps")
    @patch("harden_vps.require_root")
    def test_environment_overrides(self, _root, mock_run_steps):
        os.environ["NEW_ADMIN_USER"] = "ops"
        os.environ["HARDENED_SSH_PORT"] = "2200"
        rc = harden_vps.main(["--non-interactive", "--no-log-file"])
        self.assertEqual(rc, 0)
        config = mock_run_steps.call_args.args[1]
        self.assertEqual(config.admin_user, "ops")
        self.assertEqual(config.ssh_port, 2200)
        self.assertTrue(config.allow_web_traffic)

    @patch("harden_vps.run_steps")
    @patch("harden_vps.require_root")
    def test_invalid_port_aborts_before_any_step(self, _root, mock_run_steps):
        with self.assertLogs("vps_harden", level="ERROR") as logs:
            rc = harden_vps.main(["--non-interactive", "--ssh-port", "70000", "--no-log-file"])
        self.assertEqual(rc, 1)
        mock_run_steps.assert_not_called()
        self.mock_umask.assert_not_called()
        self.assertIn("70000", logs.output[0])

    @patch("harden_vps.run_steps")
    @patch("harden_vps.require_root", side_effect=PreconditionError("Please run this script as root"))
    def test_not_root(self, _root, mock_run_steps):
        with self.assertLogs("vps_harden", level="ERROR"):
            rc = harden_vps.main(["--non-interactive", "--no-log-file"])
        self.assertEqual(rc, 1)
        mock_run_steps.assert_not_called()

    @patch("harden_vps.run_steps", side_effect=StepError("exit code 1", step="Harden SSH daemon"))
    @patch("harden_vps.require_root")
    def test_step_failure_names_step(self, _root, _run_steps):
        with self.assertLogs("vps_harden", level="ERROR") as logs:
            rc = harden_vps.main(["--non-interactive", "--no-log-file"])
        self.assertEqual(rc, 1)
        self.assertIn("Harden SSH daemon", logs.output[0])
        self.assertIn("Check the log above", logs.output[1])
        self.assertNotIn("All tasks completed", self.stdout.getvalue())

    @patch("harden_vps.run_steps", side_effect=KeyboardInterrupt)
    @patch("harden_vps.require_root")
    def test_interrupt(self, _root, _run_steps):
        with self.assertLogs("vps_harden", level="ERROR"):
            rc = harden_vps.main(["--non-interactive", "--no-log-file"])
        self.assertEqual(rc, 130)

    @patch("harden_vps.run_steps")
    @patch("harden_vps.require_root")
    def test_dry_run(self, _root, _run_steps):
        rc = harden_vps.main(["--dry-run", "--non-interactive"])
        self.assertEqual(rc, 0)
        self.assertTrue(is_dry_run())
        self.mocks[1].assert_called_once_with(None, verbose=False)
        self.assertIn("no changes were made", self.stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
