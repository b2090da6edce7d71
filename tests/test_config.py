"""Tests for lib/config.py: HardenConfig validation, resolution and to_dict."""

from __future__ import annotations

import dataclasses
import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from lib.config import HardenConfig, DEFAULT_ADMIN_USER, DEFAULT_SSH_PORT
from lib.errors import ConfigError
from lib.input_sources import OverrideSource, PromptSource

KEY = 'ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOps ops@laptop'


def _answers(*answers):
    queue = list(answers)
    return lambda _prompt: queue.pop(0)


class TestHardenConfigDefaults(unittest.TestCase):
    def test_default_values(self):
        config = HardenConfig(admin_user='deploy')
        self.assertEqual(config.ssh_port, 22)
        self.assertEqual(config.ssh_public_key, '')
        self.assertTrue(config.allow_web_traffic)

    def test_groups(self):
        config = HardenConfig(admin_user='deploy')
        self.assertEqual(config.groups, ['sudo', 'sshusers'])

    def test_frozen(self):
        config = HardenConfig(admin_user='deploy')
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.ssh_port = 2222

    def test_empty_user_rejected(self):
        with self.assertRaises(ConfigError):
            HardenConfig(admin_user='')

    def test_trailing_newline_user_rejected(self):
        with self.assertRaises(ConfigError):
            HardenConfig(admin_user='ops\n')

    def test_port_out_of_range_rejected(self):
        with self.assertRaises(ConfigError):
            HardenConfig(admin_user='deploy', ssh_port=70000)


class TestHardenConfigToDict(unittest.TestCase):
    def test_key_body_not_included(self):
        d = HardenConfig(admin_user='ops', ssh_public_key=KEY).to_dict()
        self.assertEqual(d['ssh_public_key'], 'ssh-ed25519 ... ops@laptop')
        self.assertNotIn('AAAAC3', d['ssh_public_key'])

    def test_plain_fields(self):
        d = HardenConfig(admin_user='ops', ssh_port=2222, allow_web_traffic=False).to_dict()
        self.assertEqual(d['admin_user'], 'ops')
        self.assertEqual(d['ssh_port'], 2222)
        self.assertFalse(d['allow_web_traffic'])
        self.assertEqual(d['ssh_public_key'], '')


class TestResolveFromOverrides(unittest.TestCase):
    def test_defaults_when_nothing_set(self):
        with self.assertLogs('vps_harden', level='WARNING') as logs:
            config = HardenConfig.resolve(OverrideSource(environ={}))
        self.assertEqual(config.admin_user, DEFAULT_ADMIN_USER)
        self.assertEqual(config.ssh_port, DEFAULT_SSH_PORT)
        self.assertTrue(config.allow_web_traffic)
        self.assertEqual(config.ssh_public_key, '')
        self.assertIn('No SSH key supplied', logs.output[0])

    def test_environment_values(self):
        environ = {
            'NEW_ADMIN_USER': 'OPS',
            'NEW_ADMIN_SSH_KEY': KEY,
            'HARDENED_SSH_PORT': '2222',
            'ALLOW_WEB_TRAFFIC': 'n',
        }
        config = HardenConfig.resolve(OverrideSource(environ=environ))
        self.assertEqual(config, HardenConfig(
            admin_user='ops', ssh_port=2222, ssh_public_key=KEY, allow_web_traffic=False
        ))

    def test_flag_overrides_win_over_environment(self):
        source = OverrideSource(
            environ={'HARDENED_SSH_PORT': '2222', 'NEW_ADMIN_USER': 'env'},
            overrides={'ssh_port': '2200', 'admin_user': None},
        )
        with self.assertLogs('vps_harden', level='WARNING'):
            config = HardenConfig.resolve(source)
        self.assertEqual(config.ssh_port, 2200)
        self.assertEqual(config.admin_user, 'env')

    def test_invalid_port_is_fatal(self):
        for port in ('0', '70000', 'abc'):
            with self.subTest(port=port):
                with self.assertRaises(ConfigError):
                    HardenConfig.resolve(OverrideSource(environ={'HARDENED_SSH_PORT': port}))

    def test_blank_user_is_fatal(self):
        with self.assertRaises(ConfigError):
            HardenConfig.resolve(OverrideSource(environ={}, overrides={'admin_user': '   '}))

    def test_invalid_user_is_fatal(self):
        with self.assertRaises(ConfigError):
            HardenConfig.resolve(OverrideSource(environ={'NEW_ADMIN_USER': 'bad user'}))

    def test_web_token_case_insensitive(self):
        for token, expected in (('YES', True), ('No', False), ('y', True)):
            with self.subTest(token=token):
                source = OverrideSource(environ={'ALLOW_WEB_TRAFFIC': token, 'NEW_ADMIN_SSH_KEY': KEY})
                self.assertEqual(HardenConfig.resolve(source).allow_web_traffic, expected)

    def test_odd_key_warns_but_is_kept(self):
        source = OverrideSource(environ={'NEW_ADMIN_SSH_KEY': 'not-a-key'})
        with self.assertLogs('vps_harden', level='WARNING') as logs:
            config = HardenConfig.resolve(source)
        self.assertEqual(config.ssh_public_key, 'not-a-key')
        self.assertIn('does not look like', logs.output[0])


class TestResolveFromPrompts(unittest.TestCase):
    def test_answers_used(self):
        source = PromptSource(OverrideSource(environ={}), prompt_func=_answers('Ops', '2222', KEY, 'n'))
        config = HardenConfig.resolve(source)
        self.assertEqual(config.admin_user, 'ops')
        self.assertEqual(config.ssh_port, 2222)
        self.assertEqual(config.ssh_public_key, KEY)
        self.assertFalse(config.allow_web_traffic)

    def test_empty_answers_take_defaults(self):
        source = PromptSource(OverrideSource(environ={}), prompt_func=_answers('', '', '', ''))
        with self.assertLogs('vps_harden', level='WARNING'):
            config = HardenConfig.resolve(source)
        self.assertEqual(config.admin_user, 'deploy')
        self.assertEqual(config.ssh_port, 22)
        self.assertTrue(config.allow_web_traffic)

    def test_overridden_fields_not_prompted(self):
        prompts = []

        def prompt_func(text):
            prompts.append(text)
            return ''

        source = PromptSource(
            OverrideSource(environ={'NEW_ADMIN_USER': 'ops', 'HARDENED_SSH_PORT': '2222'}),
            prompt_func=prompt_func,
        )
        with self.assertLogs('vps_harden', level='WARNING'):
            HardenConfig.resolve(source)
        self.assertEqual(len(prompts), 2)
        self.assertIn('SSH public key for ops', prompts[0])
        self.assertIn('[Y/n]', prompts[1])

    def test_invalid_port_answer_is_fatal(self):
        source = PromptSource(OverrideSource(environ={}), prompt_func=_answers('ops', '70000', KEY, 'y'))
        with self.assertRaises(ConfigError):
            HardenConfig.resolve(source)


if __name__ == '__main__':
    unittest.main()
