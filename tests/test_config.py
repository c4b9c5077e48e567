import json
import os
import tempfile
import unittest
from unittest import mock

from interlog.config import config_from_env, config_to_dict, default_config, load_config, validate_config
from interlog.types import MASK_TOKEN
from interlog.utils import load_env_file


class TestConfig(unittest.TestCase):
    def _write(self, payload):
        handle = tempfile.NamedTemporaryFile("w", suffix=".json", delete=False)
        with handle:
            json.dump(payload, handle)
        self.addCleanup(os.unlink, handle.name)
        return handle.name

    def test_defaults(self):
        config = default_config()
        self.assertEqual(config.idle_threshold, 0.1)
        self.assertEqual(config.retention_max, 1000)
        self.assertEqual(config.retention_interval, 30.0)
        self.assertTrue(config.tail_follow)
        self.assertFalse(config.initially_visible)
        self.assertEqual(config.mask_token, MASK_TOKEN)
        self.assertEqual(validate_config(config), [])

    def test_load_config_merges_and_aliases(self):
        path = self._write({"idleThreshold": 0.5, "retention_max": "unlimited", "hidden_tags": ["load"], "bogus": 1})
        config = load_config(path)
        self.assertEqual(config.idle_threshold, 0.5)
        self.assertIsNone(config.retention_max)
        self.assertEqual(config.hidden_tags, ["load"])
        self.assertFalse(hasattr(config, "bogus"))
        self.assertEqual(config.retention_interval, 30.0)

    def test_load_config_rejects_non_object(self):
        path = self._write([1, 2])
        with self.assertRaises(ValueError):
            load_config(path)

    def test_env_overlay(self):
        environ = {
            "INTERLOG_RETENTION_MAX": "none",
            "INTERLOG_TAIL_FOLLOW": "no",
            "INTERLOG_IGNORED_COMMANDS": "scroll-up, scroll-down,",
            "INTERLOG_IDLE_THRESHOLD": "0.25",
        }
        config = config_from_env(default_config(), environ)
        self.assertIsNone(config.retention_max)
        self.assertFalse(config.tail_follow)
        self.assertEqual(config.ignored_commands, ["scroll-up", "scroll-down"])
        self.assertEqual(config.idle_threshold, 0.25)

    def test_env_overlay_rejects_bad_number(self):
        with self.assertRaises(ValueError) as ctx:
            config_from_env(default_config(), {"INTERLOG_RETENTION_MAX": "lots"})
        self.assertIn("INTERLOG_RETENTION_MAX", str(ctx.exception))

    def test_validate_reports_each_problem(self):
        config = default_config()
        config.idle_threshold = 0
        config.retention_max = 0
        config.hidden_tags = ["colour"]
        config.mask_token = ""
        errors = validate_config(config)
        self.assertEqual(len(errors), 4)

    def test_config_to_dict(self):
        payload = config_to_dict(default_config())
        self.assertEqual(payload["retention_max"], 1000)
        self.assertEqual(payload["hidden_tags"], [])


class TestEnvFile(unittest.TestCase):
    def test_applies_missing_keys_only(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, ".env")
            with open(path, "w", encoding="utf-8") as handle:
                handle.write("# comment\nexport INTERLOG_TEST_A='one'\nINTERLOG_TEST_B=two\nnot a pair\n")
            with mock.patch.dict(os.environ, {"INTERLOG_TEST_B": "kept"}, clear=False):
                applied = load_env_file(path)
                self.assertEqual(applied, ["INTERLOG_TEST_A"])
                self.assertEqual(os.environ["INTERLOG_TEST_A"], "one")
                self.assertEqual(os.environ["INTERLOG_TEST_B"], "kept")
                self.assertEqual(load_env_file(path, override=True), ["INTERLOG_TEST_A", "INTERLOG_TEST_B"])
                self.assertEqual(os.environ["INTERLOG_TEST_B"], "two")

    def test_missing_file(self):
        self.assertEqual(load_env_file("/nonexistent/.env"), [])


if __name__ == "__main__":
    unittest.main()
