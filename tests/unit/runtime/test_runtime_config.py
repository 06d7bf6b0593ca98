"""Tests for the JSON config file loader and log setup."""

from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazypicker.runtime import config, logs


class ConfigFileTests(unittest.TestCase):
    def test_missing_file_means_no_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(config.load_config(Path(tmp) / "absent.json"), {})

    def test_object_is_returned_as_is(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text('{"multi": true, "bindings": {"ctrl-j": "Down(1)"}}', encoding="utf-8")

            self.assertEqual(config.load_config(path), {"multi": True, "bindings": {"ctrl-j": "Down(1)"}})

    def test_malformed_or_non_object_content_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            for text in ("{not json", "[1, 2]", '"text"'):
                with self.subTest(text=text):
                    path.write_text(text, encoding="utf-8")
                    self.assertEqual(config.load_config(path), {})

    def test_env_override_selects_config_path(self) -> None:
        with mock.patch.dict("lazypicker.runtime.config.os.environ", {"LAZYPICKER_CONFIG": "/tmp/picker.json"}):
            self.assertEqual(config.config_path(), Path("/tmp/picker.json"))
        with mock.patch.dict("lazypicker.runtime.config.os.environ", {}, clear=True):
            self.assertEqual(config.config_path(), config.DEFAULT_CONFIG_PATH)


class LoggingSetupTests(unittest.TestCase):
    def setUp(self) -> None:
        package_logger = logging.getLogger("lazypicker")
        saved_handlers = list(package_logger.handlers)
        saved_level = package_logger.level

        def restore() -> None:
            for handler in package_logger.handlers:
                if handler not in saved_handlers:
                    handler.close()
            package_logger.handlers[:] = saved_handlers
            package_logger.setLevel(saved_level)

        self.addCleanup(restore)

    def test_verbosity_selects_level_and_writes_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "logs" / "picker.log"
            with mock.patch.dict("lazypicker.runtime.logs.os.environ", {"LAZYPICKER_LOG": str(target)}):
                path = logs.configure_logging(2)

            self.assertEqual(path, target)
            self.assertEqual(logging.getLogger("lazypicker").level, logging.DEBUG)
            logging.getLogger("lazypicker.test").debug("hello from test")
            for handler in logging.getLogger("lazypicker").handlers:
                handler.flush()
            self.assertIn("hello from test", target.read_text(encoding="utf-8"))

    def test_default_verbosity_logs_warnings_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "picker.log"
            with mock.patch.dict("lazypicker.runtime.logs.os.environ", {"LAZYPICKER_LOG": str(target)}):
                logs.configure_logging(0)

            self.assertEqual(logging.getLogger("lazypicker").level, logging.WARNING)

    def test_unwritable_log_path_leaves_logging_unconfigured(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "file"
            blocker.write_text("", encoding="utf-8")
            target = blocker / "picker.log"
            with mock.patch.dict("lazypicker.runtime.logs.os.environ", {"LAZYPICKER_LOG": str(target)}):
                self.assertIsNone(logs.configure_logging(1))


if __name__ == "__main__":
    unittest.main()
