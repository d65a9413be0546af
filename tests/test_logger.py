import json
import logging
import logging.handlers
import tempfile
from pathlib import Path
from unittest import TestCase

from batchlog import settings as batch_settings
from batchlog.logger import DEFAULT_CONFIG
from batchlog.logger.handlers import AdminEmailHandler
from batchlog.logger.logger import (
    CallbackFilter,
    ContextFilter,
    RequireDebugFalse,
    RequireDebugTrue,
    _context,
    build_config,
    initialize_main_logger,
    logging_context,
)
from batchlog.settings import Settings


def make_record():
    return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)


class TestFilters(TestCase):
    def tearDown(self):
        batch_settings.configure(None)

    def test_debug_filters_with_explicit_settings(self):
        record = make_record()

        self.assertTrue(RequireDebugFalse(Settings(debug=False)).filter(record))
        self.assertFalse(RequireDebugFalse(Settings(debug=True)).filter(record))
        self.assertTrue(RequireDebugTrue(Settings(debug=True)).filter(record))
        self.assertFalse(RequireDebugTrue(Settings(debug=False)).filter(record))

    def test_debug_filters_follow_active_settings(self):
        record = make_record()
        require_debug = RequireDebugTrue()

        batch_settings.configure(Settings(debug=False))
        self.assertFalse(require_debug.filter(record))

        batch_settings.configure(Settings(debug=True))
        self.assertTrue(require_debug.filter(record))

    def test_callback_filter(self):
        record = make_record()

        self.assertTrue(CallbackFilter(lambda r: r.name == "test").filter(record))
        self.assertFalse(CallbackFilter(lambda r: None).filter(record))


class TestLoggingContext(TestCase):
    def test_nested_context(self):
        record = make_record()

        with logging_context("sheet", path="orders.csv"):
            with logging_context("row 3", row=3):
                ContextFilter().filter(record)

        self.assertEqual(record.processing_stack, "sheet | row 3")
        self.assertEqual(record.context_variables, {"path": "orders.csv", "row": 3})
        self.assertEqual(_context.get_processing_stack(), [])

    def test_context_kept_on_error(self):
        with self.assertRaises(ValueError):
            with logging_context("row 5"):
                raise ValueError()

        self.assertEqual(_context.get_processing_stack(), ["row 5"])
        _context.clear()


class TestBuildConfig(TestCase):
    def test_applies_settings(self):
        config = build_config(
            Settings(syslog_address=("logs.example.com", 514), syslog_facility="local3")
        )

        self.assertEqual(
            config["handlers"]["syslog"]["address"], ("logs.example.com", 514)
        )
        self.assertEqual(config["handlers"]["syslog"]["facility"], "local3")
        self.assertNotIn("file", config["handlers"])

    def test_does_not_mutate_default(self):
        build_config(Settings(syslog_address="/var/run/syslog", log_file="batch.log"))

        self.assertEqual(DEFAULT_CONFIG["handlers"]["syslog"]["address"], "/dev/log")
        self.assertNotIn("file", DEFAULT_CONFIG["handlers"])
        self.assertEqual(
            DEFAULT_CONFIG["loggers"]["batchlog.commands"]["handlers"],
            ["console", "syslog", "mail_admins"],
        )

    def test_optional_log_file(self):
        config = build_config(Settings(log_file="batch.log"))

        self.assertEqual(config["handlers"]["file"]["filename"], "batch.log")
        self.assertIn("file", config["loggers"]["batchlog.commands"]["handlers"])
        self.assertIn("file", config["loggers"]["batchlog.cli"]["handlers"])


class TestInitializeMainLogger(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def tearDown(self):
        for handler in logging.getLogger("batchlog.commands").handlers:
            handler.close()

        batch_settings.configure(None)

    def test_configures_batch_logger(self):
        settings = Settings(syslog_address=("localhost", 514))

        initialize_main_logger(settings, config_path=None)

        self.assertIs(batch_settings.get_settings(), settings)
        batch_logger = logging.getLogger("batchlog.commands")
        self.assertEqual(batch_logger.level, logging.DEBUG)
        self.assertFalse(batch_logger.propagate)
        handler_types = [type(h) for h in batch_logger.handlers]
        self.assertIn(logging.handlers.SysLogHandler, handler_types)
        self.assertIn(AdminEmailHandler, handler_types)

    def test_prefers_config_file(self):
        path = Path(self.tmp.name) / "logging.json"
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {"null": {"class": "logging.NullHandler"}},
            "loggers": {"batchlog.commands": {"handlers": ["null"], "level": "INFO"}},
        }
        path.write_text(json.dumps(config))

        validated = initialize_main_logger(Settings(), config_path=path)

        self.assertEqual(list(validated.handlers), ["null"])
        batch_logger = logging.getLogger("batchlog.commands")
        self.assertEqual(batch_logger.level, logging.INFO)
        self.assertEqual(
            [type(h) for h in batch_logger.handlers], [logging.NullHandler]
        )
