import logging
from unittest import TestCase

from batchlog.config import Destination
from batchlog.logger import DEFAULT_CONFIG
from batchlog.routing import RoutingTable, import_string
from batchlog.settings import Settings


LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TestDefaultRouting(TestCase):
    def setUp(self):
        self.production = RoutingTable(DEFAULT_CONFIG, Settings(debug=False))
        self.debug = RoutingTable(DEFAULT_CONFIG, Settings(debug=True))

    def test_production_sends_warnings_to_syslog_and_admins(self):
        for name in ["batchlog.commands", "batchlog.commands.sheet"]:
            for level in ["WARNING", "ERROR", "CRITICAL"]:
                self.assertEqual(
                    self.production.destinations(name, level),
                    {Destination.SYSLOG, Destination.ADMIN_EMAIL},
                )

    def test_production_never_uses_console(self):
        for level in LEVELS:
            self.assertNotIn(
                Destination.CONSOLE,
                self.production.destinations("batchlog.commands.sheet", level),
            )

    def test_production_drops_low_severity(self):
        self.assertEqual(self.production.route("batchlog.commands", "INFO"), [])
        self.assertEqual(self.production.route("batchlog.commands", "DEBUG"), [])

    def test_debug_sends_everything_to_console(self):
        for level in LEVELS:
            self.assertEqual(
                self.debug.route("batchlog.commands.sheet", level),
                ["console"],
            )

    def test_root_only_warns_in_debug_mode(self):
        self.assertEqual(self.debug.route("other.module", "WARNING"), ["console"])
        self.assertEqual(self.debug.route("other.module", "INFO"), [])
        self.assertEqual(self.production.route("other.module", "ERROR"), [])

    def test_production_reports_cli_errors(self):
        self.assertEqual(
            self.production.destinations("batchlog.cli", "CRITICAL"),
            {Destination.SYSLOG, Destination.ADMIN_EMAIL},
        )

    def test_effective_level(self):
        self.assertEqual(self.production.effective_level("batchlog.commands.x"), 10)
        self.assertEqual(self.production.effective_level("batchlog"), 30)
        self.assertEqual(self.production.effective_level(""), 30)

    def test_numeric_levels(self):
        self.assertEqual(
            self.production.route("batchlog.commands", logging.ERROR),
            ["syslog", "mail_admins"],
        )


class TestPropagation(TestCase):
    config = {
        "version": 1,
        "filters": {
            "only_jobs": {"name": "app.jobs"},
        },
        "handlers": {
            "top": {"class": "logging.StreamHandler", "level": "INFO"},
            "jobs": {
                "class": "logging.FileHandler",
                "filename": "jobs.log",
                "filters": ["only_jobs"],
            },
            "quiet": {"class": "logging.StreamHandler", "level": "ERROR"},
        },
        "loggers": {
            "app": {"handlers": ["top", "jobs"], "level": "DEBUG"},
            "app.jobs.cleanup": {"handlers": ["quiet"]},
            "app.isolated": {"handlers": ["quiet"], "propagate": False},
        },
        "root": {"handlers": ["top"], "level": "CRITICAL"},
    }

    def setUp(self):
        self.table = RoutingTable(self.config, Settings())

    def test_handlers_are_collected_up_to_root(self):
        self.assertEqual(
            self.table.route("app.jobs.cleanup", "ERROR"),
            ["quiet", "top", "jobs", "top"],
        )

    def test_handler_level_and_filters_apply(self):
        self.assertEqual(self.table.route("app.jobs.cleanup", "DEBUG"), ["jobs"])
        self.assertEqual(self.table.route("app.web", "INFO"), ["top", "top"])

    def test_propagate_false_stops_the_walk(self):
        self.assertEqual(self.table.route("app.isolated.part", "ERROR"), ["quiet"])

    def test_root_reached_at_its_level(self):
        self.assertEqual(self.table.route("app", "CRITICAL"), ["top", "top"])
        self.assertEqual(self.table.route("elsewhere", "ERROR"), [])
        self.assertEqual(self.table.route("elsewhere", "CRITICAL"), ["top"])

    def test_root_handlers_collected_once_for_dotted_root_name(self):
        # "root.child" is an ordinary child logger, not the root itself
        self.assertEqual(self.table.route("root.child", "CRITICAL"), ["top"])
        self.assertEqual(self.table.route("root.child", "ERROR"), [])

    def test_logger_filters_gate_everything(self):
        config = dict(
            self.config,
            loggers={"app": {"handlers": ["top"], "filters": ["only_jobs"]}},
        )
        table = RoutingTable(config, Settings())

        self.assertEqual(table.route("app", "CRITICAL"), [])


class TestImportString(TestCase):
    def test_imports_attribute(self):
        self.assertIs(import_string("logging.StreamHandler"), logging.StreamHandler)

    def test_rejects_bare_names(self):
        with self.assertRaises(ImportError):
            import_string("logging")
