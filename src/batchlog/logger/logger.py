import copy
import json
import logging
from collections import ChainMap
from logging.config import dictConfig
from pathlib import Path

from batchlog import settings as batch_settings
from batchlog.config import validate_config
from batchlog.logger import DEFAULT_CONFIG


logger = logging.getLogger(__name__)


class LoggingContextHandler:
    def __init__(self):
        self.context_variables = []
        self.processing_stack = []

    def add(self, processing_unit, **new_context_vars):
        self.processing_stack.append(processing_unit)
        self.context_variables.append(new_context_vars)

    def get_processing_stack(self):
        return self.processing_stack

    def get_context_variables(self):
        # Union of all the dicts
        return dict(ChainMap(*self.context_variables))

    def pop(self):
        self.processing_stack.pop()
        self.context_variables.pop()

    def clear(self):
        self.processing_stack.clear()
        self.context_variables.clear()


_context = LoggingContextHandler()


class logging_context:
    def __init__(self, processing_unit, **kwargs):
        self.processing_unit = processing_unit
        self.kwargs = kwargs

    def __enter__(self):
        _context.add(self.processing_unit, **self.kwargs)

    def __exit__(self, exc_type, exc_value, exc_tb):
        if exc_type is None:
            _context.pop()


class ContextFilter(logging.Filter):

    def filter(self, record):
        record.processing_stack = " | ".join(_context.get_processing_stack())
        record.context_variables = _context.get_context_variables()
        return True


class SettingsFilter(logging.Filter):
    """
    Base for filters whose decision depends on the process settings.

    When no settings are given, the active settings are looked up each time a
    record is filtered, so a filter created before the settings were
    configured still sees them.
    """

    def __init__(self, settings=None):
        super().__init__()
        self._settings = settings

    @property
    def settings(self):
        return self._settings or batch_settings.get_settings()


class RequireDebugFalse(SettingsFilter):
    def filter(self, record):
        return not self.settings.debug


class RequireDebugTrue(SettingsFilter):
    def filter(self, record):
        return self.settings.debug


class CallbackFilter(logging.Filter):
    def __init__(self, callback):
        super().__init__()
        self.callback = callback

    def filter(self, record):
        return bool(self.callback(record))


def build_config(settings):
    """
    Return a copy of the default configuration with the settings applied.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    syslog = config["handlers"]["syslog"]
    syslog["address"] = settings.syslog_address
    syslog["facility"] = settings.syslog_facility

    if settings.log_file:
        config["handlers"]["file"] = {
            "class": "logging.FileHandler",
            "filename": settings.log_file,
            "filters": ["context"],
            "formatter": "default",
            "level": "INFO",
        }
        for name in ("batchlog.commands", "batchlog.cli"):
            config["loggers"][name]["handlers"].append("file")

    return config


def load_logging_config(settings, config_path="logging.json"):
    if config_path and Path(config_path).exists():
        with open(config_path, "r") as f:
            return json.load(f)

    return build_config(settings)


def initialize_main_logger(settings=None, config_path="logging.json"):
    settings = batch_settings.configure(settings or batch_settings.load_settings())
    config = load_logging_config(settings, config_path)
    validated = validate_config(config)
    dictConfig(validated.to_dict())
    logger.debug(f"Logging configured, debug={settings.debug}, config={config}")

    return validated
