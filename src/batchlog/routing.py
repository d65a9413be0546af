import importlib
import logging

from batchlog.config import LEVELS, level_value, validate_config
from batchlog.logger.logger import SettingsFilter

ROOT_DEFAULT_LEVEL = LEVELS["WARNING"]


def import_string(path):
    module_name, _, attribute = path.rpartition(".")

    if not module_name:
        raise ImportError(f"'{path}' is not a dotted path")

    return getattr(importlib.import_module(module_name), attribute)


def build_filter(descriptor, settings):
    if descriptor.factory is None:
        return logging.Filter(descriptor.name or "")

    factory = import_string(descriptor.factory)
    kwargs = descriptor.arguments

    if isinstance(factory, type) and issubclass(factory, SettingsFilter):
        kwargs.setdefault("settings", settings)

    return factory(**kwargs)


class RoutingTable:
    """
    Work out where a record would be delivered under a logging configuration
    document, following the rules of the logging package, without configuring
    or emitting anything.
    """

    def __init__(self, config, settings):
        self.config = validate_config(config)
        self.settings = settings
        self.filters = {
            name: build_filter(descriptor, settings)
            for name, descriptor in self.config.filters.items()
        }

    def effective_level(self, name):
        for candidate in self._lineage(name):
            logger = self.config.loggers.get(candidate)

            if logger is not None and level_value(logger.level):
                return level_value(logger.level)

        root = self.config.root

        if root is not None and root.level is not None:
            return level_value(root.level)

        return ROOT_DEFAULT_LEVEL

    def route(self, name, level):
        """
        Args:
            name: dot-separated logger name; "" or "root" for the root logger.
            level: severity of the record, as a name or a number.

        Returns:
            list of the names of the handlers that would handle the record,
            in the order they would be called.
        """
        level = level_value(level)
        record = self._make_record(name, level)

        if level < self.effective_level(name):
            return []

        origin = self.config.get_logger(name)

        if origin is not None and not self._passes(origin.filters, record):
            return []

        handlers = []

        lineage = [
            self.config.loggers.get(candidate) for candidate in self._lineage(name)
        ]

        for logger in lineage + [self.config.root]:
            if logger is None:
                continue

            for handler_name in logger.handlers:
                handler = self.config.handlers[handler_name]

                if level >= level_value(handler.level) and self._passes(
                    handler.filters, record
                ):
                    handlers.append(handler_name)

            if not logger.propagate:
                break

        return handlers

    def destinations(self, name, level):
        return {
            self.config.handlers[handler_name].destination
            for handler_name in self.route(name, level)
        }

    def _lineage(self, name):
        # "a.b.c" -> ["a.b.c", "a.b", "a"]
        if name in ("", "root"):
            return []

        parts = name.split(".")
        return [".".join(parts[:i]) for i in range(len(parts), 0, -1)]

    def _passes(self, filter_names, record):
        return all(self.filters[name].filter(record) for name in filter_names)

    def _make_record(self, name, level):
        return logging.LogRecord(
            name=name or "root",
            level=level,
            pathname=__file__,
            lineno=0,
            msg="routing check",
            args=None,
            exc_info=None,
        )
