import logging
from pathlib import Path

import tablib

from batchlog.commands.base import BatchCommand, CommandError
from batchlog.routing import import_string


LOGGER = logging.getLogger(__name__)
FORMATS = ["csv", "json", "xlsx"]


def guess_format(path):
    suffix = Path(path).suffix.lower().lstrip(".")

    if suffix not in FORMATS:
        raise CommandError(f"Cannot tell the format of '{path}', use one of {FORMATS}")

    return suffix


def load_table(path, sheet_format=None):
    sheet_format = sheet_format or guess_format(path)

    try:
        if sheet_format == "xlsx":
            with open(path, "rb") as table_data:
                return tablib.Dataset().load(table_data.read(), format="xlsx")

        with open(path, mode="r", encoding="utf-8") as table_data:
            return tablib.import_set(table_data, format=sheet_format)
    except OSError as e:
        raise CommandError(f"Cannot read '{path}': {e.strerror}") from e
    except Exception as e:
        raise CommandError(f"Cannot read '{path}' as {sheet_format}: {e}") from e


def rows_of(table):
    for row_idx, row in enumerate(table.dict, start=2):
        entity = {
            key: ("" if value is None else value) for key, value in dict(row).items()
        }

        if any(str(value) for value in entity.values()):
            yield row_idx, entity


class SheetCommand(BatchCommand):
    """
    Pass each row of a CSV, XLSX or JSON table to a handler function.

    Args:
        path: location of the table.
        handler: callable taking a row dict, or the dotted path of one, e.g.
            mypackage.jobs.renew_subscription
        sheet_format: one of csv, json or xlsx; guessed from the file
            extension if not given.
        label_column: column used to name a row in log messages.
    """

    name = "sheet"

    def __init__(self, path, handler, sheet_format=None, label_column=None):
        super().__init__()
        self.path = path
        self.sheet_format = sheet_format
        self.label_column = label_column

        if isinstance(handler, str):
            try:
                handler = import_string(handler)
            except (ImportError, AttributeError) as e:
                raise CommandError(f"Cannot import handler '{handler}': {e}")

        if not callable(handler):
            raise CommandError(f"Handler {handler!r} is not callable")

        self.handler = handler

    def get_entities(self):
        LOGGER.debug(f"Reading entities, path={self.path}")
        self._row = None

        for row_idx, entity in rows_of(load_table(self.path, self.sheet_format)):
            self._row = row_idx
            yield entity

    def describe(self, entity):
        if self.label_column and entity.get(self.label_column):
            return f"{self.label_column} {entity[self.label_column]}"

        return f"row {self._row}"

    def process(self, entity):
        self.handler(entity)
