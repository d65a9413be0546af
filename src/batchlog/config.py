"""
Models of the logging configuration document accepted by
logging.config.dictConfig, with checks that every name it references exists.
"""

import json
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)


LEVELS = {
    "CRITICAL": 50,
    "FATAL": 50,
    "ERROR": 40,
    "WARNING": 30,
    "WARN": 30,
    "INFO": 20,
    "DEBUG": 10,
    "NOTSET": 0,
}


class ConfigError(Exception):
    def __init__(self, problems):
        self.problems = problems
        super().__init__("Invalid logging configuration:\n" + "\n".join(problems))


class Destination(str, Enum):
    CONSOLE = "console"
    SYSLOG = "syslog"
    ADMIN_EMAIL = "admin-email"
    FILE = "file"
    OTHER = "other"


DESTINATIONS = {
    "logging.StreamHandler": Destination.CONSOLE,
    "logging.handlers.SysLogHandler": Destination.SYSLOG,
    "batchlog.logger.handlers.AdminEmailHandler": Destination.ADMIN_EMAIL,
    "logging.handlers.SMTPHandler": Destination.ADMIN_EMAIL,
    "logging.FileHandler": Destination.FILE,
    "logging.handlers.RotatingFileHandler": Destination.FILE,
    "logging.handlers.TimedRotatingFileHandler": Destination.FILE,
    "logging.handlers.WatchedFileHandler": Destination.FILE,
}


def level_value(level):
    """
    Numeric value of a level given either as a name or as an integer.
    """
    if level is None:
        return LEVELS["NOTSET"]

    if isinstance(level, int):
        return level

    return LEVELS[level.upper()]


def check_level(v):
    if v is None or isinstance(v, int):
        return v

    if isinstance(v, str):
        if v.strip().isdigit():
            return int(v)

        if v.strip().upper() in LEVELS:
            return v.strip().upper()

    raise ValueError(f"unknown level '{v}'")


class ConfigModel(BaseModel):

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_dict(self):
        return self.model_dump(by_alias=True, exclude_none=True)


class FilterConfig(ConfigModel):
    factory: Optional[str] = Field(default=None, alias="()")
    name: Optional[str] = None

    @property
    def arguments(self):
        return dict(self.model_extra or {})


class FormatterConfig(ConfigModel):
    format: Optional[str] = None
    datefmt: Optional[str] = None
    style: Optional[str] = None
    factory: Optional[str] = Field(default=None, alias="()")


class HandlerConfig(ConfigModel):
    class_: Optional[str] = Field(default=None, alias="class")
    factory: Optional[str] = Field(default=None, alias="()")
    level: Optional[Union[int, str]] = None
    filters: List[str] = []
    formatter: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def known_level(cls, v):
        return check_level(v)

    @model_validator(mode="after")
    def has_class(self):
        if not (self.class_ or self.factory):
            raise ValueError("handler needs either 'class' or '()'")

        return self

    @property
    def destination(self):
        return DESTINATIONS.get(self.class_ or self.factory, Destination.OTHER)


class LoggerConfig(ConfigModel):
    level: Optional[Union[int, str]] = None
    handlers: List[str] = []
    filters: List[str] = []
    propagate: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def known_level(cls, v):
        return check_level(v)


class LoggingConfig(ConfigModel):
    version: int
    disable_existing_loggers: bool = True
    incremental: bool = False
    formatters: Dict[str, FormatterConfig] = {}
    filters: Dict[str, FilterConfig] = {}
    handlers: Dict[str, HandlerConfig] = {}
    loggers: Dict[str, LoggerConfig] = {}
    root: Optional[LoggerConfig] = None

    @field_validator("version")
    @classmethod
    def supported_version(cls, v):
        if v != 1:
            raise ValueError(f"unsupported version {v}, only version 1 is known")

        return v

    @model_validator(mode="after")
    def references_exist(self):
        problems = self.reference_errors()

        if problems:
            raise ValueError("\n".join(problems))

        return self

    def reference_errors(self):
        problems = []

        for name, handler in self.handlers.items():
            for filter_name in handler.filters:
                if filter_name not in self.filters:
                    problems.append(
                        f"handler '{name}' refers to unknown filter '{filter_name}'"
                    )

            if handler.formatter and handler.formatter not in self.formatters:
                problems.append(
                    f"handler '{name}' refers to unknown formatter"
                    f" '{handler.formatter}'"
                )

        for name, logger in self.named_loggers():
            for handler_name in logger.handlers:
                if handler_name not in self.handlers:
                    problems.append(
                        f"logger '{name}' refers to unknown handler '{handler_name}'"
                    )

            for filter_name in logger.filters:
                if filter_name not in self.filters:
                    problems.append(
                        f"logger '{name}' refers to unknown filter '{filter_name}'"
                    )

        return problems

    def named_loggers(self):
        items = list(self.loggers.items())

        if self.root is not None:
            items.append(("root", self.root))

        return items

    def get_logger(self, name):
        """
        Configuration of the named logger, or None if it is not configured.
        The empty name and "root" both refer to the root logger.
        """
        if name in ("", "root"):
            return self.root

        return self.loggers.get(name)


def _problems(error):
    problems = []

    for err in error.errors():
        msg = err["msg"].removeprefix("Value error, ")
        location = ".".join(str(part) for part in err["loc"])

        for line in msg.splitlines():
            problems.append(f"{location}: {line}" if location else line)

    return problems


def validate_config(data):
    """
    Args:
        data: logging configuration document as a dict.

    Returns:
        LoggingConfig instance

    Raises:
        ConfigError: listing every problem found in the document.
    """
    if isinstance(data, LoggingConfig):
        return data

    try:
        return LoggingConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_problems(e))


def loads(text):
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError([f"not valid JSON: {e}"])

    return validate_config(data)


def dumps(config):
    return json.dumps(validate_config(config).to_dict(), indent=4)


def load_config(path):
    try:
        with open(path, "r") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError([f"cannot read '{path}': {e.strerror}"])

    return loads(text)


def dump_config(config, path):
    with open(path, "w", encoding="utf-8") as export:
        export.write(dumps(config))
