import json
import logging
import logging.handlers
import os
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError, field_validator


LOGGER = logging.getLogger(__name__)
TRUE_VALUES = ("1", "true", "yes", "on")
ADMIN_PATTERN = re.compile(r"^\s*(?P<name>.*?)\s*<(?P<email>[^>]+)>\s*$")


class SettingsError(Exception):
    pass


class Settings(BaseModel):
    debug: bool = False
    admins: List[Tuple[str, str]] = []
    server_email: str = "root@localhost"
    email_host: str = "localhost"
    email_port: int = 25
    email_host_user: Optional[str] = None
    email_host_password: Optional[str] = None
    email_use_tls: bool = False
    email_timeout: Optional[float] = None
    email_subject_prefix: str = "[batchlog] "
    syslog_address: Union[str, Tuple[str, int]] = "/dev/log"
    syslog_facility: str = "user"
    log_file: Optional[str] = None

    @field_validator("admins", mode="before")
    @classmethod
    def split_admins(cls, v):
        """
        Accept admins either as (name, email) pairs or as a string of
        comma-separated "Name <email>" entries.
        """
        if isinstance(v, str):
            return parse_admins(v)

        return v

    @field_validator("syslog_facility")
    @classmethod
    def known_facility(cls, v):
        if v.lower() not in logging.handlers.SysLogHandler.facility_names:
            raise ValueError(f"unknown syslog facility '{v}'")

        return v.lower()

    @property
    def admin_emails(self):
        return [email for _, email in self.admins]


def parse_admins(value):
    admins = []

    for entry in filter(None, (e.strip() for e in value.split(","))):
        match = ADMIN_PATTERN.match(entry)

        if match:
            admins.append((match["name"], match["email"]))
        else:
            admins.append(("", entry))

    return admins


def parse_address(value):
    host, sep, port = value.rpartition(":")

    if sep and host and port.isdigit():
        return (host, int(port))

    return value


def environ_overrides(environ):
    overrides = {}

    if "BATCHLOG_DEBUG" in environ:
        overrides["debug"] = environ["BATCHLOG_DEBUG"].strip().lower() in TRUE_VALUES

    if "BATCHLOG_ADMINS" in environ:
        overrides["admins"] = parse_admins(environ["BATCHLOG_ADMINS"])

    if "BATCHLOG_EMAIL_HOST" in environ:
        overrides["email_host"] = environ["BATCHLOG_EMAIL_HOST"]

    if "BATCHLOG_EMAIL_PORT" in environ:
        overrides["email_port"] = environ["BATCHLOG_EMAIL_PORT"]

    if "BATCHLOG_SYSLOG_ADDRESS" in environ:
        overrides["syslog_address"] = parse_address(
            environ["BATCHLOG_SYSLOG_ADDRESS"]
        )

    return overrides


def load_settings(path="batchlog.json", environ=None):
    """
    Load settings from a JSON file, if it exists, then apply overrides
    from BATCHLOG_* environment variables.

    Args:
        path: location of the JSON settings file.
        environ: mapping of environment variables, defaults to os.environ.

    Returns:
        Settings instance
    """
    environ = os.environ if environ is None else environ
    data = {}

    if path and Path(path).exists():
        with open(path, "r") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SettingsError(f"Settings file '{path}' is not valid JSON: {e}")

        LOGGER.debug(f"Settings loaded, path={path}")

    data.update(environ_overrides(environ))

    try:
        return Settings(**data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}")


_settings = None


def configure(settings):
    global _settings
    _settings = settings
    return settings


def get_settings():
    if _settings is None:
        configure(load_settings())

    return _settings
