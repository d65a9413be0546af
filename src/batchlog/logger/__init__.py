DEFAULT_CONFIG = {
    "disable_existing_loggers": False,
    "filters": {
        "context": {
            "()": "batchlog.logger.logger.ContextFilter",
        },
        "require_debug_false": {
            "()": "batchlog.logger.logger.RequireDebugFalse",
        },
        "require_debug_true": {
            "()": "batchlog.logger.logger.RequireDebugTrue",
        },
    },
    "formatters": {
        "default": {
            "format": "%(levelname)s:%(name)s: %(processing_stack)s: %(message)s",
        },
        "syslog": {
            "format": "batchlog[%(process)d]: %(levelname)s %(name)s:"
            " %(processing_stack)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "filters": ["require_debug_true", "context"],
            "formatter": "default",
            "level": "DEBUG",
        },
        "syslog": {
            "class": "logging.handlers.SysLogHandler",
            "address": "/dev/log",
            "facility": "user",
            "filters": ["require_debug_false", "context"],
            "formatter": "syslog",
            "level": "WARNING",
        },
        "mail_admins": {
            "class": "batchlog.logger.handlers.AdminEmailHandler",
            "filters": ["require_debug_false", "context"],
            "formatter": "default",
            "level": "WARNING",
        },
    },
    "loggers": {
        "batchlog.commands": {
            "handlers": ["console", "syslog", "mail_admins"],
            "level": "DEBUG",
            "propagate": False,
        },
        "batchlog.cli": {
            "handlers": ["console", "syslog", "mail_admins"],
            "level": "INFO",
            "propagate": False,
        },
    },
    "root": {
        "level": "WARNING",
        "handlers": [
            "console",
        ],
    },
    "version": 1,
}
