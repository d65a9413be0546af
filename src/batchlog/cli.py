import argparse
import logging
import socket
import sys

from batchlog import config as logging_config
from batchlog.commands import CommandError, SheetCommand
from batchlog.logger.handlers import AdminEmailHandler
from batchlog.logger.logger import build_config, initialize_main_logger
from batchlog.routing import RoutingTable
from batchlog.settings import SettingsError, configure, load_settings


LOGGER = logging.getLogger(__name__)


def main(argv=None):
    args = create_parser().parse_args(argv)

    try:
        return args.func(args) or 0
    except (CommandError, logging_config.ConfigError, SettingsError) as e:
        message = e.args[0] if e.args else e.__class__.__name__
        print(f"error: {message}", file=sys.stderr)
        LOGGER.critical(message)
        return 1


def get_settings(args):
    settings = load_settings(args.settings)

    if getattr(args, "debug", False):
        settings = settings.model_copy(update={"debug": True})

    return configure(settings)


def run(args):
    settings = get_settings(args)
    initialize_main_logger(settings, args.logging)
    command = SheetCommand(
        args.input,
        args.handler,
        sheet_format=args.format,
        label_column=args.label,
    )
    result = command.run()
    print(
        f"{result.processed} processed, {result.succeeded} succeeded,"
        f" {len(result.failures)} failed"
    )

    if args.fail_on_error and not result.ok:
        return 1


def check(args):
    try:
        logging_config.load_config(args.config)
    except logging_config.ConfigError as e:
        for problem in e.problems:
            print(problem)

        return 1

    print(f"{args.config}: OK")


def routes(args):
    settings = get_settings(args)

    if args.config:
        config = logging_config.load_config(args.config)
    else:
        config = build_config(settings)

    table = RoutingTable(config, settings)
    handlers = table.route(args.logger, args.level)

    if not handlers:
        print("no handlers")

    for name in handlers:
        print(f"{name}: {table.config.handlers[name].destination.value}")


def dump_config(args):
    logging_config.dump_config(build_config(get_settings(args)), args.output)


def test_email(args):
    settings = get_settings(args)

    if not settings.admins:
        raise CommandError("No admins configured, nothing to send")

    AdminEmailHandler(settings=settings).send_mail(
        f"{settings.email_subject_prefix}Test email from {socket.gethostname()}",
        "If you're reading this, error reports from batch commands will reach"
        " you too.",
    )
    print(f"Sent test email to {', '.join(settings.admin_emails)}")


def create_parser():
    parser = argparse.ArgumentParser(
        description=(
            "run batch commands that report errors to the system log and by email"
        ),
    )
    sub = parser.add_subparsers(
        help="run {subcommand} --help for further information",
        required=True,
        title="subcommands",
    )

    _add_run_command(sub)
    _add_check_command(sub)
    _add_routes_command(sub)
    _add_dump_config_command(sub)
    _add_test_email_command(sub)

    return parser


def _add_settings_argument(parser):
    parser.add_argument(
        "--settings",
        default="batchlog.json",
        help="path to the JSON settings file (default: batchlog.json)",
    )


def _add_run_command(sub):
    parser = sub.add_parser(
        "run",
        help="process every row of a sheet, reporting failures without stopping",
    )

    parser.set_defaults(func=run)
    parser.add_argument(
        "input",
        help="path to a CSV, XLSX or JSON file holding one entity per row",
    )
    parser.add_argument(
        "--handler",
        help=(
            "dotted path of the function processing one row, e.g. if the function"
            " process_order resides in ./myfolder/jobs.py, then this argument"
            " should be myfolder.jobs.process_order"
        ),
        required=True,
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["csv", "json", "xlsx"],
        help="input sheet format (default: guessed from the file extension)",
    )
    parser.add_argument(
        "--label",
        help="column used to name rows in log messages",
    )
    parser.add_argument(
        "--logging",
        default="logging.json",
        help="path to a logging configuration JSON file (default: logging.json)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="log to the console instead of the system log and email",
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="exit with status 1 if any row failed",
    )
    _add_settings_argument(parser)


def _add_check_command(sub):
    parser = sub.add_parser("check", help="validate a logging configuration file")

    parser.set_defaults(func=check)
    parser.add_argument(
        "config",
        help="path to the logging configuration JSON file",
    )


def _add_routes_command(sub):
    parser = sub.add_parser(
        "routes",
        help="show which handlers a record would reach",
    )

    parser.set_defaults(func=routes)
    parser.add_argument(
        "--logger",
        default="batchlog.commands",
        help="logger name (default: batchlog.commands)",
    )
    parser.add_argument(
        "--level",
        default="ERROR",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="record severity (default: ERROR)",
    )
    parser.add_argument(
        "--config",
        help="path to a logging configuration JSON file (default: built-in)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="resolve routes as in debug mode",
    )
    _add_settings_argument(parser)


def _add_dump_config_command(sub):
    parser = sub.add_parser(
        "dump-config",
        help="save the logging configuration for the current settings as JSON",
    )

    parser.set_defaults(func=dump_config)
    parser.add_argument(
        "output",
        help="path to output JSON file",
    )
    _add_settings_argument(parser)


def _add_test_email_command(sub):
    parser = sub.add_parser(
        "test-email",
        help="send a test email to the admins",
    )

    parser.set_defaults(func=test_email)
    _add_settings_argument(parser)


if __name__ == "__main__":
    sys.exit(main())
