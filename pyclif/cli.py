"""Command line entry point.

    pyclif [--config FILE] [--debug LOGFILE] <command> [arguments]

The `[pyclif]` section of the configuration tells where the commands and
patterns live; the whole configuration is given to handlers as settings::

    [pyclif]
    name = "mytool"
    commands = "./commands"
    patterns = "./patterns"
"""

from __future__ import annotations

import asyncio
import sys

from .ansi import Styles, paint
from .app import Clif
from .builtins import BUILTIN_PATTERNS
from .config import Configuration
from .config_loader import ConfigLoader
from .constants import APP_SECTION, DEFAULT_APP_NAME
from .logging_setup import get_logger, init_logger
from .models import (
    CommandInterrupted,
    CompositionError,
    ConfigurationError,
    ExitCode,
    Fail,
    UnknownCommandError,
    UsageError,
)

__all__ = ["main", "run_app"]

_LEADING_OPTIONS = ("--config", "--debug")


def _error(message: str) -> None:
    print(paint("Error:", Styles.FAILURE, sys.stderr), message, file=sys.stderr)


def use_leading_params(argv: list[str]) -> dict[str, str]:
    """Remove `--config X` and `--debug X` from the start of argv, return their values."""
    params: dict[str, str] = {}
    while len(argv) >= 2 and argv[0] in _LEADING_OPTIONS:  # noqa: PLR2004
        params[argv[0][2:]] = argv[1]
        del argv[:2]
    return params


def run_app(app: Clif, argv: list[str] | None = None) -> ExitCode:
    """Run `app` and map its outcome to an exit code.

    SystemExit raised by a command (eg: the "exit" intent) is not caught.
    """
    log = get_logger("pyclif")
    try:
        asyncio.run(app.run(argv, handle_signals=True))
    except (KeyboardInterrupt, asyncio.CancelledError, CommandInterrupted):
        return ExitCode.INTERRUPTED
    except CompositionError as e:
        for err in e.exceptions:
            _error(str(err))
        return ExitCode.USAGE_ERROR
    except (UsageError, UnknownCommandError) as e:
        _error(str(e))
        return ExitCode.USAGE_ERROR
    except ConfigurationError as e:
        _error(str(e))
        return ExitCode.ENV_ERROR
    except Exception as e:  # noqa: BLE001
        _error(Fail.from_error(e).summary())
        log.debug("Command failed", exc_info=True)
        return ExitCode.COMMAND_ERROR
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> None:
    """Run the command."""
    argv = list(sys.argv[1:] if argv is None else argv)
    params = use_leading_params(argv)
    if "debug" in params:
        init_logger(filename=params["debug"], force_debug=True)
    else:
        init_logger()
    log = get_logger("startup")

    try:
        config = ConfigLoader(log).load(params.get("config", ""))
    except ConfigurationError:
        sys.exit(ExitCode.ENV_ERROR)
    settings = Configuration(config, logger=log)
    section = settings.section(APP_SECTION)

    commands = section.get_str("commands")
    if not commands:
        log.critical('No commands directory configured, add `commands = "<dir>"` to the [%s] section', APP_SECTION)
        sys.exit(ExitCode.ENV_ERROR)

    app = Clif(
        structure=commands,
        patterns=section.get_str("patterns") or (),
        settings=settings,
        name=section.get_str("name", DEFAULT_APP_NAME),
        description=section.get_str("description"),
    )
    if section.get_bool("builtins", True):
        for pattern, handler in BUILTIN_PATTERNS:
            app.register(pattern, handler)
    sys.exit(run_app(app, argv))


if __name__ == "__main__":
    main()
