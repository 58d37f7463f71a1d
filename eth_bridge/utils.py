"""Logging setup and input parsing."""

import logging
import os
from decimal import Decimal
from pathlib import Path

import coloredlogs

logger = logging.getLogger(__name__)

#: Libraries that log every HTTP request at debug level
NOISY_LOGGERS = (
    "web3.providers.HTTPProvider",
    "web3.RequestManager",
    "urllib3.connectionpool",
)


def setup_console_logging(
    default_log_level: str = "warning",
    simplified_logging: bool = False,
    log_file: Path | None = None,
) -> logging.Logger:
    """Coloured terminal logging for running transfers by hand.

    The level comes from the ``LOG_LEVEL`` environment variable, e.g. ``LOG_LEVEL=info``,
    or ``default_log_level`` when unset. JSON-RPC and HTTP request chatter is capped at warning.

    :param simplified_logging:
        Print messages only, without time and logger name

    :param log_file:
        Also write to this file, at info level or more verbose

    :return:
        Root logger
    """
    level_name = os.environ.get("LOG_LEVEL", default_log_level).upper()
    level = logging.getLevelName(level_name)
    assert isinstance(level, int), f"Unknown log level: {level_name}"

    fmt = "%(message)s" if simplified_logging else "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
    date_fmt = "%H:%M:%S"

    coloredlogs.install(level=level, fmt=fmt, datefmt=date_fmt)

    root = logging.getLogger()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_level = min(logging.INFO, level)
        handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        handler.setLevel(file_level)
        handler.setFormatter(logging.Formatter(fmt, date_fmt))
        root.setLevel(file_level)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root


def parse_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert user input to a :py:class:`Decimal` without binary float artifacts.

    Floats are routed through ``str()`` so that ``0.1`` becomes ``Decimal("0.1")``
    and not ``Decimal("0.1000000000000000055511151231257827...")``.

    :raise ValueError:
        If the value cannot be parsed as a number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")

    if isinstance(value, Decimal):
        return value

    if isinstance(value, float):
        value = str(value)

    try:
        return Decimal(value)
    except (ArithmeticError, TypeError) as e:
        raise ValueError(f"Not a number: {value!r}") from e
