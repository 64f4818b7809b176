"""Diagnostics logging and the command/response log file."""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from lib.rcon.exceptions import LogError

LOGGER_NAME = "lib.rcon"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Record attributes copied into JSON output
EXTRA_FIELDS = ("address", "command", "protocol")

_logger: logging.Logger | None = None


def setup_logging(
    level: int = logging.WARNING,
    json_output: bool = False,
    log_file: str | None = None,
) -> None:
    """Configure the package logger.

    Diagnostics always go to stderr; stdout is reserved for command
    responses.

    Parameters
    ----------
    level : int, optional
        Logging level, by default logging.WARNING
    json_output : bool, optional
        Emit one JSON object per record, by default False
    log_file : str | None, optional
        Also write diagnostics to this file, by default None
    """
    global _logger

    formatter: logging.Formatter = JsonFormatter() if json_output else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    _logger = logging.getLogger(LOGGER_NAME)
    _logger.setLevel(level)
    _logger.propagate = False
    for handler in _logger.handlers:
        handler.close()
    _logger.handlers.clear()

    for handler in handlers:
        handler.setFormatter(formatter)
        _logger.addHandler(handler)


def get_logger() -> logging.Logger:
    """Get the package logger, configuring defaults on first use."""
    if _logger is None:
        setup_logging()

    return _logger


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with address/command/protocol when set."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update({name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)})

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data)


class TextFormatter(logging.Formatter):
    """``[time] [LEVEL] [address] message`` lines."""

    def __init__(self) -> None:
        super().__init__(fmt="[%(asctime)s] [%(levelname)s] %(prefix)s%(message)s", datefmt=DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        address = getattr(record, "address", None)
        record.prefix = f"[{address}] " if address else ""
        return super().format(record)


def _log(level: int, message: str, address: str | None, **fields: Any) -> None:
    if address:
        fields["address"] = address
    get_logger().log(level, message, extra=fields)


def log_debug(message: str, address: str | None = None, **fields: Any) -> None:
    """Log a debug message, tagged with the server address when given."""
    _log(logging.DEBUG, message, address, **fields)


def log_info(message: str, address: str | None = None, **fields: Any) -> None:
    """Log info message.

    Parameters
    ----------
    message : str
        Log message
    address : str | None, optional
        Remote server address, by default None
    **fields : Any
        Additional record fields such as ``command`` or ``protocol``
    """
    _log(logging.INFO, message, address, **fields)


def log_warn(message: str, address: str | None = None, **fields: Any) -> None:
    """Log a warning message."""
    _log(logging.WARNING, message, address, **fields)


def write_command_log(path: str, address: str, command: str, response: str) -> None:
    """Append a command/response pair to the command log.

    Parameters
    ----------
    path : str
        Log file path, empty disables logging
    address : str
        Remote server address
    command : str
        Executed command
    response : str
        Printed response

    Raises
    ------
    LogError
        If the log file cannot be written
    """
    if not path:
        return

    log_path = Path(path)
    entry = f"[{datetime.now().strftime(DATE_FORMAT)}] {address}: {command}\n{response}\n\n"

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(entry)
    except OSError as e:
        raise LogError(f"failed to write {log_path}: {e}", address=address) from e
