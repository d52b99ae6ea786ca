"""
Logging configuration for the Nocostcoin wallet.

Two output formats:
  - **human** – single line, coloured on a terminal, with the wallet
    context (short address, record version, nonce) appended
  - **json**  – newline-delimited JSON with the context as top-level keys

Wallet modules log through named loggers (``nocostcoin_keystore``,
``nocostcoin_session``, ``nocostcoin_facade``, ``nocostcoin_node`` ...)
and attach context with ``extra=``:

    logger.info("Wallet unlocked", extra={"address": record.address})

Keys, phrases and passwords are never logged.  The optional log file is
created readable by its owner only, since it still links addresses to
activity.

Usage:
    from nocostcoin_wallet.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="json", log_file="wallet.log")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from nocostcoin_wallet.config import LoggingConfig

# Fields a wallet log call may pass via ``extra=``
CONTEXT_FIELDS = ("address", "version", "nonce", "status")

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")

LOG_FILE_MODE = 0o600


def _context(record: logging.LogRecord) -> dict:
    return {k: getattr(record, k) for k in CONTEXT_FIELDS if hasattr(record, k)}


def short_address(address: str) -> str:
    """``c5785e18…c66a`` form of a 64-hex address."""
    if len(address) <= 16:
        return address
    return f"{address[:8]}…{address[-4:]}"


class _JSONFormatter(logging.Formatter):
    """One JSON object per record; wallet context as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _HumanFormatter(logging.Formatter):
    """``12:00:00 [INFO   ] facade: Wallet unlocked  address=c5785e18…c66a``"""

    LEVEL_COLOURS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, colour: bool = True):
        super().__init__()
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"[{record.levelname:<7}]"
        if self.colour:
            level = f"{self.LEVEL_COLOURS.get(record.levelno, '')}{level}{self.RESET}"
        line = f"{ts} {level} {record.name.removeprefix('nocostcoin_')}: {record.getMessage()}"

        ctx = _context(record)
        if "address" in ctx:
            ctx["address"] = short_address(str(ctx["address"]))
        if ctx:
            line += "  " + " ".join(f"{k}={v}" for k, v in ctx.items())
        if record.exc_info and record.exc_info[1]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _open_log_file(log_file: str) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(mode=LOG_FILE_MODE, exist_ok=True)
    path.chmod(LOG_FILE_MODE)
    handler = logging.FileHandler(str(path), encoding="utf-8")
    handler.setFormatter(_JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    level : str
        One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
    fmt : str
        ``"human"`` or ``"json"``, for stderr.  Colour is used only when
        stderr is a terminal, so CLI output piped elsewhere stays clean.
    log_file : str, optional
        Also append JSON lines to this file (mode 0600).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        console.setFormatter(_JSONFormatter())
    else:
        console.setFormatter(_HumanFormatter(colour=sys.stderr.isatty()))
    root.addHandler(console)

    if log_file:
        root.addHandler(_open_log_file(log_file))

    if root.level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def setup_from_config(cfg: LoggingConfig) -> None:
    setup_logging(level=cfg.level, fmt=cfg.format, log_file=cfg.file)
