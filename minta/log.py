"""
log.py — Logging setup and the coloured console helpers used by the CLI.
"""

import logging
import sys
from datetime import datetime

# ─── Colours ──────────────────────────────────────────────────────────────────
G   = "\033[92m"
Y   = "\033[93m"
R   = "\033[91m"
B   = "\033[1m"
C   = "\033[96m"
M   = "\033[95m"
BL  = "\033[94m"
DIM = "\033[2m"
RST = "\033[0m"

LEVEL_COLOURS = {
    logging.ERROR: R,
    logging.WARNING: Y,
    logging.INFO: G,
    logging.DEBUG: BL,
}


def ok(msg):   print(f"  {G}✓{RST} {msg}")
def info(msg): print(f"  {Y}ℹ{RST} {msg}")
def warn(msg): print(f"  {R}⚠{RST} {msg}")
def hdr(msg):  print(f"\n  {B}{C}▸ {msg}{RST}")


class ColourFormatter(logging.Formatter):
    """``[2024-01-01 12:00:00][minta.bitcoind:bitcoind.py:42][INFO] message``"""

    def __init__(self, verbose: bool = True, colour: bool = True):
        super().__init__()
        self.verbose = verbose
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        if self.verbose:
            stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
            line = f"[{stamp}][{record.name}:{record.filename}:{record.lineno}][{record.levelname}] {message}"
        else:
            line = f"[{record.levelname}] {message}"
        if not self.colour:
            return line
        return f"{LEVEL_COLOURS.get(record.levelno, M)}{line}{RST}"


def setup_logging(verbose: bool = False, stream=None) -> logging.Logger:
    """Errors only for third-party loggers; INFO (DEBUG if verbose) for minta."""
    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ColourFormatter(verbose=True, colour=stream.isatty()))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.ERROR)

    logger = logging.getLogger("minta")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
