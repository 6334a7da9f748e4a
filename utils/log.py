"""
Color-coded logging utilities for the relay.

Provides consistent, color-coded console output for the API server and
helpers for keeping credentials out of log lines.
Uses colorama for cross-platform terminal color support.
"""

import logging
import sys
from typing import Optional

from colorama import Fore, Style, init

# Initialize colorama (auto-reset after each print)
init(autoreset=True)


# ---------------------------------------------------------------------------
# Color constants
# ---------------------------------------------------------------------------

class C:
    """Color shortcuts for log output."""
    HEADER = Fore.CYAN + Style.BRIGHT
    DEBUG = Style.DIM
    INFO = Fore.WHITE
    WARN = Fore.YELLOW + Style.BRIGHT
    ERR = Fore.RED + Style.BRIGHT
    RESET = Style.RESET_ALL


LEVEL_COLORS = {
    logging.DEBUG: C.DEBUG,
    logging.INFO: C.INFO,
    logging.WARNING: C.WARN,
    logging.ERROR: C.ERR,
    logging.CRITICAL: C.ERR,
}


class ColorFormatter(logging.Formatter):
    """Formatter that colors the whole record by level."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{message}{C.RESET}"


# ---------------------------------------------------------------------------
# Secret masking
# ---------------------------------------------------------------------------

def presence(value: Optional[str], present: str = "***SET***", absent: str = "MISSING") -> str:
    """Report whether a secret is set without revealing it."""
    return present if value else absent


def mask_key(value: Optional[str], absent: str = "MISSING", visible: int = 8) -> str:
    """Show only a short prefix of an application key."""
    if not value:
        return absent
    return f"{value[:visible]}..."


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

def header(msg: str) -> None:
    """Print a bold section header."""
    print(f"\n{C.HEADER}{'='*60}")
    print(f"  {msg}")
    print(f"{'='*60}{C.RESET}\n")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the root logger with a colored console handler.

    Safe to call more than once; the handler is only installed the first time.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Prevent duplicate handlers on re-import
    if any(isinstance(h.formatter, ColorFormatter) for h in root.handlers):
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter(
        "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    root.addHandler(handler)
    return root
