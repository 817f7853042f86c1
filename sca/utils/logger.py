"""Logging setup and terminal-safe text for report output.

Reports use emoji markers; terminals without UTF-8 support get ASCII
replacements instead of a UnicodeEncodeError halfway through a run.
"""
import locale
import logging
import os
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Unicode to ASCII mapping for non-UTF-8 terminals
ICON_MAP = {
    '✅': '[OK]',
    '💩': '[FAIL]',
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '…': '...',
}

LOG_FORMAT = "%(name)s: %(message)s"


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding ('utf-8', 'cp1252', 'ascii', ...)."""
    if getattr(sys.stdout, 'encoding', None):
        return sys.stdout.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (ValueError, LookupError):
        return 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str, utf8: Optional[bool] = None) -> str:
    """Replace Unicode markers with ASCII equivalents unless the terminal handles UTF-8.

    Args:
        text: Text potentially containing Unicode markers
        utf8: Force the capability check result (detected when None)
    """
    if utf8 is None:
        utf8 = is_utf8_capable()
    if utf8:
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text


def configure_logging(console: Console, verbose: bool = False) -> None:
    """Route diagnostics through a RichHandler bound to the shared console.

    Level priority: --verbose flag, then SCA_LOG_LEVEL, then WARNING.
    """
    level_name = 'DEBUG' if verbose else os.getenv('SCA_LOG_LEVEL', 'WARNING').upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )
