"""Console logging with Unicode fallback for terminal compatibility.

All diagnostic output goes to stderr through a Rich console so that
``census scan --output stdout`` keeps stdout clean for the JSON payload.
Detects terminal encoding and swaps Unicode status icons for ASCII
alternatives on terminals that don't support UTF-8.
"""
import locale
import sys
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape


ICON_MAP = {
    '✓': '[OK]',
    '✗': '[FAIL]',
    '⚠': '[WARN]',
    '→': '->',
    '⇒': '=>',
    '…': '...',
    '•': '*',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    if hasattr(sys.stderr, 'encoding') and sys.stderr.encoding:
        return sys.stderr.encoding.lower()

    try:
        return locale.getpreferredencoding().lower()
    except (LookupError, ValueError):
        return 'ascii'


def is_utf8_capable() -> bool:
    """Check if the terminal can handle UTF-8 Unicode characters."""
    return detect_terminal_encoding().replace('_', '-') in {'utf-8', 'utf8'}


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    for unicode_char, ascii_replacement in ICON_MAP.items():
        text = text.replace(unicode_char, ascii_replacement)
    return text


class ScanLogger:
    """Verbose-aware logger printing through a Rich console."""

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console(stderr=True, legacy_windows=not is_utf8_capable())
        self.verbose = verbose

    def set_verbose(self, verbose: bool):
        self.verbose = verbose

    def _emit(self, style: str, label: str, message: str, *details: Any):
        text = sanitize_for_terminal(message)
        if details:
            text += " " + " ".join(escape(str(d)) for d in details)
        self.console.print(f"[{style}]{label}[/{style}] {text}")

    def debug(self, message: str, *details: Any):
        """Print only when verbose mode is on."""
        if self.verbose:
            self._emit("dim", "debug", message, *details)

    def info(self, message: str, *details: Any):
        self._emit("bold blue", "info", message, *details)

    def warning(self, message: str, *details: Any):
        self._emit("bold yellow", "warning", message, *details)

    def error(self, message: str, *details: Any):
        self._emit("bold red", "error", message, *details)


_logger = None


def get_logger() -> ScanLogger:
    """Get or create the process-wide ScanLogger."""
    global _logger
    if _logger is None:
        _logger = ScanLogger()
    return _logger


def set_verbose(verbose: bool):
    get_logger().set_verbose(verbose)
