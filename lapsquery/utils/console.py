# Rich console for lapsquery output.
#
# Status messages, the banner and the account table all go through the one
# Console below. Setting console.stderr moves all of them off stdout, which
# --json relies on to keep stdout for the document alone.

import threading

from rich.console import Console

# Global console instance
console = Console(highlight=False)

# Lock for multi-line output
_output_lock = threading.RLock()

# Output levels, from -v / --debug
QUIET = 0
VERBOSE = 1
DEBUG = 2

_level = QUIET


# =============================================================================
# Banner
# =============================================================================

LAPSQUERY_BLUE = "#3B82F6"

BANNER_ART = f"""
[bold {LAPSQUERY_BLUE}]L      AAA  PPPP   SSS   QQQ  U   U EEEEE RRRR  Y   Y[/]
[bold {LAPSQUERY_BLUE}]L     A   A P   P S     Q   Q U   U E     R   R  Y Y[/]
[bold {LAPSQUERY_BLUE}]L     AAAAA PPPP   SSS  Q Q Q U   U EEEE  RRRR    Y[/]
[bold {LAPSQUERY_BLUE}]L     A   A P         S Q  QQ U   U E     R  R    Y[/]
[bold {LAPSQUERY_BLUE}]LLLLL A   A P     SSSS   QQQQ  UUU  EEEEE R   R   Y[/]
"""


def print_banner():
    console.print(BANNER_ART)


# =============================================================================
# Verbosity Control
# =============================================================================


def set_verbosity(verbose: bool, debug: bool):
    """Set the output level; debug implies verbose."""
    global _level
    if debug:
        _level = DEBUG
    elif verbose:
        _level = VERBOSE
    else:
        _level = QUIET


def _is_verbose() -> bool:
    return _level >= VERBOSE


def _is_debug() -> bool:
    return _level >= DEBUG


# =============================================================================
# Status Messages
# =============================================================================


def _emit(marker: str, msg: str, min_level: int = QUIET):
    if _level < min_level:
        return
    with _output_lock:
        console.print(f"{marker} {msg}" if marker else msg)


def status(msg: str):
    """Print a message as is (always visible)."""
    _emit("", msg)


def good(msg: str, verbose_only: bool = False):
    _emit("[green][+][/]", msg, VERBOSE if verbose_only else QUIET)


def warn(msg: str, verbose_only: bool = False):
    """Print a warning in yellow.

    Args:
        msg: Message to print
        verbose_only: If True, only print with -v or --debug
    """
    _emit("[yellow][!][/]", msg, VERBOSE if verbose_only else QUIET)


def error(msg: str):
    _emit("[red][-][/]", msg)


def info(msg: str, verbose_only: bool = False):
    _emit("[blue][*][/]", msg, VERBOSE if verbose_only else QUIET)


def debug(msg: str, exc_info: bool = False):
    """Print a dimmed debug message, with the active traceback if exc_info."""
    if _level < DEBUG:
        return
    with _output_lock:
        console.print(f"[dim][DEBUG][/] {msg}")
        if exc_info:
            console.print_exception()
