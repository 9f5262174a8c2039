# Message helpers for library code.
#
# Library modules log through here rather than through utils.console: success
# and progress messages only show with -v/--debug, so a plain run prints just
# the result. LAPSQUERY_DEBUG=1 turns on debug output without --debug.

import os

from . import console as _console


def set_verbosity(verbose: bool, debug_flag: bool):
    """Apply -v/--debug (and LAPSQUERY_DEBUG) to all output."""
    _console.set_verbosity(verbose, debug_flag or bool(os.getenv("LAPSQUERY_DEBUG")))


def status(msg: str):
    _console.status(msg)


def good(msg: str):
    _console.good(msg, verbose_only=True)


def info(msg: str):
    _console.info(msg, verbose_only=True)


def warn(msg: str, verbose_only: bool = False):
    _console.warn(msg, verbose_only=verbose_only)


def error(msg: str):
    _console.error(msg)


def debug(msg: str, exc_info: bool = False):
    _console.debug(msg, exc_info=exc_info)
