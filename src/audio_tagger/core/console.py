"""Shared Rich console for the tagger's terminal output.

Tables, scan progress and log() messages all go through one Console, which
tests swap for a buffered one with set_console().
"""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """The shared Console, created on first use."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console | None) -> None:
    """Install a Console, or None to go back to a fresh default."""
    global _console
    _console = console


def print_plain(text: str, style: str | None = None) -> None:
    """Print file names, tag values and other library data verbatim.

    Markup and highlighting are off, so a title like "[Live]" prints as-is.
    """
    get_console().print(text, style=style, markup=False, highlight=False)
