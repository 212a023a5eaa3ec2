"""Tests for the shared console and log() output."""

import io

import pytest
from rich.console import Console

from audio_tagger.core.console import get_console, print_plain, set_console
from audio_tagger.core.output import log


@pytest.fixture
def output():
    buffer = io.StringIO()
    set_console(Console(file=buffer, width=120, color_system=None))
    yield buffer
    set_console(None)


def test_print_plain_keeps_brackets(output):
    print_plain("Artist - Song [Live] [bold]")

    assert output.getvalue() == "Artist - Song [Live] [bold]\n"


def test_log_prints_message_verbatim(output):
    log("Skipping [Remix].mp3", "warning")

    assert "Skipping [Remix].mp3" in output.getvalue()


def test_set_console_none_restores_default():
    custom = Console(file=io.StringIO())
    set_console(custom)
    assert get_console() is custom

    set_console(None)

    assert get_console() is not custom
    set_console(None)
