# Copyright (c) 2026 pycdk contributors
# SPDX-License-Identifier: ISC
#
# Terminal surface tests: color format strings, key decoding, regions and
# frame composition on the headless terminal.

import codecs
import io
import os
import sys

import pytest

import cdkterm
from cdkterm import Key


def _decode(s):
    """Feed a string through a KeyDecoder, flushing at the end."""
    decoder = cdkterm.KeyDecoder()
    keys = []
    for ch in s:
        key = decoder.feed(ch)
        if key is not None:
            keys.append(key)
        pending = decoder.pop_pending()
        if pending is not None:
            keys.append(pending)
    key = decoder.flush()
    if key is not None:
        keys.append(key)
    return keys


# ---------------------------------------------------------------------------
# Colors and styles
# ---------------------------------------------------------------------------


def test_style_from_def():
    style = cdkterm.style_from_def("fg:white,bg:#102030,bold,underline")
    assert style.fg == cdkterm.NAMED_COLORS["white"]
    assert style.bg == cdkterm.Color.rgb(0x10, 0x20, 0x30)
    assert style.bold
    assert style.underline
    assert not style.standout

    assert cdkterm.style_from_def("reverse") == cdkterm.A_REVERSE
    assert cdkterm.style_from_def("") == cdkterm.STYLE_DEFAULT


def test_style_from_def_warnings():
    warnings = []
    style = cdkterm.style_from_def(
        "fg:nosuchcolor,bg:300,blink", lambda *args: warnings.append(args)
    )
    assert style == cdkterm.STYLE_DEFAULT
    assert len(warnings) == 3


def test_parse_color():
    assert cdkterm.parse_color("brightred") == cdkterm.Color("named", 9)
    assert cdkterm.parse_color("purple") == cdkterm.NAMED_COLORS["magenta"]
    assert cdkterm.parse_color("0x10") == cdkterm.Color.index(16)


def test_style_or():
    style = cdkterm.A_BOLD | cdkterm.A_UNDERLINE
    assert style.bold and style.underline

    red = cdkterm.Style(fg=cdkterm.NAMED_COLORS["red"])
    assert (red | cdkterm.A_BOLD).fg == cdkterm.NAMED_COLORS["red"]


def test_sgr():
    assert cdkterm.STYLE_DEFAULT.sgr() == "\x1b[0;39;49m"
    style = cdkterm.Style(
        fg=cdkterm.NAMED_COLORS["brightblue"], bg=cdkterm.Color.index(200), bold=True
    )
    assert style.sgr() == "\x1b[0;94;48;5;200;1m"


# ---------------------------------------------------------------------------
# Key decoding
# ---------------------------------------------------------------------------


def test_decode_plain_keys():
    assert _decode("ab\r\x7f\t") == ["a", "b", Key.RETURN, Key.BACKSPACE, Key.TAB]


def test_decode_escape_sequences():
    assert _decode("\x1b[A\x1bOB\x1b[5~\x1b[3~") == [
        Key.UP,
        Key.DOWN,
        Key.PAGE_UP,
        Key.DELETE,
    ]


def test_decode_lone_escape():
    assert _decode("\x1b") == [Key.ESCAPE]


def test_decode_dead_end_sequence():
    """An unknown sequence yields ESC followed by its characters."""
    assert _decode("\x1bx") == [Key.ESCAPE, "x"]
    assert _decode("\x1b[Zq") == [Key.ESCAPE, "Z", "q"]


def test_decoder_partial():
    decoder = cdkterm.KeyDecoder()
    assert decoder.feed("\x1b") is None
    assert decoder.partial
    assert decoder.feed("[") is None
    assert decoder.feed("D") == Key.LEFT
    assert not decoder.partial


# ---------------------------------------------------------------------------
# Surfaces and regions
# ---------------------------------------------------------------------------


@pytest.fixture
def surface():
    term = cdkterm.HeadlessTerminal(10, 20)
    term.open_session()
    yield term
    term.close_session()


def test_session_exclusive(surface):
    with pytest.raises(cdkterm.TerminalError):
        surface.open_session()


def test_region_requires_session():
    term = cdkterm.HeadlessTerminal(10, 20)
    with pytest.raises(cdkterm.TerminalError):
        term.region(1, 1)


def test_region_size_checked(surface):
    with pytest.raises(cdkterm.TerminalError):
        surface.region(0, 5)
    with pytest.raises(cdkterm.TerminalError):
        surface.region(11, 5)


@pytest.mark.parametrize(
    "x, y, expected",
    [
        (cdkterm.LEFT, cdkterm.TOP, (0, 0)),
        (cdkterm.RIGHT, cdkterm.BOTTOM, (8, 16)),
        (cdkterm.CENTER, cdkterm.CENTER, (4, 8)),
        (100, 100, (8, 16)),
        (-3, -3, (0, 0)),
    ],
)
def test_resolve_position(surface, x, y, expected):
    assert surface.resolve_position(x, y, 2, 4) == expected


def test_paint_and_erase(surface):
    region = surface.region(3, 6, 1, 2)
    region.write(1, 1, "hi")
    region.box = True
    region.draw_border()
    surface.paint(region)

    rows = surface.snapshot()
    assert rows[1][2:8] == "┌────┐"
    assert rows[2][2:8] == "│hi  │"

    surface.erase(region)
    assert all(row.strip() == "" for row in surface.snapshot())


def test_region_write_clips(surface):
    region = surface.region(1, 4)
    assert region.write(0, 2, "abcdef") == 2
    assert region.write(0, -1, "xyz") == 2
    assert region.write(5, 0, "nope") == 0
    assert region.text() == ["yzab"]


def test_shadow(surface):
    region = surface.region(2, 3, 0, 0)
    region.shadow = True
    shadow = cdkterm.A_REVERSE
    region.shadow_style = shadow
    surface.paint(region)

    assert surface.style_at(1, 3) == shadow
    assert surface.style_at(2, 1) == shadow
    assert surface.style_at(0, 3) == cdkterm.STYLE_DEFAULT


def test_close_session_invalidates_regions():
    term = cdkterm.HeadlessTerminal(10, 20)
    term.open_session()
    region = term.region(1, 1)
    assert region.alive

    term.close_session()
    assert not region.alive
    # Painting a dead region does nothing
    term.paint(region)


def test_destroy_region(surface):
    region = surface.region(1, 1)
    surface.destroy(region)
    assert not region.alive
    surface.destroy(region)


def test_headless_input(surface):
    surface.feed("a", Key.UP)
    assert surface.pending_keys == 2
    assert surface.read_key() == "a"
    assert surface.read_key() == Key.UP
    with pytest.raises(cdkterm.TerminalError):
        surface.read_key()


def test_terminal_requires_tty(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO())
    with pytest.raises(cdkterm.TerminalError):
        cdkterm.Terminal()


class _FakeTty(io.StringIO):
    def isatty(self):
        return True

    def fileno(self):
        return 0


class _NoInput:
    def poll(self, timeout):
        return []


@pytest.fixture
def unix_term(monkeypatch):
    """A Terminal with an open session reading from a list of byte chunks."""
    if os.name == "nt":
        pytest.skip("needs a Unix terminal")

    monkeypatch.setattr(sys, "stdin", _FakeTty())
    monkeypatch.setattr(sys, "stdout", _FakeTty())
    monkeypatch.setenv("LINES", "24")
    monkeypatch.setenv("COLUMNS", "80")

    term = cdkterm.Terminal()
    term._session_open = True
    term._decoder = codecs.getincrementaldecoder("utf-8")("replace")
    term._poller = _NoInput()

    chunks = []
    monkeypatch.setattr(cdkterm.os, "read", lambda fd, n: chunks.pop(0))
    return term, chunks


def test_read_key_keeps_rest_of_chunk(unix_term):
    term, chunks = unix_term
    chunks.extend([b"abc", "dé".encode(), b"\x1b[A"])
    keys = [term.read_key() for _ in range(6)]
    assert keys == ["a", "b", "c", "d", "é", Key.UP]
    assert chunks == []


def test_read_key_end_of_input(unix_term):
    term, chunks = unix_term
    chunks.extend([b"x", b""])
    assert term.read_key() == "x"
    with pytest.raises(cdkterm.TerminalError):
        term.read_key()


def test_read_key_escape_before_end_of_input(unix_term):
    term, chunks = unix_term
    chunks.extend([b"\x1b", b""])
    assert term.read_key() == Key.ESCAPE
