#!/usr/bin/env python3

# Copyright (c) 2026 pycdk contributors
# SPDX-License-Identifier: ISC

"""
cdkterm -- terminal surface for the cdk widget layer

Everything that touches the terminal lives here: the session (cbreak mode and
the alternate screen), the composed screen frame, per-widget cell buffers
(regions) with their box decoration, color format strings and keyboard
decoding. cdk.py never writes to the terminal itself. It allocates a Region
per widget, draws into it, and asks the surface to paint, erase and flush.

Two surfaces are provided:

  Terminal          the controlling Unix terminal
  HeadlessTerminal  an in-memory screen with scripted input, for tests and
                    batch use

Standard library only: termios, select, signal, shutil, os, sys, codecs.
"""

import codecs
import collections
import os
import re
import shutil
import signal
import sys

_IS_WINDOWS = os.name == "nt"

if not _IS_WINDOWS:
    import select
    import termios


class TerminalError(RuntimeError):
    """
    Raised when the surface cannot open a session, allocate a region, or
    deliver input.
    """


# ---------------------------------------------------------------------------
# Symbolic positions
# ---------------------------------------------------------------------------

# Same values as libcdk, so that a sentinel used on the wrong axis falls
# through to clamping instead of matching by accident
LEFT = 9000
RIGHT = 9001
CENTER = 9002
TOP = 9003
BOTTOM = 9004

POS_TO_STR = {
    LEFT: "LEFT",
    RIGHT: "RIGHT",
    CENTER: "CENTER",
    TOP: "TOP",
    BOTTOM: "BOTTOM",
}


# ---------------------------------------------------------------------------
# Colors and styles
# ---------------------------------------------------------------------------


class Color:
    """Terminal color: terminal default, named (0-15), 256-color index or RGB."""

    __slots__ = ("kind", "value")

    def __init__(self, kind, value):
        self.kind = kind
        self.value = value

    @staticmethod
    def rgb(r, g, b):
        return Color("rgb", (r, g, b))

    @staticmethod
    def index(n):
        return Color("index", n)

    def sgr(self, background=False):
        """Return the SGR parameter selecting this color."""
        if self.kind == "default":
            return "49" if background else "39"
        if self.kind == "named":
            base = 40 if background else 30
            if self.value < 8:
                return str(base + self.value)
            return str(base + 60 + self.value - 8)
        prefix = "48" if background else "38"
        if self.kind == "index":
            return f"{prefix};5;{self.value}"
        return "{};2;{};{};{}".format(prefix, *self.value)

    def __eq__(self, other):
        if not isinstance(other, Color):
            return NotImplemented
        return self.kind == other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))

    def __repr__(self):
        if self.kind == "default":
            return "Color.DEFAULT"
        return f"Color({self.kind!r}, {self.value!r})"


Color.DEFAULT = Color("default", None)

_BASE_COLOR_NAMES = (
    "black",
    "red",
    "green",
    "yellow",
    "blue",
    "magenta",
    "cyan",
    "white",
)

# Color names accepted in color format strings
NAMED_COLORS = {}
for _i, _name in enumerate(_BASE_COLOR_NAMES):
    NAMED_COLORS[_name] = Color("named", _i)
    NAMED_COLORS["bright" + _name] = Color("named", _i + 8)
NAMED_COLORS["purple"] = NAMED_COLORS["magenta"]
NAMED_COLORS["brightpurple"] = NAMED_COLORS["brightmagenta"]
del _i, _name


class Style:
    """Immutable combination of foreground, background and attributes."""

    __slots__ = ("fg", "bg", "bold", "standout", "underline")

    def __init__(self, fg=None, bg=None, bold=False, standout=False, underline=False):
        self.fg = fg if fg is not None else Color.DEFAULT
        self.bg = bg if bg is not None else Color.DEFAULT
        self.bold = bold
        self.standout = standout
        self.underline = underline

    def __or__(self, other):
        # 'other' wins for colors it sets; attributes accumulate
        if not isinstance(other, Style):
            return NotImplemented
        return Style(
            fg=other.fg if other.fg != Color.DEFAULT else self.fg,
            bg=other.bg if other.bg != Color.DEFAULT else self.bg,
            bold=self.bold or other.bold,
            standout=self.standout or other.standout,
            underline=self.underline or other.underline,
        )

    def sgr(self):
        """Return the escape sequence that selects this style."""
        parts = ["0", self.fg.sgr(), self.bg.sgr(background=True)]
        if self.bold:
            parts.append("1")
        if self.underline:
            parts.append("4")
        if self.standout:
            parts.append("7")
        return "\x1b[{}m".format(";".join(parts))

    def _key(self):
        return (self.fg, self.bg, self.bold, self.standout, self.underline)

    def __eq__(self, other):
        if not isinstance(other, Style):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        parts = []
        if self.fg != Color.DEFAULT:
            parts.append(f"fg={self.fg}")
        if self.bg != Color.DEFAULT:
            parts.append(f"bg={self.bg}")
        for attr in "bold", "standout", "underline":
            if getattr(self, attr):
                parts.append(attr)
        return "Style({})".format(", ".join(parts))


STYLE_DEFAULT = Style()

# curses-flavored attribute shorthands, combinable with |
A_NORMAL = STYLE_DEFAULT
A_BOLD = Style(bold=True)
A_REVERSE = Style(standout=True)
A_UNDERLINE = Style(underline=True)


def _stderr_warn(*args):
    print("cdkterm warning: ", end="", file=sys.stderr)
    print(*args, file=sys.stderr)


def parse_color(color_def, warn=_stderr_warn):
    """
    Parses one color of a color format string: a name from NAMED_COLORS, a
    number 0-255 (any base int() accepts with base 0), or #RRGGBB. Invalid
    colors are reported through 'warn' and turn into Color.DEFAULT.
    """
    if re.match("^#[A-Fa-f0-9]{6}$", color_def):
        return Color.rgb(
            int(color_def[1:3], 16),
            int(color_def[3:5], 16),
            int(color_def[5:7], 16),
        )

    if color_def in NAMED_COLORS:
        return NAMED_COLORS[color_def]

    try:
        num = int(color_def, 0)
    except ValueError:
        warn("Ignoring color", color_def, "that's neither predefined nor a number")
        return Color.DEFAULT

    if 0 <= num <= 255:
        return Color.index(num)
    warn(f"Ignoring color {color_def} outside range 0..255")
    return Color.DEFAULT


def style_from_def(style_def, warn=_stderr_warn):
    """
    Parses a color format string such as "fg:white,bg:blue,bold" into a
    Style. Recognized fields are fg:COLOR, bg:COLOR, bold, standout,
    reverse (alias of standout) and underline. Unknown fields are reported
    through 'warn' and ignored.
    """
    fg = bg = Color.DEFAULT
    bold = standout = underline = False

    if style_def:
        for field in style_def.split(","):
            if field.startswith("fg:"):
                fg = parse_color(field[3:], warn)
            elif field.startswith("bg:"):
                bg = parse_color(field[3:], warn)
            elif field == "bold":
                bold = True
            elif field in ("standout", "reverse"):
                standout = True
            elif field == "underline":
                underline = True
            else:
                warn("Ignoring unknown style attribute", field)

    return Style(fg=fg, bg=bg, bold=bold, standout=standout, underline=underline)


# ---------------------------------------------------------------------------
# Keys and box characters
# ---------------------------------------------------------------------------


class Key:
    """Key values returned by read_key(), besides plain characters."""

    UP = "key_up"
    DOWN = "key_down"
    LEFT = "key_left"
    RIGHT = "key_right"
    PAGE_UP = "key_page_up"
    PAGE_DOWN = "key_page_down"
    HOME = "key_home"
    END = "key_end"
    BACKSPACE = "key_backspace"
    DELETE = "key_delete"
    RESIZE = "key_resize"

    # Plain characters with a fixed meaning for widgets
    RETURN = "\n"
    TAB = "\t"
    ESCAPE = "\x1b"


class Box:
    HLINE = "\u2500"  # ─
    VLINE = "\u2502"  # │
    ULCORNER = "\u250c"  # ┌
    URCORNER = "\u2510"  # ┐
    LLCORNER = "\u2514"  # └
    LRCORNER = "\u2518"  # ┘
    UARROW = "\u2191"  # ↑
    DARROW = "\u2193"  # ↓


# ---------------------------------------------------------------------------
# Input decoding
# ---------------------------------------------------------------------------

# Escape sequences for special keys. Several entries per key cover xterm,
# rxvt, tmux and application cursor mode.
_ESCAPE_SEQUENCES = {
    "\x1b[A": Key.UP,
    "\x1bOA": Key.UP,
    "\x1b[B": Key.DOWN,
    "\x1bOB": Key.DOWN,
    "\x1b[C": Key.RIGHT,
    "\x1bOC": Key.RIGHT,
    "\x1b[D": Key.LEFT,
    "\x1bOD": Key.LEFT,
    "\x1b[5~": Key.PAGE_UP,
    "\x1b[6~": Key.PAGE_DOWN,
    "\x1b[H": Key.HOME,
    "\x1bOH": Key.HOME,
    "\x1b[1~": Key.HOME,
    "\x1b[7~": Key.HOME,
    "\x1b[F": Key.END,
    "\x1bOF": Key.END,
    "\x1b[4~": Key.END,
    "\x1b[8~": Key.END,
    "\x1b[3~": Key.DELETE,
}


def _build_trie(sequences):
    # Nested dicts, one level per character; leaves are Key values
    root = {}
    for seq, key in sequences.items():
        node = root
        for ch in seq[:-1]:
            node = node.setdefault(ch, {})
        node[seq[-1]] = key
    return root


_ESCAPE_TRIE = _build_trie(_ESCAPE_SEQUENCES)


class KeyDecoder:
    """
    Incremental decoder from terminal input characters to keys.

    feed() returns a key (a Key constant or a one-character string) once one
    is complete, and None while an escape sequence is still open. A lone ESC
    can only be told apart from the start of a sequence by timing, so the
    reader calls flush() when no more input arrives.
    """

    def __init__(self):
        self._buf = []
        self._node = None
        self._pending = None

    @property
    def partial(self):
        """True while an escape sequence is incomplete."""
        return bool(self._buf)

    def pop_pending(self):
        """Returns the key held back by a dead-end sequence, if any."""
        key = self._pending
        self._pending = None
        return key

    def feed(self, ch):
        if self._node is not None:
            if ch not in self._node:
                # Dead end. Report the ESC now and hold back whatever 'ch'
                # turns into.
                result = self.flush()
                self._pending = self._feed_char(ch)
                return result

            val = self._node[ch]
            if isinstance(val, dict):
                self._buf.append(ch)
                self._node = val
                return None

            self._buf = []
            self._node = None
            return val

        return self._feed_char(ch)

    def flush(self):
        """Gives up on a partial sequence, returning ESC for it."""
        if not self._buf:
            return None
        self._buf = []
        self._node = None
        return Key.ESCAPE

    def _feed_char(self, ch):
        if ch == Key.ESCAPE:
            self._buf = [ch]
            self._node = _ESCAPE_TRIE[ch]
            return None

        if ch in ("\x7f", "\x08"):
            return Key.BACKSPACE

        # Enter arrives as CR with ICRNL cleared
        if ch == "\r":
            return Key.RETURN

        return ch


# ---------------------------------------------------------------------------
# Region -- the per-widget resource
# ---------------------------------------------------------------------------


class Region:
    """
    Rectangular cell buffer owned by one widget, together with the widget's
    box decoration. Created with surface.region() and released with
    surface.destroy(). Drawing into a Region does not touch the screen; the
    surface copies it into the frame on paint().
    """

    def __init__(self, surface, height, width, y, x):
        self._surface = surface
        self._height = height
        self._width = width
        self._y = y
        self._x = x
        self._fill_style = STYLE_DEFAULT
        self._cells = self._make_cells(height, width)

        self.box = False
        self.shadow = False
        self.box_style = STYLE_DEFAULT
        self.shadow_style = Style(fg=NAMED_COLORS["black"], bg=NAMED_COLORS["black"])
        self.ul = Box.ULCORNER
        self.ur = Box.URCORNER
        self.ll = Box.LLCORNER
        self.lr = Box.LRCORNER
        self.hline = Box.HLINE
        self.vline = Box.VLINE

    def _make_cells(self, height, width):
        cell = (" ", self._fill_style)
        return [[cell] * width for _ in range(height)]

    @property
    def alive(self):
        """False once the region was destroyed or its session closed."""
        return self._surface is not None

    @property
    def height(self):
        return self._height

    @property
    def width(self):
        return self._width

    @property
    def y(self):
        return self._y

    @property
    def x(self):
        return self._x

    @property
    def fill_style(self):
        return self._fill_style

    def resize(self, height, width):
        """Resizes the region, clearing its contents."""
        self._height = max(height, 1)
        self._width = max(width, 1)
        self._cells = self._make_cells(self._height, self._width)

    def move(self, y, x):
        self._y = y
        self._x = x

    def clear(self):
        """Clears the region to spaces in the stored fill style."""
        self.fill(self._fill_style)

    def fill(self, style):
        """Sets the background style and remembers it for clear()."""
        self._fill_style = style
        cell = (" ", style)
        for row in self._cells:
            row[:] = [cell] * len(row)

    def write(self, y, x, text, style=None, max_len=None):
        """
        Writes 'text' at (y, x), clipped to the region. Returns the number of
        cells written.
        """
        if style is None:
            style = self._fill_style
        if y < 0 or y >= self._height or x >= self._width:
            return 0

        text = text.expandtabs()
        if max_len is not None:
            text = text[:max_len]

        row = self._cells[y]
        written = 0
        for col, ch in enumerate(text, x):
            if col >= self._width:
                break
            if col < 0 or ch < " ":
                continue
            row[col] = (ch, style)
            written += 1
        return written

    def write_char(self, y, x, char, style=None):
        if style is None:
            style = self._fill_style
        if 0 <= y < self._height and 0 <= x < self._width:
            self._cells[y][x] = (char, style)

    def draw_border(self):
        """Draws the box decoration around the region's outer edge."""
        last_row = self._height - 1
        last_col = self._width - 1
        style = self.box_style

        for col in range(1, last_col):
            self.write_char(0, col, self.hline, style)
            self.write_char(last_row, col, self.hline, style)
        for row in range(1, last_row):
            self.write_char(row, 0, self.vline, style)
            self.write_char(row, last_col, self.vline, style)

        self.write_char(0, 0, self.ul, style)
        self.write_char(0, last_col, self.ur, style)
        self.write_char(last_row, 0, self.ll, style)
        self.write_char(last_row, last_col, self.lr, style)

    def text(self):
        """Returns the region's characters, one string per row."""
        return ["".join(ch for ch, _ in row) for row in self._cells]

    def __repr__(self):
        return "<Region {}x{} at ({}, {}){}>".format(
            self._height,
            self._width,
            self._y,
            self._x,
            "" if self.alive else " destroyed",
        )


# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------


class _Surface:
    # Shared frame, region and session bookkeeping. Subclasses provide
    # terminal I/O through _enter(), _leave(), update() and read_key().

    def __init__(self, height, width):
        self._height = height
        self._width = width
        self._session_open = False
        self._regions = []
        self._frame = self._blank_frame()
        self._cursor_region = None
        self._cursor_y = 0
        self._cursor_x = 0
        self._cursor_visible = False
        self._cursor_very_visible = False
        self.has_colors = False

    @property
    def height(self):
        return self._height

    @property
    def width(self):
        return self._width

    @property
    def session_open(self):
        return self._session_open

    def _blank_frame(self):
        cell = (" ", STYLE_DEFAULT)
        return [[cell] * self._width for _ in range(self._height)]

    def _enter(self):
        pass

    def _leave(self):
        pass

    def open_session(self):
        """
        Takes the terminal over (raw input, alternate screen). Only one
        session can be open at a time.
        """
        if self._session_open:
            raise TerminalError("a session is already open on this terminal")
        self._enter()
        self._session_open = True
        self._frame = self._blank_frame()
        return self

    def close_session(self):
        """Gives the terminal back. Every region is invalidated."""
        if not self._session_open:
            return
        for region in self._regions:
            region._surface = None
        self._regions = []
        self._cursor_region = None
        self._cursor_visible = False
        self._session_open = False
        self._leave()

    def _check_session(self):
        if not self._session_open:
            raise TerminalError("no session is open on this terminal")

    def region(self, height, width, y=0, x=0):
        """Allocates a region. Raises TerminalError if it cannot exist."""
        self._check_session()
        if height <= 0 or width <= 0:
            raise TerminalError(f"invalid region size {height}x{width}")
        if height > self._height or width > self._width:
            raise TerminalError(
                f"{height}x{width} region does not fit on a "
                f"{self._height}x{self._width} terminal"
            )
        region = Region(self, height, width, y, x)
        self._regions.append(region)
        return region

    def destroy(self, region):
        """Releases a region. Unknown or already destroyed regions are ignored."""
        if region._surface is not self:
            return
        self._regions.remove(region)
        if self._cursor_region is region:
            self._cursor_region = None
        region._surface = None

    def resolve_position(self, x, y, height, width):
        """
        Turns a position that may hold LEFT/RIGHT/CENTER (x) or
        TOP/BOTTOM/CENTER (y) into absolute (y, x) coordinates that keep a
        height x width box on the screen.
        """
        if x == LEFT:
            x = 0
        elif x == RIGHT:
            x = self._width - width
        elif x == CENTER:
            x = (self._width - width) // 2
        else:
            x = min(x, self._width - width)

        if y == TOP:
            y = 0
        elif y == BOTTOM:
            y = self._height - height
        elif y == CENTER:
            y = (self._height - height) // 2
        else:
            y = min(y, self._height - height)

        return max(y, 0), max(x, 0)

    def _shadow_cells(self, region):
        # Screen coordinates covered by the region's drop shadow
        y, x, h, w = region.y, region.x, region.height, region.width
        cells = [(row, x + w) for row in range(y + 1, y + h + 1)]
        cells += [(y + h, col) for col in range(x + 1, x + w)]
        return cells

    def paint(self, region):
        """Copies the region (and its shadow) into the frame."""
        if region._surface is not self:
            return
        h, w = self._height, self._width
        ry, rx = region.y, region.x
        for row in range(max(0, -ry), min(region.height, h - ry)):
            frame_row = self._frame[ry + row]
            region_row = region._cells[row]
            for col in range(max(0, -rx), min(region.width, w - rx)):
                frame_row[rx + col] = region_row[col]

        if region.shadow:
            for row, col in self._shadow_cells(region):
                if 0 <= row < h and 0 <= col < w:
                    ch = self._frame[row][col][0]
                    self._frame[row][col] = (ch, region.shadow_style)

    def erase(self, region):
        """Blanks the part of the frame the region (and its shadow) covers."""
        if region._surface is not self:
            return
        blank = (" ", STYLE_DEFAULT)
        h, w = self._height, self._width
        cells = [
            (region.y + row, region.x + col)
            for row in range(region.height)
            for col in range(region.width)
        ]
        if region.shadow:
            cells += self._shadow_cells(region)
        for row, col in cells:
            if 0 <= row < h and 0 <= col < w:
                self._frame[row][col] = blank

    def clear(self):
        """Blanks the whole frame."""
        self._frame = self._blank_frame()

    def snapshot(self):
        """Returns the composed frame's characters, one string per row."""
        return ["".join(ch for ch, _ in row) for row in self._frame]

    def style_at(self, y, x):
        return self._frame[y][x][1]

    def set_cursor(self, region, y, x):
        """Positions the cursor inside a region (for edit fields)."""
        self._cursor_region = region
        self._cursor_y = y
        self._cursor_x = x

    def show_cursor(self, very_visible=False):
        self._cursor_visible = True
        self._cursor_very_visible = very_visible

    def hide_cursor(self):
        self._cursor_visible = False
        self._cursor_very_visible = False

    def suspend(self):
        pass

    def resume(self):
        pass

    def update(self):
        raise NotImplementedError

    def read_key(self):
        raise NotImplementedError


class Terminal(_Surface):
    """
    The controlling Unix terminal. open_session() switches to cbreak mode and
    the alternate screen; close_session() restores both.
    """

    def __init__(self):
        if _IS_WINDOWS:
            raise TerminalError("Terminal needs a Unix terminal, use HeadlessTerminal")
        if not sys.stdin.isatty():
            raise TerminalError("stdin is not a terminal")
        if not sys.stdout.isatty():
            raise TerminalError("stdout is not a terminal")

        sz = shutil.get_terminal_size()
        super().__init__(sz.lines, sz.columns)

        self.has_colors = (
            "NO_COLOR" not in os.environ and os.environ.get("TERM", "dumb") != "dumb"
        )
        self._keys = KeyDecoder()
        # Decoded characters not yet turned into keys
        self._chars = collections.deque()
        self._prev_frame = None
        self._suspended = False
        self._resize_pending = False

    @staticmethod
    def _set_cbreak():
        # No echo, no canonical mode. ISIG stays on so Ctrl-C still works.
        fd = sys.stdin.fileno()
        new = termios.tcgetattr(fd)
        new[3] &= ~(termios.ICANON | termios.ECHO | termios.IEXTEN)
        new[1] &= ~(
            termios.IXON | termios.IXOFF | termios.ICRNL | termios.INLCR | termios.IGNCR
        )
        new[6][termios.VMIN] = 1
        new[6][termios.VTIME] = 0
        termios.tcsetattr(fd, termios.TCSANOW, new)

    def _enter(self):
        self._old_termios = termios.tcgetattr(sys.stdin.fileno())
        self._set_cbreak()

        self._decoder = codecs.getincrementaldecoder("utf-8")("replace")
        self._chars.clear()

        self._old_sigwinch = signal.getsignal(signal.SIGWINCH)
        signal.signal(signal.SIGWINCH, self._sigwinch_handler)

        self._poller = select.poll()
        self._poller.register(sys.stdin.fileno(), select.POLLIN)

        self._prev_frame = None
        # Alternate screen, cursor hidden
        self._write_raw("\x1b[?1049h\x1b[?25l")
        self._flush()

    def _leave(self):
        # Cursor shown, primary screen, attributes reset
        self._write_raw("\x1b[?25h\x1b[?1049l\x1b[0m")
        self._flush()
        termios.tcsetattr(sys.stdin.fileno(), termios.TCSANOW, self._old_termios)
        signal.signal(signal.SIGWINCH, self._old_sigwinch)

    def suspend(self):
        """Temporarily leaves the session, e.g. to print to stderr."""
        if not self._session_open or self._suspended:
            return
        self._suspended = True
        self._write_raw("\x1b[?25h\x1b[?1049l\x1b[0m")
        self._flush()
        termios.tcsetattr(sys.stdin.fileno(), termios.TCSANOW, self._old_termios)

    def resume(self):
        if not self._suspended:
            return
        self._set_cbreak()
        self._write_raw("\x1b[?1049h")
        if not self._cursor_visible:
            self._write_raw("\x1b[?25l")
        self._flush()
        self._prev_frame = None
        self._suspended = False
        self._resize_pending = True

    def _sigwinch_handler(self, signum, frame):
        # Just a flag; resizing mid-render would tear the frame
        self._resize_pending = True

    def _check_resize(self):
        if not self._resize_pending:
            return False
        self._resize_pending = False
        sz = shutil.get_terminal_size()
        if (sz.lines, sz.columns) == (self._height, self._width):
            return False
        self._height = sz.lines
        self._width = sz.columns
        self._frame = self._blank_frame()
        self._prev_frame = None
        self._write_raw("\x1b[2J")
        self._flush()
        return True

    def _write_raw(self, s):
        try:
            sys.stdout.buffer.write(s.encode("utf-8"))
        except OSError:
            pass

    def _flush(self):
        try:
            fd = sys.stdout.fileno()
            was_blocking = os.get_blocking(fd)
            if not was_blocking:
                os.set_blocking(fd, True)
            try:
                sys.stdout.buffer.flush()
            finally:
                if not was_blocking:
                    os.set_blocking(fd, False)
        except OSError:
            pass

    def update(self):
        """Writes the cells that changed since the last update."""
        if self._suspended or not self._session_open:
            return

        buf = []
        prev = self._prev_frame
        last_style = None
        last_row = last_col = -1

        for row, frame_row in enumerate(self._frame):
            for col, cell in enumerate(frame_row):
                if prev and prev[row][col] == cell:
                    continue

                ch, style = cell
                if row != last_row or col != last_col:
                    buf.append(f"\x1b[{row + 1};{col + 1}H")
                if style != last_style:
                    buf.append(style.sgr())
                    last_style = style
                buf.append(ch)
                last_row = row
                last_col = col + 1

        if self._cursor_visible and self._cursor_region is not None:
            r = self._cursor_region
            buf.append(f"\x1b[{r.y + self._cursor_y + 1};{r.x + self._cursor_x + 1}H")
            buf.append("\x1b[?12;25h" if self._cursor_very_visible else "\x1b[?12l\x1b[?25h")
        else:
            buf.append("\x1b[?25l")

        self._write_raw("".join(buf))
        self._flush()

        self._prev_frame = [list(row) for row in self._frame]

    def read_key(self):
        """
        Blocks until a key arrives. Returns a Key constant or a one-character
        string. A bare ESC is returned after a short timeout. Input that
        arrives in one read is handed out one key per call. Raises
        TerminalError at end of input.
        """
        self._check_session()
        if self._suspended:
            raise TerminalError("terminal is suspended")

        fd = sys.stdin.fileno()
        while True:
            pending = self._keys.pop_pending()
            if pending is not None:
                return pending

            while self._chars:
                key = self._keys.feed(self._chars.popleft())
                if key is not None:
                    return key

            if self._keys.partial and not self._poller.poll(25):
                return self._keys.flush()

            if self._check_resize():
                return Key.RESIZE

            try:
                data = os.read(fd, 1024)
            except InterruptedError:
                continue

            if not data:
                if self._keys.partial:
                    return self._keys.flush()
                raise TerminalError("end of input on stdin")

            self._chars.extend(self._decoder.decode(data))


class HeadlessTerminal(_Surface):
    """
    In-memory surface. Input comes from a queue filled through the
    constructor or feed(); output stays in the frame, see snapshot().
    """

    def __init__(self, height=24, width=80, keys=(), colors=True):
        super().__init__(height, width)
        self.has_colors = colors
        self.updates = 0
        self._keys = collections.deque(keys)

    def feed(self, *keys):
        """Queues keys for read_key()."""
        self._keys.extend(keys)

    @property
    def pending_keys(self):
        return len(self._keys)

    def update(self):
        self.updates += 1

    def read_key(self):
        self._check_session()
        if not self._keys:
            raise TerminalError("no input queued on headless terminal")
        return self._keys.popleft()


def run(fn):
    """
    Opens the controlling terminal, calls fn(term) and returns its result.
    The session is closed on the way out even if fn() fails. Ctrl-C just
    ends the call.
    """
    term = Terminal()
    try:
        return fn(term)
    except KeyboardInterrupt:
        return None
    finally:
        term.close_session()
