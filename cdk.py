#!/usr/bin/env python3

# Copyright (c) 2026 pycdk contributors
# SPDX-License-Identifier: ISC

"""
Overview
========

A small set of terminal widgets (labels, buttons, text entry fields,
alphabetically sorted pick lists and calendars) managed by a single owning
Screen. The surface in cdkterm.py does the terminal work; this module is
about who owns what:

  - A Screen owns a session on a terminal surface and a registry of the
    widgets drawn on it. Closing the Screen (or leaving its 'with' block)
    releases the session. Widgets must not be used afterwards, and raise
    ScreenClosed if they are.

  - Each widget owns exactly one cdkterm.Region, wrapped in a Capability
    (kind tag + region). Constructing a widget allocates the region and
    registers the widget with its Screen. A widget constructed without
    arguments is unconfigured and rejects every operation with
    UnconfiguredWidget.

  - The registry order is the paint order. raise_widget()/lower_widget()
    reorder it; refresh() repaints bottom to top.

  - Button, Entry, AlphaList and Calendar share one activation loop:
    activate() reads keys (from the terminal, or from a key list given by
    the caller) until RETURN/TAB, ESC or an unhandled key ends it, and
    leaves the outcome in 'exit_type'.


Running
=======

    import cdk, cdkterm

    def main(term):
        with cdk.Screen(term) as screen:
            button = cdk.Button(screen, (cdk.CENTER, cdk.CENTER), "Press me",
                                box=True)
            screen.refresh()
            return button.activate()

    cdkterm.run(main)

For tests and scripted use, cdkterm.HeadlessTerminal stands in for the real
terminal, and activate()/position() take a list of keys to replay.


Color schemes
=============

Widgets are drawn with the styles of their Screen's style table. The
built-in templates are 'default' and 'monochrome' (forced when the terminal
has no colors). The CDK_STYLE environment variable overrides elements with
the same syntax as MENUCONFIG_STYLE in Kconfiglib's menuconfig:

    CDK_STYLE="selection=fg:white,bg:red highlight=selection"

Elements: label, title, button, button-active, entry, entry-field, list,
selection, calendar, day, month, year, highlight, border, shadow.
"""

import bisect
import calendar
import collections
import datetime
import os
import re
import sys
import time
import weakref

from cdkterm import (
    Key,
    Style,
    TerminalError,
    style_from_def,
    LEFT,
    RIGHT,
    CENTER,
    TOP,
    BOTTOM,
    A_NORMAL,
    A_BOLD,
    A_REVERSE,
    A_UNDERLINE,
)

#
# Configuration variables
#

# How far the cursor needs to be from the edge of an entry field before the
# field starts to scroll horizontally
_SCROLL_OFFSET = 5

# Filler character for the unused part of entry fields
_DEFAULT_FILLER = "."

# Character shown for each typed character in DISPLAY_MASKED entry fields
_DEFAULT_HIDDEN_CHAR = "*"

# Width of the day grid of a calendar: 7 columns of 2 digits + separators
_CALENDAR_GRID_WIDTH = 20

# Number of week rows in a calendar; six covers every month
_CALENDAR_WEEKS = 6

_DAY_NAMES = "Su Mo Tu We Th Fr Sa"

_MONTH_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

#
# Styling
#

_STYLES = {
    "default": """
    label=
    title=bold
    button=
    button-active=fg:white,bg:blue,bold
    entry=
    entry-field=underline
    list=
    selection=fg:white,bg:blue,bold
    calendar=
    day=
    month=fg:blue,bold
    year=fg:blue,bold
    highlight=fg:white,bg:blue,bold
    border=
    shadow=fg:black,bg:black,bold
    """,
    # Forced on terminals that do not support colors
    "monochrome": """
    label=
    title=bold
    button=
    button-active=bold,standout
    entry=
    entry-field=underline
    list=
    selection=bold,standout
    calendar=
    day=
    month=bold
    year=bold
    highlight=standout
    border=
    shadow=standout
    """,
}


def _warn(term, *args):
    # Temporarily leaves terminal mode and prints a warning to stderr. The
    # warning would get lost on the alternate screen.
    if term is not None:
        term.suspend()
    print("cdk warning: ", end="", file=sys.stderr)
    print(*args, file=sys.stderr)
    if term is not None:
        term.resume()


#
# Public constants
#

# Widget kinds. UNCONFIGURED tags a widget that has no resource.
UNCONFIGURED = 0
LABEL = 1
BUTTON = 2
ENTRY = 3
ALPHALIST = 4
CALENDAR = 5

KIND_TO_STR = {
    UNCONFIGURED: "unconfigured",
    LABEL: "label",
    BUTTON: "button",
    ENTRY: "entry",
    ALPHALIST: "alphalist",
    CALENDAR: "calendar",
}

# Outcome of the last activation, stored in the widget's 'exit_type'
NEVER_ACTIVATED = 0
NORMAL = 1
ESCAPE_HIT = 2
EARLY_EXIT = 3

EXIT_TYPE_TO_STR = {
    NEVER_ACTIVATED: "NEVER_ACTIVATED",
    NORMAL: "NORMAL",
    ESCAPE_HIT: "ESCAPE_HIT",
    EARLY_EXIT: "EARLY_EXIT",
}

# Entry display modes
DISPLAY_NORMAL = 0  # typed characters are shown
DISPLAY_MASKED = 1  # each character is shown as the hidden character
DISPLAY_HIDDEN = 2  # nothing of the value is shown

Point = collections.namedtuple("Point", "x y")

DrawingOptions = collections.namedtuple("DrawingOptions", "box shadow")
DrawingOptions.__new__.__defaults__ = (False, False)


#
# Errors
#


class CDKError(Exception):
    """
    Base class for the exceptions raised by this module.
    """


class SurfaceUnavailable(CDKError):
    """
    The Screen could not acquire a session on the given terminal surface.
    """


class CanvasRequired(CDKError):
    """
    Widget contents were given without a Screen to create the widget on.
    """


class UnconfiguredWidget(CDKError):
    """
    Operation on a widget that has no resource: default-constructed,
    destroyed, or never successfully created.
    """


class ScreenClosed(UnconfiguredWidget):
    """
    Operation on a widget whose Screen has been closed.
    """


class ResourceCreationFailed(CDKError):
    """
    The terminal surface could not allocate the widget's region. The widget
    stays unconfigured and is not registered.
    """


#
# Capability and Screen
#


class Capability:
    """
    The tagged handle the Screen registry works with: the widget's kind and
    the cdkterm.Region backing it. Capability() is the unconfigured value.
    """

    __slots__ = ("kind", "resource")

    def __init__(self, kind=UNCONFIGURED, resource=None):
        if kind not in KIND_TO_STR:
            raise ValueError(f"unknown widget kind {kind!r}")
        if (kind == UNCONFIGURED) != (resource is None):
            raise ValueError(
                "an unconfigured capability has no resource, and a configured "
                "one needs one"
            )
        self.kind = kind
        self.resource = resource

    @property
    def configured(self):
        return self.kind != UNCONFIGURED

    def __repr__(self):
        return f"<Capability {KIND_TO_STR[self.kind]} {self.resource!r}>"


# Registry record. 'ref' is a weak reference, so the registry never keeps a
# widget alive.
_Registration = collections.namedtuple("_Registration", "kind resource ref")


class Screen:
    """
    Owns a session on a terminal surface and the registry of widgets drawn
    on it.

    term:
      A cdkterm.Terminal or cdkterm.HeadlessTerminal. The Screen opens a
      session on it and holds it until close(). Raises SurfaceUnavailable if
      'term' is not a surface or refuses the session (e.g. because another
      Screen holds it).

    Usable as a context manager, which closes the Screen on exit.
    """

    def __init__(self, term):
        if term is None or not hasattr(term, "open_session"):
            raise SurfaceUnavailable(f"{term!r} is not a terminal surface")
        try:
            term.open_session()
        except (TerminalError, OSError) as e:
            raise SurfaceUnavailable(f"cannot open a terminal session: {e}") from e

        self._term = term
        self._closed = False
        # id(widget) -> _Registration, in paint order (last = on top)
        self._registry = collections.OrderedDict()

        # Element name -> cdkterm.Style
        self.style = {}
        self._init_styles()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __repr__(self):
        return "<Screen {}x{}, {} widgets{}>".format(
            self._term.height,
            self._term.width,
            len(self._registry),
            ", closed" if self._closed else "",
        )

    @property
    def term(self):
        """The terminal surface the Screen holds a session on."""
        return self._term

    @property
    def closed(self):
        return self._closed

    def close(self):
        """
        Releases the terminal session. Widgets created on this Screen can't
        be used afterwards. Closing twice is harmless.
        """
        if self._closed:
            return
        self._registry.clear()
        self._closed = True
        self._term.close_session()

    def _warn(self, *args):
        _warn(None if self._closed else self._term, *args)

    #
    # Styles
    #

    def _init_styles(self):
        # Monochrome terminals get the monochrome theme and nothing else.
        # Otherwise, 'default' is the base and CDK_STYLE is applied on top.
        if not self._term.has_colors:
            self._parse_style("monochrome", True)
            return
        self._parse_style("default", True)
        if "CDK_STYLE" in os.environ:
            self._parse_style(os.environ["CDK_STYLE"], False)

    def _parse_style(self, style_str, parsing_default):
        # Parses '<element>=<style>' assignments. A word without '=' names a
        # template from _STYLES, expanded in place. parsing_default suppresses
        # warnings for the implicit template parse.
        for sline in style_str.split():
            if "=" in sline:
                key, data = sline.split("=", 1)

                if key not in self.style and not parsing_default:
                    self._warn("Ignoring non-existent style", key)
                    continue

                # A reference to another element copies its style
                if data in self.style:
                    self.style[key] = self.style[data]
                else:
                    self.style[key] = style_from_def(data, self._warn)

            elif sline in _STYLES:
                self._parse_style(_STYLES[sline], parsing_default)

            else:
                self._warn("Ignoring non-existent style template", sline)

    #
    # Registry
    #

    def register(self, widget):
        """
        Adds 'widget' to the top of the paint order. Widgets register
        themselves on creation; registering again is a no-op.
        """
        cap = widget._checked_capability()
        if widget.screen is not self:
            raise CDKError(f"{widget!r} belongs to another screen")

        key = id(widget)
        if key in self._registry:
            return

        def forget(ref, key=key):
            # The widget was garbage-collected. Its id may have been reused
            # by a newer registration already, hence the identity check.
            rec = self._registry.get(key)
            if rec is not None and rec.ref is ref:
                del self._registry[key]

        self._registry[key] = _Registration(
            cap.kind, cap.resource, weakref.ref(widget, forget)
        )

    def _record(self, widget):
        rec = self._registry.get(id(widget))
        if rec is not None and rec.ref() is widget:
            return rec
        return None

    def unregister(self, widget):
        """
        Removes 'widget' from the registry without touching its region.
        Unregistered widgets are ignored.
        """
        if self._record(widget) is not None:
            del self._registry[id(widget)]

    def is_registered(self, widget):
        return self._record(widget) is not None

    def raise_widget(self, widget):
        """
        Moves 'widget' to the top of the paint order, so that it wins
        overlaps on refresh(). Unregistered widgets are ignored.
        """
        if self._record(widget) is not None:
            self._registry.move_to_end(id(widget))

    def lower_widget(self, widget):
        """
        Moves 'widget' to the bottom of the paint order. Unregistered widgets
        are ignored.
        """
        if self._record(widget) is not None:
            self._registry.move_to_end(id(widget), last=False)

    @property
    def widgets(self):
        """Registered widgets, bottom of the paint order first."""
        widgets = []
        for rec in self._registry.values():
            widget = rec.ref()
            if widget is not None:
                widgets.append(widget)
        return widgets

    def destroy_widgets(self):
        """Destroys every registered widget."""
        for widget in self.widgets:
            widget.destroy()

    #
    # Drawing
    #

    def erase(self):
        """
        Erases every registered widget from the terminal. Nothing is
        unregistered or destroyed; refresh() brings them back.
        """
        if self._closed:
            return
        for rec in self._registry.values():
            self._term.erase(rec.resource)
        self._term.update()

    def refresh(self):
        """Redraws every registered widget, bottom of the paint order first."""
        if self._closed:
            return
        self._term.clear()
        for widget in self.widgets:
            widget._paint()
        self._term.update()

    def _new_region(self, x, y, height, width):
        # Resource factory shared by all widget kinds
        try:
            y, x = self._term.resolve_position(x, y, height, width)
            return self._term.region(height, width, y, x)
        except TerminalError as e:
            raise ResourceCreationFailed(str(e)) from e


#
# Widgets
#


def _lines(text):
    # Accepts a string with embedded newlines or a sequence of lines
    if text is None:
        return []
    if isinstance(text, str):
        return text.split("\n")
    return [str(line) for line in text]


def _printable(key):
    return isinstance(key, str) and len(key) == 1 and key.isprintable()


def _resolve_dimension(value, available):
    # 0 means all of 'available', a negative value means that much less
    if value <= 0:
        return max(available + value, 1)
    return min(value, available)


# Keys understood by position(): (dy, dx) steps
_POSITION_STEPS = {
    Key.UP: (-1, 0),
    "8": (-1, 0),
    Key.DOWN: (1, 0),
    "2": (1, 0),
    Key.LEFT: (0, -1),
    "4": (0, -1),
    Key.RIGHT: (0, 1),
    "6": (0, 1),
    "7": (-1, -1),
    "9": (-1, 1),
    "1": (1, -1),
    "3": (1, 1),
}

# ... and (y, x) snaps, None meaning "keep"
_POSITION_SNAPS = {
    "t": (TOP, None),
    "b": (BOTTOM, None),
    "l": (None, LEFT),
    "r": (None, RIGHT),
    "c": (None, CENTER),
    "C": (CENTER, CENTER),
    "5": (CENTER, CENTER),
}


class _Widget:
    # Shared construction, registration and presentation logic. Subclasses
    # set _kind and _style_name and implement _size() and _render().

    _kind = UNCONFIGURED
    _style_name = "label"

    def __init__(self):
        self._cap = Capability()
        self._release = None
        self._screen = None
        self._title = []

    def __repr__(self):
        return "<{} {}>".format(
            type(self).__name__,
            KIND_TO_STR[self._cap.kind],
        )

    def _unconfigured(self, screen, *content):
        # True for a default-constructed widget. Contents without a screen
        # are a mistake.
        if screen is not None:
            return False
        if any(arg is not None for arg in content):
            raise CanvasRequired(
                f"{type(self).__name__} needs a Screen to be created on"
            )
        return True

    def _setup(self, screen, point, box, shadow, options):
        # Allocates the region, wraps it and registers with 'screen'. On
        # failure the widget is left unconfigured and unregistered.
        if not isinstance(screen, Screen):
            raise CanvasRequired(f"{screen!r} is not a Screen")
        if screen.closed:
            raise ScreenClosed("cannot create a widget on a closed screen")

        if options is not None:
            box, shadow = options.box, options.shadow
        if point is None:
            point = Point(LEFT, TOP)
        x, y = point

        self._screen = screen
        try:
            height, width = self._size(box)
            region = screen._new_region(x, y, height, width)
        except ResourceCreationFailed:
            self._screen = None
            raise

        region.box = bool(box)
        region.shadow = bool(shadow)
        region.box_style = screen.style["border"]
        region.shadow_style = screen.style["shadow"]
        region.fill(screen.style[self._style_name])

        self._cap = Capability(self._kind, region)
        # Gives the region back if the widget is collected without destroy()
        self._release = weakref.finalize(self, screen.term.destroy, region)
        screen.register(self)

    def _checked_capability(self):
        if self._screen is not None and self._screen.closed:
            raise ScreenClosed(f"the screen of {self!r} has been closed")
        if not self._cap.configured:
            raise UnconfiguredWidget(f"{type(self).__name__} is not configured")
        return self._cap

    def _check(self):
        return self._checked_capability().resource

    @property
    def _term(self):
        return self._screen.term

    @property
    def capability(self):
        """The widget's Capability (kind tag and region)."""
        return self._cap

    @property
    def configured(self):
        return self._cap.configured

    @property
    def screen(self):
        """The Screen the widget was created on, or None."""
        return self._screen

    #
    # Drawing
    #

    def _border(self, region):
        return 1 if region.box else 0

    def _paint(self):
        # Renders into the region and copies it into the frame
        region = self._cap.resource
        region.clear()
        self._render(region)
        if region.box:
            region.draw_border()
        self._term.paint(region)

    def _render_title(self, region):
        # Centers the title lines below the top border. Returns the number
        # of rows used.
        b = self._border(region)
        inner = region.width - 2 * b
        for i, line in enumerate(self._title):
            x = b + max((inner - len(line)) // 2, 0)
            region.write(b + i, x, line, self._screen.style["title"], inner)
        return len(self._title)

    def _relayout(self):
        # Fits the region to the current contents and box setting
        region = self._cap.resource
        term = self._term
        height, width = self._size(region.box)
        height = min(height, term.height)
        width = min(width, term.width)
        if (height, width) != (region.height, region.width):
            term.erase(region)
            region.resize(height, width)
            region.move(*term.resolve_position(region.x, region.y, height, width))

    def draw(self, box=None):
        """
        Draws the widget on the terminal. If 'box' is given, the box setting
        is changed first.
        """
        self._check()
        if box is not None:
            self.set_box(box)
        self._paint()
        self._term.update()

    def erase(self):
        """
        Removes the widget from the terminal. The widget stays registered,
        so the next Screen.refresh() draws it again.
        """
        region = self._check()
        self._term.erase(region)
        self._term.update()

    def destroy(self):
        """
        Unregisters the widget and releases its region. The widget is
        unconfigured afterwards. Destroying twice is harmless.
        """
        if not self._cap.configured:
            return
        screen = self._screen
        region = self._cap.resource
        if not screen.closed:
            screen.unregister(self)
            screen.term.erase(region)
            self._release()
        else:
            self._release.detach()
        self._cap = Capability()
        self._screen = None

    #
    # Placement
    #

    def get_position(self):
        region = self._check()
        return Point(region.x, region.y)

    def move(self, point, relative=False, refresh=False):
        """
        Moves the widget.

        point:
          New (x, y). Either coordinate may be an int or one of LEFT/RIGHT/
          CENTER (x) and TOP/BOTTOM/CENTER (y).

        relative:
          If True, 'point' is an offset from the current position.

        refresh:
          If True, the Screen is redrawn right away.
        """
        region = self._check()
        x, y = point
        if relative:
            x += region.x
            y += region.y
        self._term.erase(region)
        region.move(*self._term.resolve_position(x, y, region.height, region.width))
        if refresh:
            self._screen.refresh()

    def position(self, keys=None):
        """
        Lets the user move the widget around with the cursor keys (or the
        keypad digits; t/b/l/r snap to an edge, c/C/5 center). RETURN or TAB
        keeps the new position, ESC restores the old one.

        keys:
          Keys to replay instead of reading the terminal. When they run out,
          the current position is kept.
        """
        region = self._check()
        term = self._term
        start = (region.y, region.x)
        pending = collections.deque(keys or ())
        scripted = bool(pending)

        while True:
            if pending:
                key = pending.popleft()
            elif scripted:
                break
            else:
                self._screen.refresh()
                key = term.read_key()

            if key in (Key.RETURN, Key.TAB):
                break

            if key == Key.ESCAPE:
                region.move(*start)
                break

            if key in _POSITION_STEPS:
                dy, dx = _POSITION_STEPS[key]
                y, x = region.y + dy, region.x + dx
            elif key in _POSITION_SNAPS:
                y, x = _POSITION_SNAPS[key]
                if y is None:
                    y = region.y
                if x is None:
                    x = region.x
            else:
                # Unbound keys, including RESIZE, just redraw
                continue

            region.move(*term.resolve_position(x, y, region.height, region.width))

        self._screen.refresh()

    #
    # Box and background
    #

    def get_box(self):
        """True if the widget is drawn with a box around it."""
        return self._check().box

    def set_box(self, box):
        self._check().box = bool(box)
        self._relayout()

    def set_box_attribute(self, style):
        """Sets the style the box is drawn with."""
        self._check().box_style = style

    def set_background_attrib(self, style):
        """Sets the background style, e.g. cdk.A_BOLD."""
        self._check().fill(style)

    def set_background_color(self, color):
        """
        Sets the background from a color format string, e.g.
        "fg:white,bg:blue". Invalid parts are ignored with a warning.
        """
        self._check()
        self.set_background_attrib(style_from_def(color, self._screen._warn))

    def set_horizontal_char(self, char):
        self._check().hline = char

    def set_vertical_char(self, char):
        self._check().vline = char

    def set_ul_char(self, char):
        self._check().ul = char

    def set_ur_char(self, char):
        self._check().ur = char

    def set_ll_char(self, char):
        self._check().ll = char

    def set_lr_char(self, char):
        self._check().lr = char


class Label(_Widget):
    """
    Display-only block of text lines.

    Label(screen, point, message, box=False, shadow=False) creates the label
    on 'screen'. 'message' is a list of lines or a string with newlines.
    Label() creates an unconfigured label.
    """

    _kind = LABEL
    _style_name = "label"

    def __init__(
        self, screen=None, point=None, message=None, box=False, shadow=False, options=None
    ):
        super().__init__()
        if self._unconfigured(screen, point, message):
            return
        self._message = _lines(message)
        self._setup(screen, point, box, shadow, options)

    def _size(self, box):
        b = 2 if box else 0
        height = max(len(self._message), 1) + b
        width = max((len(line) for line in self._message), default=1) + b
        return height, max(width, 1 + b)

    def _render(self, region):
        b = self._border(region)
        style = self._screen.style["label"]
        for i, line in enumerate(self._message):
            region.write(b + i, b, line, style, region.width - 2 * b)

    def get_message(self):
        """Returns the label's lines, in order."""
        self._check()
        return list(self._message)

    def set_message(self, message):
        self._check()
        self._message = _lines(message)
        self._relayout()

    def set(self, message, box):
        """Sets the message and the box setting in one go."""
        self.set_message(message)
        self.set_box(box)

    def wait(self, key=None):
        """
        Draws the label and blocks until 'key' is pressed, or any key when
        'key' is None or "\\0". Returns the key that ended the wait.
        """
        self.draw()
        term = self._term
        if key == "\0":
            key = None
        while True:
            c = term.read_key()
            if c == Key.RESIZE:
                self._screen.refresh()
                continue
            if key is None or c == key:
                return c


#
# Activation
#


class _Interactive(_Widget):
    # The activation engine shared by the interactive widgets.
    #
    # Per key: the pre-process hook may veto or replace it; RETURN/TAB
    # complete (NORMAL) and ESC cancels (ESCAPE_HIT); otherwise the
    # subclass's _edit() may consume it, after which the post-process hook
    # runs; a key nobody consumes ends the activation (EARLY_EXIT).
    #
    # Subclasses implement _edit(), _confirm() and _no_result(), and may
    # override _can_complete(), _begin() and _end().

    def __init__(self):
        super().__init__()
        self.exit_type = NEVER_ACTIVATED
        self._pre_process = None
        self._post_process = None
        self._active = False
        self._queue = collections.deque()

    @property
    def active(self):
        """True while activate() is running."""
        return self._active

    def set_pre_process(self, fn, data=None):
        """
        Installs fn(widget, key, data), called before each key is handled.
        Returning None keeps the key, False drops it, and any other value
        is handled in place of the key. fn=None removes the hook.
        """
        self._check()
        self._pre_process = None if fn is None else (fn, data)

    def set_post_process(self, fn, data=None):
        """
        Installs fn(widget, key, data), called after a key was consumed by
        the widget's editing rules. The return value is ignored.
        """
        self._check()
        self._post_process = None if fn is None else (fn, data)

    def activate(self, keys=None):
        """
        Runs the widget until a key ends it and returns the widget's result.
        'exit_type' tells how it ended: NORMAL (RETURN/TAB), ESCAPE_HIT
        (ESC) or EARLY_EXIT (a key the widget doesn't handle).

        keys:
          Keys to replay instead of reading the terminal. If they run out
          before the activation ends, it ends with EARLY_EXIT.
        """
        self._check()
        if self._active:
            raise CDKError(f"{self!r} is already active")

        term = self._term
        script = collections.deque(keys or ())
        scripted = bool(script)
        self._active = True
        self._begin(term)
        try:
            while True:
                # Injected keys go before the script and the terminal
                if self._queue:
                    key = self._queue.popleft()
                elif script:
                    key = script.popleft()
                elif scripted:
                    return self._finish(EARLY_EXIT, self._no_result())
                else:
                    self._paint()
                    term.update()
                    key = term.read_key()

                done, value = self._process(key)
                if done:
                    return value

                # A hook may have destroyed the widget or closed the screen
                self._check()
        finally:
            self._active = False
            self._queue.clear()
            self._end(term)
            if self._cap.configured and not self._screen.closed:
                self._paint()
                term.update()

    def inject(self, key):
        """
        Feeds one key to the widget. During activate() (i.e. from a hook) the
        key is queued and handled before the next terminal read, and None is
        returned. Otherwise the key is handled right away, and the result is
        returned if it ended the interaction (None if it didn't).
        """
        self._check()
        if self._active:
            self._queue.append(key)
            return None
        done, value = self._process(key)
        return value if done else None

    def _process(self, key):
        # Returns (done, value)
        if key == Key.RESIZE:
            self._screen.refresh()
            return False, None

        if self._pre_process is not None:
            fn, data = self._pre_process
            result = fn(self, key, data)
            if result is False:
                return False, None
            if result is not None:
                key = result
            self._check()

        if key in (Key.RETURN, Key.TAB):
            if self._can_complete():
                return True, self._finish(NORMAL, self._confirm())
            return False, None

        if key == Key.ESCAPE:
            return True, self._finish(ESCAPE_HIT, self._no_result())

        if self._edit(key):
            if self._post_process is not None:
                fn, data = self._post_process
                fn(self, key, data)
            return False, None

        return True, self._finish(EARLY_EXIT, self._no_result())

    def _finish(self, exit_type, value):
        self.exit_type = exit_type
        return value

    def _begin(self, term):
        pass

    def _end(self, term):
        pass

    def _can_complete(self):
        return True

    def _edit(self, key):
        return False


class Button(_Interactive):
    """
    Push button with a one-line text.

    Button(screen, point, text, callback=None, box=False, shadow=False)
    creates the button; callback(button) runs when it is pressed.
    activate() returns 0 when the button is pressed (RETURN/TAB) and -1
    otherwise. The last result is also kept in 'result'.
    """

    _kind = BUTTON
    _style_name = "button"

    def __init__(
        self,
        screen=None,
        point=None,
        text=None,
        callback=None,
        box=False,
        shadow=False,
        options=None,
    ):
        super().__init__()
        self.result = None
        if self._unconfigured(screen, point, text):
            return
        self._text = text or ""
        self._callback = callback
        self._setup(screen, point, box, shadow, options)

    def _size(self, box):
        b = 2 if box else 0
        return 1 + b, max(len(self._text), 1) + b

    def _render(self, region):
        b = self._border(region)
        style = self._screen.style["button-active" if self._active else "button"]
        region.write(b, b, self._text, style, region.width - 2 * b)

    def _confirm(self):
        if self._callback is not None:
            self._callback(self)
        self.result = 0
        return 0

    def _no_result(self):
        self.result = -1
        return -1

    def get_message(self):
        self._check()
        return self._text

    def set_message(self, text):
        self._check()
        self._text = text
        self._relayout()

    def set(self, text, box):
        self.set_message(text)
        self.set_box(box)

    def set_callback(self, callback):
        self._check()
        self._callback = callback


class Entry(_Interactive):
    """
    One-line text entry field with an optional title and label.

    Entry(screen, point, title, label, field_width, min_length=0,
          max_length=None, filler=".", display=DISPLAY_NORMAL,
          field_attrib=None, box=False, shadow=False)

    field_width:
      Visible width of the field. 0 means as wide as the terminal allows,
      a negative value that much narrower.

    min_length/max_length:
      Accepted value length. Characters typed at max_length are rejected.
      RETURN/TAB do not complete while the value is shorter than
      min_length. max_length=None means the field width.

    activate() returns the value on completion and None otherwise (the
    value is left as it was typed).
    """

    _kind = ENTRY
    _style_name = "entry"

    def __init__(
        self,
        screen=None,
        point=None,
        title=None,
        label=None,
        field_width=None,
        min_length=0,
        max_length=None,
        filler=_DEFAULT_FILLER,
        display=DISPLAY_NORMAL,
        field_attrib=None,
        box=False,
        shadow=False,
        options=None,
    ):
        super().__init__()
        if self._unconfigured(screen, point, title, label, field_width):
            return
        self._title = _lines(title)
        self._label = label or ""
        self._field_width_req = field_width or 0
        self._field_width = 1
        self._min = min_length
        self._max = max_length
        self._filler = filler
        self._hidden_char = _DEFAULT_HIDDEN_CHAR
        self._display = display
        self._field_attrib = field_attrib
        self._value = ""
        self._cursor = 0
        self._hscroll = 0
        self._setup(screen, point, box, shadow, options)

    def _size(self, box):
        b = 2 if box else 0
        term = self._term
        self._field_width = _resolve_dimension(
            self._field_width_req, term.width - len(self._label) - b
        )
        width = max(
            len(self._label) + self._field_width,
            max((len(line) for line in self._title), default=0),
        )
        return len(self._title) + 1 + b, width + b

    def _displayed(self):
        if self._display == DISPLAY_MASKED:
            return self._hidden_char * len(self._value)
        if self._display == DISPLAY_HIDDEN:
            return ""
        return self._value

    def _render(self, region):
        b = self._border(region)
        row = b + self._render_title(region)
        style = self._screen.style
        region.write(row, b, self._label, style["entry"])

        x = b + len(self._label)
        width = self._field_width
        visible = self._displayed()[self._hscroll : self._hscroll + width]
        field_style = self._field_attrib or style["entry-field"]
        region.write(row, x, visible.ljust(width, self._filler), field_style)

        if self._active:
            cursor = self._cursor if self._display != DISPLAY_HIDDEN else 0
            self._term.set_cursor(region, row, x + cursor - self._hscroll)

    def _scroll(self):
        # Keeps the cursor away from the field edges, except at the ends of
        # the value
        width = self._field_width
        i = self._cursor
        if i < self._hscroll + _SCROLL_OFFSET:
            self._hscroll = max(i - _SCROLL_OFFSET, 0)
        elif i >= self._hscroll + width - _SCROLL_OFFSET:
            max_scroll = max(len(self._value) - width + 1, 0)
            self._hscroll = min(i - width + _SCROLL_OFFSET + 1, max_scroll)

    def _begin(self, term):
        self._cursor = len(self._value)
        self._scroll()
        term.show_cursor(very_visible=True)

    def _end(self, term):
        term.hide_cursor()

    def _can_complete(self):
        return len(self._value) >= self._min

    def _confirm(self):
        return self._value

    def _no_result(self):
        return None

    def _edit(self, key):
        # Text editing commands. Returns True if the key was consumed,
        # including characters rejected at the maximum length.
        s, i = self._value, self._cursor

        if key == Key.LEFT:
            i = max(i - 1, 0)

        elif key == Key.RIGHT:
            i = min(i + 1, len(s))

        elif key in (Key.HOME, "\x01"):  # \x01 = CTRL-A
            i = 0

        elif key in (Key.END, "\x05"):  # \x05 = CTRL-E
            i = len(s)

        elif key == Key.BACKSPACE:
            if i > 0:
                s = s[: i - 1] + s[i:]
                i -= 1

        elif key == Key.DELETE:
            s = s[:i] + s[i + 1 :]

        elif key == "\x17":  # \x17 = CTRL-W
            # The \W removes characters like ',' one at a time
            new_i = re.search(r"(?:\w*|\W)\s*$", s[:i]).start()
            s = s[:new_i] + s[i:]
            i = new_i

        elif key == "\x0b":  # \x0B = CTRL-K
            s = s[:i]

        elif key == "\x15":  # \x15 = CTRL-U
            s = s[i:]
            i = 0

        elif _printable(key):
            if len(s) >= self.get_max_length():
                return True
            s = s[:i] + key + s[i:]
            i += 1

        else:
            return False

        self._value, self._cursor = s, i
        self._scroll()
        return True

    def get_value(self):
        self._check()
        return self._value

    def set_value(self, value):
        """Sets the value, cut to the maximum length."""
        self._check()
        self._value = (value or "")[: self.get_max_length()]
        self._cursor = len(self._value)
        self._scroll()

    def clean(self):
        """Empties the field."""
        self.set_value("")

    def set(self, value, min_length, max_length, box):
        self._check()
        self._min = min_length
        self._max = max_length
        self.set_value(value)
        self.set_box(box)

    def get_min_length(self):
        self._check()
        return self._min

    def set_min_length(self, min_length):
        self._check()
        self._min = min_length

    def get_max_length(self):
        self._check()
        return self._field_width if self._max is None else self._max

    def set_max_length(self, max_length):
        self._check()
        self._max = max_length
        self.set_value(self._value)

    def get_filler_char(self):
        self._check()
        return self._filler

    def set_filler_char(self, char):
        self._check()
        self._filler = char

    def get_hidden_char(self):
        self._check()
        return self._hidden_char

    def set_hidden_char(self, char):
        """Sets the character shown per typed character in DISPLAY_MASKED mode."""
        self._check()
        self._hidden_char = char

    def get_display(self):
        self._check()
        return self._display

    def set_display(self, display):
        self._check()
        self._display = display

    def get_field_attrib(self):
        self._check()
        return self._field_attrib

    def set_field_attrib(self, style):
        self._check()
        self._field_attrib = style


class AlphaList(_Interactive):
    """
    Alphabetically sorted pick list with an incremental search field.

    AlphaList(screen, point, size, title, label, items, filler=".",
              highlight=None, box=False, shadow=False)

    size:
      (height, width). 0 means the full terminal dimension, a negative
      value that much less.

    items:
      The entries. They are kept sorted (plain string order) whatever the
      order they are given or added in.

    Typing extends the search prefix and selects the first item starting
    with it; characters that would match nothing are rejected. BACKSPACE
    shortens the prefix. The cursor keys move the selection. activate()
    returns the selected item on completion and None otherwise.
    """

    _kind = ALPHALIST
    _style_name = "list"

    def __init__(
        self,
        screen=None,
        point=None,
        size=None,
        title=None,
        label=None,
        items=None,
        filler=_DEFAULT_FILLER,
        highlight=None,
        box=False,
        shadow=False,
        options=None,
    ):
        super().__init__()
        if self._unconfigured(screen, point, size, title, label, items):
            return
        self._size_req = size or (0, 0)
        self._title = _lines(title)
        self._label = label or ""
        self._items = sorted(items or ())
        self._current = 0
        self._top = 0
        self._prefix = ""
        self._filler = filler
        self._highlight = highlight
        self._setup(screen, point, box, shadow, options)

    def _size(self, box):
        b = 2 if box else 0
        term = self._term
        height, width = self._size_req
        # Title, search field and at least one list row
        min_height = len(self._title) + 2 + b
        min_width = len(self._label) + 1 + b
        height = max(_resolve_dimension(height, term.height), min_height)
        width = max(_resolve_dimension(width, term.width), min_width)
        return height, width

    def _list_rows(self):
        region = self._cap.resource
        b = self._border(region)
        return max(region.height - 2 * b - len(self._title) - 1, 1)

    def _render(self, region):
        b = self._border(region)
        inner = region.width - 2 * b
        style = self._screen.style

        row = b + self._render_title(region)
        region.write(row, b, self._label, style["list"])
        field_width = inner - len(self._label)
        region.write(
            row,
            b + len(self._label),
            self._prefix[:field_width].ljust(field_width, self._filler),
            style["entry-field"],
        )
        if self._active:
            self._term.set_cursor(
                region, row, b + len(self._label) + min(len(self._prefix), field_width)
            )

        highlight = self._highlight or style["selection"]
        for i, item in enumerate(self._items[self._top : self._top + self._list_rows()]):
            index = self._top + i
            item_style = highlight if index == self._current else style["list"]
            region.write(row + 1 + i, b, item.ljust(inner), item_style, inner)

    def _scroll(self):
        rows = self._list_rows()
        if self._current < self._top:
            self._top = self._current
        elif self._current >= self._top + rows:
            self._top = self._current - rows + 1

    def _find(self, prefix):
        # First item in sort order starting with 'prefix', or None
        i = bisect.bisect_left(self._items, prefix)
        if i < len(self._items) and self._items[i].startswith(prefix):
            return i
        return None

    def _select(self, index):
        if not self._items:
            return
        self._current = min(max(index, 0), len(self._items) - 1)
        self._prefix = self._items[self._current]
        self._scroll()

    def _begin(self, term):
        self._prefix = ""
        term.show_cursor()

    def _end(self, term):
        term.hide_cursor()

    def _confirm(self):
        return self._items[self._current] if self._items else None

    def _no_result(self):
        return None

    def _edit(self, key):
        rows = self._list_rows()

        if key == Key.UP:
            self._select(self._current - 1)
        elif key == Key.DOWN:
            self._select(self._current + 1)
        elif key == Key.PAGE_UP:
            self._select(self._current - rows)
        elif key == Key.PAGE_DOWN:
            self._select(self._current + rows)
        elif key == Key.HOME:
            self._select(0)
        elif key == Key.END:
            self._select(len(self._items) - 1)

        elif key == Key.BACKSPACE:
            self._prefix = self._prefix[:-1]
            index = self._find(self._prefix) if self._prefix else None
            if index is not None:
                self._current = index
                self._scroll()

        elif _printable(key):
            index = self._find(self._prefix + key)
            if index is None:
                return True
            self._prefix += key
            self._current = index
            self._scroll()

        else:
            return False

        return True

    def get_contents(self):
        """Returns the items in their (sorted) display order."""
        self._check()
        return list(self._items)

    def set_contents(self, items):
        self._check()
        self._items = sorted(items)
        self._current = self._top = 0
        self._prefix = ""

    def add_item(self, item):
        """Inserts 'item' at its sorted position. The selection follows its item."""
        self._check()
        selected = self._items[self._current] if self._items else None
        bisect.insort(self._items, item)
        if selected is not None and item < selected:
            self._current += 1
        self._scroll()

    def delete_item(self, item):
        """Removes 'item'. Returns False if there was no such item."""
        self._check()
        i = self._find(item)
        if i is None or self._items[i] != item:
            return False
        del self._items[i]
        if i < self._current or self._current >= len(self._items):
            self._current = max(self._current - 1, 0)
        self._top = min(self._top, self._current)
        return True

    def get_current_item(self):
        """Index of the selected item."""
        self._check()
        return self._current

    def set_current_item(self, index):
        self._check()
        self._select(index)

    def get_filler_char(self):
        self._check()
        return self._filler

    def set_filler_char(self, char):
        self._check()
        self._filler = char

    def get_highlight(self):
        self._check()
        return self._highlight

    def set_highlight(self, style):
        """Sets the style of the selected item."""
        self._check()
        self._highlight = style


# Calendar key bindings: date steps in days, months and years
_CALENDAR_DAY_STEPS = {Key.LEFT: -1, Key.RIGHT: 1, Key.UP: -7, Key.DOWN: 7}
_CALENDAR_MONTH_STEPS = {Key.PAGE_UP: -1, "P": -1, Key.PAGE_DOWN: 1, "N": 1}
_CALENDAR_YEAR_STEPS = {"p": -1, "n": 1}


def _add_months(date, n):
    # Moves 'date' by n months, clamping the day to the target month. Raises
    # OverflowError past year 1 or 9999, like date arithmetic does.
    month_index = date.year * 12 + date.month - 1 + n
    year, month = divmod(month_index, 12)
    if not datetime.MINYEAR <= year <= datetime.MAXYEAR:
        raise OverflowError("date value out of range")
    month += 1
    day = min(date.day, calendar.monthrange(year, month)[1])
    return datetime.date(year, month, day)


def _make_date(day, month, year):
    # Builds a date. Missing (None or 0) fields come from today; the day is
    # clamped to the month's length.
    today = datetime.date.today()
    year = year or today.year
    month = month or today.month
    day = day or today.day
    return datetime.date(year, month, min(day, calendar.monthrange(year, month)[1]))


class Calendar(_Interactive):
    """
    Month calendar with a selectable day.

    Calendar(screen, point, title, day, month, year, day_attrib=None,
             month_attrib=None, year_attrib=None, highlight=None,
             box=False, shadow=False)

    Missing (None or 0) day/month/year fields default to today's. LEFT/RIGHT
    move by a day, UP/DOWN by a week, PAGE_UP/PAGE_DOWN (or P/N) by a month,
    p/n by a year, and HOME jumps to today. Marked days are drawn in their
    marker style.

    activate() returns the selected day as a Unix timestamp (local midnight)
    on completion and -1 otherwise.
    """

    _kind = CALENDAR
    _style_name = "calendar"

    def __init__(
        self,
        screen=None,
        point=None,
        title=None,
        day=None,
        month=None,
        year=None,
        day_attrib=None,
        month_attrib=None,
        year_attrib=None,
        highlight=None,
        box=False,
        shadow=False,
        options=None,
    ):
        super().__init__()
        if self._unconfigured(screen, point, title, day, month, year):
            return
        self._title = _lines(title)
        self._date = _make_date(day, month, year)
        self._day_attrib = day_attrib
        self._month_attrib = month_attrib
        self._year_attrib = year_attrib
        self._highlight = highlight
        self._day_names = _DAY_NAMES
        self._month_names = list(_MONTH_NAMES)
        self._markers = {}
        self._setup(screen, point, box, shadow, options)

    def _size(self, box):
        b = 2 if box else 0
        width = max(
            _CALENDAR_GRID_WIDTH + 2,
            max((len(line) for line in self._title), default=0),
        )
        # Title, month/year header, day names, week rows
        return len(self._title) + 2 + _CALENDAR_WEEKS + b, width + b

    def _render(self, region):
        b = self._border(region)
        inner = region.width - 2 * b
        style = self._screen.style
        date = self._date

        row = b + self._render_title(region)

        month = self._month_names[date.month - 1]
        year = str(date.year)
        x = b + max((inner - len(month) - 1 - len(year)) // 2, 0)
        region.write(row, x, month, self._month_attrib or style["month"])
        region.write(row, x + len(month) + 1, year, self._year_attrib or style["year"])

        left = b + (inner - _CALENDAR_GRID_WIDTH) // 2
        region.write(row + 1, left, self._day_names, style["calendar"])

        # Sunday is the first column
        first_col = (date.replace(day=1).weekday() + 1) % 7
        days = calendar.monthrange(date.year, date.month)[1]
        for day in range(1, days + 1):
            week, col = divmod(first_col + day - 1, 7)
            if day == date.day:
                day_style = self._highlight or style["highlight"]
            else:
                day_style = self._markers.get(
                    datetime.date(date.year, date.month, day),
                    self._day_attrib or style["day"],
                )
            region.write(row + 2 + week, left + 3 * col, f"{day:2}", day_style)

    def _confirm(self):
        return int(time.mktime(self._date.timetuple()))

    def _no_result(self):
        return -1

    def _edit(self, key):
        date = self._date
        try:
            if key in _CALENDAR_DAY_STEPS:
                date += datetime.timedelta(days=_CALENDAR_DAY_STEPS[key])
            elif key in _CALENDAR_MONTH_STEPS:
                date = _add_months(date, _CALENDAR_MONTH_STEPS[key])
            elif key in _CALENDAR_YEAR_STEPS:
                date = _add_months(date, 12 * _CALENDAR_YEAR_STEPS[key])
            elif key == Key.HOME:
                date = datetime.date.today()
            else:
                return False
        except OverflowError:
            # Stepping past year 1 or 9999 leaves the date where it is
            return True

        self._date = date
        return True

    def get_date(self):
        """Returns the selected (day, month, year)."""
        self._check()
        return self._date.day, self._date.month, self._date.year

    def set_date(self, day, month, year):
        """Selects a date. Missing (None or 0) fields come from today."""
        self._check()
        self._date = _make_date(day, month, year)

    def get_day_attrib(self):
        self._check()
        return self._day_attrib

    def set_day_attrib(self, style):
        self._check()
        self._day_attrib = style

    def get_month_attrib(self):
        self._check()
        return self._month_attrib

    def set_month_attrib(self, style):
        self._check()
        self._month_attrib = style

    def get_year_attrib(self):
        self._check()
        return self._year_attrib

    def set_year_attrib(self, style):
        self._check()
        self._year_attrib = style

    def get_highlight(self):
        self._check()
        return self._highlight

    def set_highlight(self, style):
        """Sets the style of the selected day."""
        self._check()
        self._highlight = style

    def set_days_names(self, names):
        """Sets the day-name row, e.g. "Di Lu Ma Me Je Ve Sa"."""
        self._check()
        self._day_names = names

    def set_month_names(self, names):
        self._check()
        if len(names) != 12:
            raise ValueError(f"expected 12 month names, got {len(names)}")
        self._month_names = list(names)

    def set_marker(self, day, month, year, marker):
        """Draws the given date with the style 'marker'."""
        self._check()
        self._markers[datetime.date(year, month, day)] = marker

    def get_marker(self, day, month, year):
        """Returns the marker style of the date, or None if it has none."""
        self._check()
        return self._markers.get(datetime.date(year, month, day))

    def remove_marker(self, day, month, year):
        """Removes the date's marker. Unmarked dates are ignored."""
        self._check()
        self._markers.pop(datetime.date(year, month, day), None)

    def clear_markers(self):
        self._check()
        self._markers.clear()
