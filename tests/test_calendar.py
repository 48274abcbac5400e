# Copyright (c) 2026 pycdk contributors
# SPDX-License-Identifier: ISC
#
# Calendar tests: date navigation, results, markers and the month grid.

import datetime
import time

import pytest

import cdk
from cdkterm import Key


def _timestamp(year, month, day):
    return int(time.mktime(datetime.date(year, month, day).timetuple()))


@pytest.fixture
def cal(screen):
    return cdk.Calendar(screen, (0, 0), "Title", 15, 1, 2024)


def test_initial_date(cal):
    assert cal.get_date() == (15, 1, 2024)


def test_defaults_to_today(screen):
    today = datetime.date.today()
    cal = cdk.Calendar(screen, (0, 0), None, 0, 0, 0)
    assert cal.get_date() == (today.day, today.month, today.year)


def test_day_and_week_steps(cal):
    cal.activate([Key.LEFT, Key.LEFT])
    assert cal.get_date() == (13, 1, 2024)

    cal.activate([Key.DOWN, Key.RIGHT])
    assert cal.get_date() == (21, 1, 2024)

    cal.activate([Key.UP, Key.UP, Key.UP])
    assert cal.get_date() == (31, 12, 2023)


def test_month_steps_clamp_day(screen):
    cal = cdk.Calendar(screen, (0, 0), None, 31, 1, 2024)
    cal.activate([Key.PAGE_DOWN])
    assert cal.get_date() == (29, 2, 2024)

    cal.activate(["N", "P", "P"])
    assert cal.get_date() == (29, 1, 2024)

    cal.activate([Key.PAGE_UP])
    assert cal.get_date() == (29, 12, 2023)


def test_year_steps(screen):
    cal = cdk.Calendar(screen, (0, 0), None, 29, 2, 2024)
    cal.activate(["n"])
    assert cal.get_date() == (28, 2, 2025)

    cal.activate(["p", "p"])
    assert cal.get_date() == (28, 2, 2023)


def test_steps_stop_at_first_year(screen):
    cal = cdk.Calendar(screen, (0, 0), None, 15, 1, 1)
    cal.activate(["P", Key.PAGE_UP, "p"])
    assert cal.get_date() == (15, 1, 1)

    cal.set_date(1, 1, 1)
    cal.activate([Key.LEFT, Key.UP])
    assert cal.get_date() == (1, 1, 1)

    # Steps that stay in range still work
    cal.activate(["N"])
    assert cal.get_date() == (1, 2, 1)


def test_steps_stop_at_last_year(screen):
    cal = cdk.Calendar(screen, (0, 0), None, 20, 12, 9999)
    cal.activate([Key.PAGE_DOWN, "N", "n"])
    assert cal.get_date() == (20, 12, 9999)

    cal.set_date(31, 12, 9999)
    cal.activate([Key.RIGHT, Key.DOWN])
    assert cal.get_date() == (31, 12, 9999)

    cal.activate(["p"])
    assert cal.get_date() == (31, 12, 9998)


def test_home_is_today(cal):
    today = datetime.date.today()
    cal.activate([Key.HOME])
    assert cal.get_date() == (today.day, today.month, today.year)


def test_return_gives_timestamp(cal):
    assert cal.activate([Key.RIGHT, Key.RETURN]) == _timestamp(2024, 1, 16)
    assert cal.exit_type == cdk.NORMAL


def test_escape_and_early_exit(cal):
    assert cal.activate([Key.ESCAPE]) == -1
    assert cal.exit_type == cdk.ESCAPE_HIT

    assert cal.activate(["x"]) == -1
    assert cal.exit_type == cdk.EARLY_EXIT


def test_marker_round_trip(cal):
    cal.set_marker(1, 1, 2024, cdk.A_BOLD)
    assert cal.get_marker(1, 1, 2024) == cdk.A_BOLD

    cal.remove_marker(1, 1, 2024)
    assert cal.get_marker(1, 1, 2024) is None

    # Removing again is harmless
    cal.remove_marker(1, 1, 2024)


def test_clear_markers(cal):
    cal.set_marker(1, 1, 2024, cdk.A_BOLD)
    cal.set_marker(2, 1, 2024, cdk.A_UNDERLINE)
    cal.clear_markers()
    assert cal.get_marker(1, 1, 2024) is None
    assert cal.get_marker(2, 1, 2024) is None


def test_set_date(cal):
    cal.set_date(31, 4, 2024)
    assert cal.get_date() == (30, 4, 2024)


def test_draw(cal, term):
    cal.set_marker(1, 1, 2024, cdk.A_UNDERLINE)
    cal.draw()
    rows = term.snapshot()

    assert rows[0].strip() == "Title"
    assert rows[1].strip() == "January 2024"
    assert rows[2].strip() == "Su Mo Tu We Th Fr Sa"
    # January 1st, 2024 was a Monday
    assert rows[3][:22].rstrip() == "     1  2  3  4  5  6"
    assert rows[7][:22].rstrip() == " 28 29 30 31"

    style = cal.screen.style
    assert term.style_at(5, 5) == style["highlight"]  # the 15th
    assert term.style_at(3, 5) == cdk.A_UNDERLINE  # the marked 1st
    assert term.style_at(3, 8) == style["day"]
    assert term.style_at(1, 5) == style["month"]


def test_attribute_setters(cal, term):
    cal.set_day_attrib(cdk.A_BOLD)
    cal.set_month_attrib(cdk.A_UNDERLINE)
    cal.set_year_attrib(cdk.A_REVERSE)
    cal.set_highlight(cdk.A_UNDERLINE)
    assert cal.get_day_attrib() == cdk.A_BOLD
    assert cal.get_month_attrib() == cdk.A_UNDERLINE
    assert cal.get_year_attrib() == cdk.A_REVERSE
    assert cal.get_highlight() == cdk.A_UNDERLINE

    cal.draw()
    assert term.style_at(3, 8) == cdk.A_BOLD
    assert term.style_at(1, 5) == cdk.A_UNDERLINE
    assert term.style_at(1, 13) == cdk.A_REVERSE


def test_names(cal, term):
    cal.set_days_names("Di Lu Ma Me Je Ve Sa")
    cal.set_month_names(
        [
            "janvier",
            "février",
            "mars",
            "avril",
            "mai",
            "juin",
            "juillet",
            "août",
            "septembre",
            "octobre",
            "novembre",
            "décembre",
        ]
    )
    cal.draw()
    rows = term.snapshot()
    assert rows[1].strip() == "janvier 2024"
    assert rows[2].strip() == "Di Lu Ma Me Je Ve Sa"

    with pytest.raises(ValueError):
        cal.set_month_names(["jan"])


def test_capability(cal):
    assert cal.capability.kind == cdk.CALENDAR
    assert cdk.KIND_TO_STR[cal.capability.kind] == "calendar"
