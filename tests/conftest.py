# Copyright (c) 2026 pycdk contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures for the pycdk pytest suite. Everything runs against
# cdkterm.HeadlessTerminal, so no real terminal is needed.

import os
import sys

import pytest

# Ensure cdk and cdkterm are importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import cdk  # noqa: E402
import cdkterm  # noqa: E402

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the user's color settings out of the tests."""
    monkeypatch.delenv("CDK_STYLE", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    yield


@pytest.fixture
def term():
    """A 24x80 in-memory terminal."""
    return cdkterm.HeadlessTerminal(24, 80)


@pytest.fixture
def screen(term):
    """An open Screen on the headless terminal, closed after the test."""
    with cdk.Screen(term) as s:
        yield s


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def screen_text(term):
    """The composed frame as one string, rows separated by newlines."""
    return "\n".join(row.rstrip() for row in term.snapshot())
