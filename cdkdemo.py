#!/usr/bin/env python3

# Copyright (c) 2026 pycdk contributors
# SPDX-License-Identifier: ISC

"""
Shows a label, a button and an alphabetical list, and lets the user press
the button. Prints how the button was left.

Usage: cdkdemo

Colors can be changed with the CDK_STYLE environment variable, see cdk.py.
"""

import sys

import cdk
import cdkterm


def demo(term, keys=None):
    """
    Builds the demo screen on 'term' and activates the button. Returns the
    button's (result, exit_type). 'keys' is passed on to Button.activate().
    """
    with cdk.Screen(term) as screen:
        # The Screen only holds weak references, so keep the widgets alive here
        label = cdk.Label(screen, (cdk.CENTER, 5), ["libcdkpp", "demo", "1.0"])

        button = cdk.Button(
            screen,
            (cdk.CENTER, 10),
            "Press me",
            options=cdk.DrawingOptions(box=True, shadow=True),
        )

        alist = cdk.AlphaList(
            screen,
            (0, 0),
            (10, 12),
            "Title",
            "",
            ["10", "thing", "I", "hate"],
            filler=" ",
            highlight=cdkterm.A_REVERSE,
        )

        screen.refresh()
        result = button.activate(keys)
        return result, button.exit_type


def _main():
    if len(sys.argv) > 1:
        sys.exit(__doc__.strip())

    res = cdkterm.run(demo)
    if res is None:
        return

    result, exit_type = res
    print(f"button: result {result}, {cdk.EXIT_TYPE_TO_STR[exit_type]}")


if __name__ == "__main__":
    _main()
