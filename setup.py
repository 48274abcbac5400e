import os

import setuptools

# Make sure that README.md decodes in environments that use the C locale
# (which implies ASCII), by explicitly giving the encoding.
with open(os.path.join(os.path.dirname(__file__), "README.md"), encoding="utf-8") as f:
    long_description = f.read()


setuptools.setup(
    name="pycdk",
    # MAJOR.MINOR.PATCH, per http://semver.org
    version="0.1.0",
    description="Terminal widgets (labels, buttons, entries, lists, calendars) "
    "with an owning screen",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="terminal, tui, widgets, cdk, curses",
    license="ISC",
    py_modules=(
        "cdk",
        "cdkterm",
        "cdkdemo",
    ),
    entry_points={
        "console_scripts": ("cdkdemo = cdkdemo:_main",)
    },
    extras_require={
        "test": ["pytest"],
    },
    # The terminal surface needs termios, so only POSIX systems are supported
    python_requires=">=3.7",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Environment :: Console",
        "Topic :: Software Development :: User Interfaces",
        "License :: OSI Approved :: ISC License (ISCL)",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: Implementation :: CPython",
        "Programming Language :: Python :: Implementation :: PyPy",
    ],
)
