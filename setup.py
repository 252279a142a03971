#!/usr/bin/env python3
# =============================================================================
#  static-access-lint — setup.py
#
#  The version lives in static_access_lint/__init__.py and the runtime
#  dependencies in requirements.txt; this file reads both.
#
#      pip install -e ".[dev]"
#      python -m pytest
# =============================================================================

from __future__ import annotations

import re
from pathlib import Path

from setuptools import setup, find_packages

_HERE = Path(__file__).resolve().parent


def _read_version() -> str:
    """Extract ``__version__`` from the package without importing it."""
    init = _HERE / "static_access_lint" / "__init__.py"
    text = init.read_text(encoding="utf-8")
    match = re.search(r'^__version__(?::\s*str)?\s*=\s*"([^"]+)"', text, re.MULTILINE)
    if match:
        return match.group(1)
    return "0.0.0"


def _read_long_description() -> str:
    readme = _HERE / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


def _read_requirements() -> list[str]:
    """Read requirements.txt if it exists."""
    req_file = _HERE / "requirements.txt"
    if req_file.exists():
        lines = req_file.read_text(encoding="utf-8").splitlines()
        return [
            ln.strip()
            for ln in lines
            if ln.strip() and not ln.strip().startswith("#")
        ]
    return []


setup(
    name="static-access-lint",
    version=_read_version(),
    description=(
        "Cppcheck addon that rewrites static members accessed through an "
        "instance into qualified names."
    ),
    long_description=_read_long_description(),
    long_description_content_type="text/markdown",
    license="MIT",
    python_requires=">=3.10",
    packages=find_packages(
        include=[
            "static_access_lint",
            "static_access_lint.*",
        ],
        exclude=[
            "tests",
            "tests.*",
        ],
    ),
    install_requires=_read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "static-access-lint=static_access_lint.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords=[
        "cppcheck",
        "static-analysis",
        "clang-tidy",
        "readability",
        "refactoring",
    ],
    zip_safe=False,
)
