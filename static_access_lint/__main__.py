#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
static_access_lint/__main__.py
==============================

Entry point for ``python -m static_access_lint``; see :mod:`static_access_lint.main`.
"""

from static_access_lint.main import main

if __name__ == "__main__":
    raise SystemExit(main())
