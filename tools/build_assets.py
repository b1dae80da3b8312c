#!/usr/bin/env python3
"""Convenience wrapper for the static asset build.

This script provides a local entry point for webharness.assets, the same
build the `build-assets` console script runs.

Outputs:
    static/style.css (+ style.css.map)   compiled from style/style.scss
    static/js/accessibility.min.js       minified static/js/accessibility.js
    static/icons.min.svg                 optimised static/icons.svg, if present

Usage:
    python tools/build_assets.py --root .
    python tools/build_assets.py css js
    python tools/build_assets.py --no-icons
"""

import sys
from pathlib import Path

# Importable from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from webharness.assets import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
