"""Measure unit test coverage of the harness and step definitions."""

import sys
from pathlib import Path
import coverage
import pytest

# webharness and tests.step_defs import from the project root
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

cov = coverage.Coverage(source=["webharness", "tests.step_defs"])
cov.start()

# Browser scenarios need a live application, so only the unit suite counts
exit_code = pytest.main(["tests/unit/"])

cov.stop()
cov.save()

cov.report(show_missing=True)
sys.exit(exit_code)
