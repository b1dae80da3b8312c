"""Per-scenario assertion context."""

from typing import Any, Container, Optional


class World:
    """Execution context created fresh for every scenario.

    Keeps a running count of the assertions made during the scenario. Every
    assertion helper counts itself whether it passes or not, and raises
    AssertionError on failure.
    """

    def __init__(self):
        self.assertions = 0

    def assert_(self, test: Any, msg: Optional[str] = None) -> None:
        """Fail unless test is truthy."""
        self.assertions += 1
        if not test:
            raise AssertionError(msg or "Expected a truthy value")

    def refute(self, test: Any, msg: Optional[str] = None) -> None:
        """Fail if test is truthy."""
        self.assert_(not test, msg or f"Expected {test!r} to be falsy")

    def assert_equal(self, expected: Any, actual: Any, msg: Optional[str] = None) -> None:
        self.assert_(
            expected == actual, msg or f"Expected {expected!r}, got {actual!r}"
        )

    def assert_includes(
        self, collection: Container, obj: Any, msg: Optional[str] = None
    ) -> None:
        self.assert_(
            obj in collection, msg or f"Expected {obj!r} to be included"
        )

    def refute_includes(
        self, collection: Container, obj: Any, msg: Optional[str] = None
    ) -> None:
        self.assert_(
            obj not in collection, msg or f"Expected {obj!r} not to be included"
        )
