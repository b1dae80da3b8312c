"""Exceptions raised by the feature-test harness."""


class HarnessError(Exception):
    """Base class for harness errors."""


class EnvironmentFault(HarnessError):
    """The test environment could not be prepared.

    Raised when an external reset command exits non-zero. The whole test
    run is aborted, the scenario is never retried.
    """

    def __init__(self, command: str, returncode: int):
        self.command = command
        self.returncode = returncode
        super().__init__(f"'{command}' exited with status {returncode}")


class ElementNotFound(HarnessError, AssertionError):
    """No element on the current page matched a query."""


class AssetBuildError(HarnessError):
    """An asset pipeline task failed."""
