"""Mock classes for unit testing step definitions."""

from .mock_browser import MockBrowserSession, MockElement

__all__ = [
    "MockBrowserSession",
    "MockElement",
]
