"""Soft assertions - record failures, keep going, report at the end.

Safe to use from event callbacks: failures recorded on the dispatcher
thread are reported with the rest.

PUBLIC API:
  - SoftAssertions: Failure collector with assertion helpers
  - soft_assertions: Context manager that raises at scope exit
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Sized

from devtap.errors import SoftAssertionError

logger = logging.getLogger(__name__)


class SoftAssertions:
    """Collects assertion failures without interrupting the test body."""

    def __init__(self):
        self._failures: list[str] = []
        self._checks = 0
        self._lock = threading.Lock()

    @property
    def failures(self) -> list[str]:
        with self._lock:
            return list(self._failures)

    @property
    def checks(self) -> int:
        with self._lock:
            return self._checks

    def check(self, condition: Any, message: str) -> bool:
        """Record message as a failure unless condition is truthy.

        Returns:
            Whether the check passed.
        """
        passed = bool(condition)
        with self._lock:
            self._checks += 1
            if not passed:
                self._failures.append(message)
        if not passed:
            logger.warning(f"Soft assertion failed: {message}")
        return passed

    def fail(self, message: str) -> None:
        self.check(False, message)

    def is_true(self, value: Any, label: str = "value") -> bool:
        return self.check(value, f"Expected {label} to be truthy, got {value!r}")

    def equal(self, actual: Any, expected: Any, label: str = "value") -> bool:
        return self.check(actual == expected, f"Expected {label} == {expected!r}, got {actual!r}")

    def contains(self, container: Any, item: Any, label: str = "value") -> bool:
        try:
            found = item in container
        except TypeError:
            found = False
        return self.check(found, f"Expected {label} to contain {item!r}, got {_short(container)}")

    def is_empty(self, collection: Sized, label: str = "collection") -> bool:
        return self.check(len(collection) == 0, f"Expected {label} to be empty, got {len(collection)} item(s)")

    def not_empty(self, collection: Sized, label: str = "collection") -> bool:
        return self.check(len(collection) > 0, f"Expected {label} to be non-empty")

    def assert_all(self) -> None:
        """Raise SoftAssertionError if anything failed."""
        failures = self.failures
        if failures:
            raise SoftAssertionError(failures)


def _short(value: Any, limit: int = 200) -> str:
    text = repr(value)
    return text if len(text) <= limit else text[: limit - 3] + "..."


@contextmanager
def soft_assertions() -> Iterator[SoftAssertions]:
    """Scope for soft assertions.

    Raises SoftAssertionError at exit if any check failed. When the body
    itself raises, that error propagates and recorded failures are logged.
    """
    softly = SoftAssertions()
    try:
        yield softly
    except BaseException:
        for failure in softly.failures:
            logger.error(f"Soft assertion failed before error: {failure}")
        raise
    softly.assert_all()


__all__ = ["SoftAssertions", "soft_assertions"]
