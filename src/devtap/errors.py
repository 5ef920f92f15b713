"""Error taxonomy for devtap.

PUBLIC API:
  - DevtapError: Base class for harness errors
  - SetupError: Browser, driver or session failed to start
  - ProtocolError: CDP command failed or session closed
  - TimingFailure: Expected state did not appear within a bound
  - SoftAssertionError: Accumulated soft assertion failures
"""


class DevtapError(Exception):
    """Base class for all harness errors."""


class SetupError(DevtapError):
    """Browser or CDP session could not be brought up.

    Fatal for the test that raised it; no assertions run afterwards.
    """


class ProtocolError(DevtapError):
    """A CDP command failed.

    Attributes:
        method: CDP method that was sent.
        code: CDP error code, if the browser returned one.
        message: Error text from the browser or the transport.
    """

    def __init__(self, method: str, message: str, code: int | None = None):
        self.method = method
        self.code = code
        self.message = message
        detail = f" (code {code})" if code is not None else ""
        super().__init__(f"{method} failed{detail}: {message}")

    @classmethod
    def from_response(cls, method: str, error: dict) -> "ProtocolError":
        """Build from the 'error' object of a CDP response."""
        return cls(method, error.get("message", "Unknown error"), error.get("code"))


class TimingFailure(DevtapError):
    """A wait or event expectation expired.

    Attributes:
        description: What was being waited for.
        timeout: Seconds waited.
    """

    def __init__(self, description: str, timeout: float):
        self.description = description
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:g}s waiting for {description}")


class SoftAssertionError(AssertionError):
    """All failures recorded by one soft assertion scope.

    Attributes:
        failures: Failure messages in the order they were recorded.
    """

    def __init__(self, failures: list[str]):
        self.failures = list(failures)
        lines = "\n".join(f"  {i}) {msg}" for i, msg in enumerate(self.failures, 1))
        super().__init__(f"{len(self.failures)} soft assertion(s) failed:\n{lines}")


__all__ = ["DevtapError", "SetupError", "ProtocolError", "TimingFailure", "SoftAssertionError"]
