"""Exception types raised by the impact simulator."""

from __future__ import annotations


class InvalidParameters(ValueError):
    """Raised when impactor parameters fail validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Invalid impact parameters: {'; '.join(errors)}")


class DatasetUnavailable(RuntimeError):
    """Raised when no configured source yields a usable city dataset."""

    def __init__(self, tried: list[str], reason: str | None = None):
        self.tried = tried
        self.reason = reason
        detail = f" ({reason})" if reason else ""
        super().__init__(f"No city dataset available from {tried or 'any source'}{detail}")
