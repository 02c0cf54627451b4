# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Error kinds raised by the on-call client and the reconciliation engine.

Status-code surprises are never raised; they travel in ``CallResult``.
"""

from dataclasses import dataclass


class OncallError(Exception):
    """Base class for every error raised by this package."""


class LoginFailed(OncallError):
    """Authentication transport or decode failure."""


class InvalidEndpoint(OncallError):
    """A target URL could not be built from the base URL and path segments."""


class InvalidRequest(OncallError):
    """A request body or request object could not be built."""


class TransportError(OncallError):
    """Network-level failure talking to a remote service."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class OperationFailure:
    """One failed step: what was attempted, on which entity, and why."""

    operation: str
    target: str
    cause: Exception

    def __str__(self) -> str:
        return f"{self.operation}({self.target}): {self.cause}"


class AggregateError(OncallError):
    """Several independent operations failed; each failure is kept separately."""

    def __init__(self, failures: list[OperationFailure]):
        self.failures = list(failures)
        super().__init__("; ".join(str(f) for f in self.failures))

    def __len__(self) -> int:
        return len(self.failures)

    def operations(self) -> list[str]:
        return [f.operation for f in self.failures]

    def targets(self) -> list[str]:
        return [f.target for f in self.failures]

    @classmethod
    def from_failures(cls, failures: list[OperationFailure]) -> "AggregateError | None":
        """Return an aggregate for a non-empty list, otherwise ``None``."""
        if not failures:
            return None
        return cls(failures)


class InvalidResponse(OncallError):
    """A response arrived but its body or status cannot be used."""
