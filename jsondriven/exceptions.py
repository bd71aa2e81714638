from typing import Any, Iterable, Optional


class JsonDrivenError(Exception):
    """Base class for errors that fail a single test document. Never retried."""


class AuthoringError(JsonDrivenError):
    """Raised when the test document itself is malformed."""


class InvalidTestShape(AuthoringError):
    """Raised when a document field is not in the recognized allow-list."""

    def __init__(self, message: str, field: Optional[str] = None, allowed: Iterable[str] = ()):
        super().__init__(message)
        self.field = field
        self.allowed = tuple(allowed)


class UnrecognizedArgument(InvalidTestShape):
    """Raised when neither the operation nor a shared handler knows an argument."""

    def __init__(self, name: str, operation: Optional[str] = None):
        where = f" for {operation}" if operation else ""
        super().__init__(f"Invalid argument name{where}: '{name}'.", field=name)
        self.name = name
        self.operation = operation


class UnrecognizedResultAspect(InvalidTestShape):
    """Raised when an expected result field has no aspect check."""

    def __init__(self, operation: str, aspect: str):
        super().__init__(f"Invalid {operation} result aspect: {aspect}.", field=aspect)
        self.operation = operation
        self.aspect = aspect


class UnknownOperation(AuthoringError):
    """Raised when no operation is registered under the document's name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown operation: '{name}'.")
        self.name = name


class AssertionMismatch(JsonDrivenError, AssertionError):
    """Raised when an aspect check ran and the actual value differed."""

    def __init__(self, aspect: str, expected: Any, actual: Any):
        super().__init__(f"Result aspect '{aspect}' mismatch. Expected: {expected!r}, Got: {actual!r}")
        self.aspect = aspect
        self.expected = expected
        self.actual = actual


class OperationCancelled(JsonDrivenError):
    """Raised when cancellation is observed before or at the call boundary."""

    def __init__(self, message: str, during_call: bool = False):
        super().__init__(message)
        self.during_call = during_call


class InvalidOperationState(JsonDrivenError):
    """Raised when a test operation's phases are invoked out of order."""
