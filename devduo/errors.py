"""
Error taxonomy for the admin engine.

Each error subclasses the builtin the console already knows how to report:
data store failures are RuntimeErrors, bad input is a ValueError, and a
refused destructive action is a PermissionError.
"""

from typing import List, Optional


class DataStoreError(RuntimeError):
    """A request to the hosted backend (rows or object storage) failed."""

    def __init__(self, message: str, operation: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.table = table


class ValidationError(ValueError):
    """Draft failed client-side validation. No remote call was made."""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = list(problems)


class AuthorizationError(PermissionError):
    """Acting user's role is not allowed to perform the action."""

    def __init__(self, message: str, role: Optional[str] = None):
        super().__init__(message)
        self.role = role


class RecordNotFound(LookupError):
    """No record with the given id in the loaded list."""


class SubmissionInFlight(RuntimeError):
    """A form submission is already outstanding."""
