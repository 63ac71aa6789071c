"""
graph_ising/errors.py

Exception types raised by the simulation core.

    ParseError           : malformed edge-list line or field
    ValidationError      : structurally invalid graph (non-square matrix, ...)
    ConfigurationError   : out-of-range numeric parameter
    Cancelled            : cooperative abort of a long-running sweep
    ExclusiveAccessError : a second mutator tried to take a SpinSystem
"""

from typing import Optional


class IsingError(Exception):
    """Base class for all errors raised by graph_ising."""


class ParseError(IsingError, ValueError):
    """An edge-list line could not be parsed."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        line: Optional[str] = None,
    ) -> None:
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message} ({line!r})"
        super().__init__(message)


class ValidationError(IsingError, ValueError):
    """The coupling graph is structurally invalid."""


class ConfigurationError(IsingError, ValueError):
    """A numeric parameter is outside its allowed range."""


class Cancelled(IsingError):
    """A sweep was cancelled at a checkpoint. Not a failure."""


class ExclusiveAccessError(IsingError, RuntimeError):
    """A SpinSystem is already owned by another mutator."""
