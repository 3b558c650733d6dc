"""
Engine error types.

Error hierarchy:
    RigSimError (base)
    ├── InvalidInputError
    └── UnknownCalculationError

Unsafe-but-valid conditions (overload, steep angles, excessive deflection)
are not errors; they are reported as advisories on the result.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RigSimError(Exception):
    """Base error for all engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidInputError(RigSimError, ValueError):
    """Raised for non-physical inputs such as a zero span or negative resolution."""


class UnknownCalculationError(RigSimError):
    """Raised by the worker for a request type it has no handler for."""

    def __init__(self, calc_type: Any):
        super().__init__(f"Unknown calculation type: {calc_type}", {"type": calc_type})
        self.calc_type = calc_type
