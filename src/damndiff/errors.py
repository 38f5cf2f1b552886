"""Exceptions raised by damndiff integrators.

All integrator failures are local precondition violations surfaced
immediately to the caller; none are retried internally.  The argument
errors also derive from :class:`ValueError` so existing ``except
ValueError`` handlers keep working.
"""

from __future__ import annotations


class IntegrationError(Exception):
    """Base class for all damndiff integration errors."""


class DimensionMismatch(IntegrationError, ValueError):
    """A derivative or vector operand does not match the state shape."""


class InvalidStepDirection(IntegrationError, ValueError):
    """The step size points away from the integration target."""


class ZeroStepSize(IntegrationError, ValueError):
    """The step size is exactly zero."""


class StepLimitExceeded(IntegrationError, RuntimeError):
    """An adaptive solver reached its step limit before the target."""
