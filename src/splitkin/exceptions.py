"""Exceptions raised by SplitKin."""

from __future__ import annotations


class SplitKinError(Exception):
    """Base class for all SplitKin errors."""


class InvalidPartitionError(SplitKinError, ValueError):
    """Overlapping, negative, out-of-range or non-covering partition indices."""


class InvalidStateError(SplitKinError, ValueError):
    """Non-positive temperature/pressure or a negative amount, volume or scalar."""


class DimensionMismatchError(SplitKinError, ValueError):
    """A vector length does not match the species or element count."""


class UnknownNameError(SplitKinError, LookupError):
    """A species, element or phase name (or index) does not exist."""


class UnsupportedUnitsError(SplitKinError, ValueError):
    """Unknown unit string, or units outside the accepted family."""


class InvalidQueryError(SplitKinError, ValueError):
    """Malformed or unresolvable ``extract`` query."""


class EquilibrationFailedError(SplitKinError, RuntimeError):
    """The equilibrium calculation did not converge to a feasible state."""


class StepFailedError(SplitKinError, RuntimeError):
    """A kinetic step was rejected more times than allowed."""


class SolverStateError(SplitKinError, RuntimeError):
    """A kinetic solver operation was called in the wrong phase."""
