"""
Error kinds raised by the hydrostatics engine.

Integration and calculator errors carry a message; solver errors also carry
the last iterate so callers can retry from a different initial guess.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(slots=True, eq=False)
class HydrostaticsError(Exception):
    message: str

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(slots=True, eq=False)
class InsufficientPointsError(HydrostaticsError):
    """Fewer than two points handed to an integration rule."""


@dataclass(slots=True, eq=False)
class OutOfRangeError(HydrostaticsError):
    """A local waterline falls outside the measured waterline span."""

    station_index: int | None = None
    local_draft_m: float | None = None


@dataclass(slots=True, eq=False)
class DegenerateGeometryError(HydrostaticsError):
    """Zero waterplane area, zero volume or zero midship section."""


@dataclass(slots=True, eq=False)
class NumericalInstabilityError(HydrostaticsError):
    """Integration produced NaN or a negative volume."""


@dataclass(slots=True, eq=False)
class SolverError(HydrostaticsError):
    draft_m: float = 0.0
    trim_rad: float = 0.0
    heel_rad: float | None = None
    residual: Tuple[float, ...] = ()
    iterations: int = 0


@dataclass(slots=True, eq=False)
class SingularJacobianError(SolverError):
    """|det J| fell below the conditioning threshold."""


@dataclass(slots=True, eq=False)
class NonConvergenceError(SolverError):
    """Iteration cap reached, or no damped step stayed inside the hull's range."""
