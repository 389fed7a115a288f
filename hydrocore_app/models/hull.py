from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

import numpy as np
from scipy.interpolate import PchipInterpolator


@dataclass(slots=True, frozen=True)
class PrincipalParticulars:
    """Main dimensions used to non-dimensionalise form coefficients."""
    lbp_m: float = 0.0
    breadth_m: float = 0.0
    design_draft_m: float = 0.0
    block_coefficient: float = 0.7  # estimate, used for the solver's initial guess


def _frozen_array(values: Sequence[float] | np.ndarray, ndim: int, label: str) -> np.ndarray:
    arr = np.array(values, dtype=float)
    if arr.ndim != ndim:
        raise ValueError(f"{label} must be {ndim}-dimensional, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


@dataclass(slots=True, frozen=True, eq=False)
class HullGeometry:
    """
    Offsets grid: half-breadth for every (station, waterline) pair.

    stations_m: shape (N,)       – longitudinal positions, strictly increasing
    waterlines_m: shape (M,)     – heights above baseline, strictly increasing
    half_breadths_m: shape (N, M) – one side of a port/starboard symmetric hull

    Arrays are copied and made read-only; the engine never mutates a hull.
    Ordering and sign invariants are checked by services.validation.
    """

    stations_m: np.ndarray
    waterlines_m: np.ndarray
    half_breadths_m: np.ndarray
    particulars: PrincipalParticulars = field(default_factory=PrincipalParticulars)
    name: str = ""

    def __post_init__(self) -> None:
        stations = _frozen_array(self.stations_m, 1, "stations")
        waterlines = _frozen_array(self.waterlines_m, 1, "waterlines")
        offsets = _frozen_array(self.half_breadths_m, 2, "half-breadth grid")
        if offsets.shape != (stations.size, waterlines.size):
            raise ValueError(
                f"Half-breadth grid shape {offsets.shape} does not match "
                f"{stations.size} stations x {waterlines.size} waterlines"
            )
        object.__setattr__(self, "stations_m", stations)
        object.__setattr__(self, "waterlines_m", waterlines)
        object.__setattr__(self, "half_breadths_m", offsets)

    @classmethod
    def from_offsets(
        cls,
        stations_m: Sequence[float],
        waterlines_m: Sequence[float],
        half_breadths_m: Sequence[Sequence[float]],
        particulars: PrincipalParticulars | None = None,
        name: str = "",
    ) -> "HullGeometry":
        """Build from plain nested sequences (rows = stations)."""
        return cls(
            stations_m=np.asarray(stations_m, dtype=float),
            waterlines_m=np.asarray(waterlines_m, dtype=float),
            half_breadths_m=np.asarray(half_breadths_m, dtype=float),
            particulars=particulars or PrincipalParticulars(),
            name=name,
        )

    @property
    def station_count(self) -> int:
        return int(self.stations_m.size)

    @property
    def waterline_count(self) -> int:
        return int(self.waterlines_m.size)

    @property
    def length_m(self) -> float:
        """Span of the measured stations."""
        return float(self.stations_m[-1] - self.stations_m[0])

    @property
    def midship_x_m(self) -> float:
        return 0.5 * float(self.stations_m[0] + self.stations_m[-1])

    @property
    def draft_span_m(self) -> tuple[float, float]:
        """(lowest, highest) measured waterline."""
        return float(self.waterlines_m[0]), float(self.waterlines_m[-1])

    def half_breadth_at(self, station_index: int, z_m: float, method: str = "linear") -> float:
        """Half-breadth at height z for one station; z must lie in the measured span."""
        z_lo, z_hi = self.draft_span_m
        if z_m < z_lo or z_m > z_hi:
            raise ValueError(f"z = {z_m} m is outside the measured waterlines [{z_lo}, {z_hi}]")
        row = self.half_breadths_m[station_index]
        if method == "linear":
            return float(np.interp(z_m, self.waterlines_m, row))
        if method == "pchip":
            return float(PchipInterpolator(self.waterlines_m, row, extrapolate=False)(z_m))
        raise ValueError(f"Unknown interpolation method {method!r}")


class HullDataProvider(Protocol):
    """What the calculator needs from a hull; HullGeometry is the stock provider."""

    @property
    def stations_m(self) -> np.ndarray: ...

    @property
    def waterlines_m(self) -> np.ndarray: ...

    @property
    def half_breadths_m(self) -> np.ndarray: ...

    @property
    def particulars(self) -> PrincipalParticulars: ...

    @property
    def midship_x_m(self) -> float: ...

    @property
    def draft_span_m(self) -> tuple[float, float]: ...
