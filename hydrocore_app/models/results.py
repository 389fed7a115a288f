"""
Value objects produced by the engine: single-draft results, curves,
trim solutions and righting-arm curves.

All are computed fresh per call and never cached beyond the call that built them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd


@dataclass(slots=True, frozen=True)
class HydrostaticsResult:
    """Hydrostatic properties at one draft / trim / heel.

    Longitudinal positions are measured from midships (positive toward larger
    station x), TCB positive to starboard, KB above the baseline.
    """
    draft_m: float
    trim_rad: float
    heel_rad: float
    volume_m3: float
    displacement_t: float
    lcb_m: float
    tcb_m: float
    kb_m: float
    awp_m2: float
    lcf_m: float
    i_t_m4: float  # transverse waterplane inertia about its centroidal axis
    i_l_m4: float  # longitudinal waterplane inertia about the LCF
    bm_t_m: float
    bm_l_m: float
    km_t_m: float
    km_l_m: float
    cb: float
    cp: float
    cm: float
    cwp: float
    midship_area_m2: float
    tpc_t_per_cm: float
    mtc_tm_per_cm: float
    gm_t_m: float | None = None  # only with a vertical centre of gravity
    gm_l_m: float | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(slots=True, frozen=True)
class SectionProperties:
    """Submerged part of one station at a given waterline."""
    station_index: int
    station_x_m: float
    local_draft_m: float
    area_m2: float
    centroid_y_m: float
    centroid_z_m: float
    chord_port_m: float  # waterline chord ends, measured along the waterline
    chord_stbd_m: float

    @property
    def chord_m(self) -> float:
        return self.chord_stbd_m - self.chord_port_m


@dataclass(slots=True, frozen=True)
class CurveFailure:
    """Marker for a draft whose evaluation failed; kind is the error class name."""
    kind: str
    message: str


@dataclass(slots=True, frozen=True)
class CurvePoint:
    draft_m: float
    result: HydrostaticsResult | None = None
    failure: CurveFailure | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


@dataclass(slots=True, frozen=True)
class Curve:
    """Hydrostatic properties vs draft, ordered by draft; may mix results and failures."""
    points: Tuple[CurvePoint, ...] = ()
    trim_rad: float = 0.0
    heel_rad: float = 0.0

    def __len__(self) -> int:
        return len(self.points)

    @property
    def drafts_m(self) -> Tuple[float, ...]:
        return tuple(p.draft_m for p in self.points)

    def successes(self) -> Tuple[CurvePoint, ...]:
        return tuple(p for p in self.points if p.ok)

    def failures(self) -> Tuple[CurvePoint, ...]:
        return tuple(p for p in self.points if not p.ok)

    def series(self, attr: str) -> Tuple[np.ndarray, np.ndarray]:
        """(drafts, values) of one result attribute over the successful points."""
        ok = [p for p in self.points if p.ok and getattr(p.result, attr) is not None]
        drafts = np.array([p.draft_m for p in ok], dtype=float)
        values = np.array([getattr(p.result, attr) for p in ok], dtype=float)
        return drafts, values

    def interpolate(self, attr: str, draft_m: float) -> float:
        """Linear interpolation of attr at draft; no extrapolation past the computed drafts."""
        drafts, values = self.series(attr)
        if drafts.size < 2:
            raise ValueError(f"Curve has fewer than two valid {attr!r} points")
        if draft_m < drafts[0] or draft_m > drafts[-1]:
            raise ValueError(
                f"Draft {draft_m} m outside computed range [{drafts[0]}, {drafts[-1]}]"
            )
        return float(np.interp(draft_m, drafts, values))

    def draft_for(self, attr: str, value: float) -> float:
        """Inverse lookup: draft at which a monotonically increasing attr reaches value."""
        drafts, values = self.series(attr)
        if drafts.size < 2:
            raise ValueError(f"Curve has fewer than two valid {attr!r} points")
        if not np.all(np.diff(values) > 0):
            raise ValueError(f"{attr!r} is not strictly increasing with draft")
        if value < values[0] or value > values[-1]:
            raise ValueError(
                f"{attr} = {value} outside computed range [{values[0]}, {values[-1]}]"
            )
        return float(np.interp(value, values, drafts))

    def to_dataframe(self) -> pd.DataFrame:
        """One row per draft; failed drafts keep NaN properties and the error columns."""
        rows = []
        for p in self.points:
            row: Dict[str, Any] = {"draft_m": p.draft_m}
            if p.result is not None:
                row.update(p.result.to_dict())
                row["draft_m"] = p.draft_m
            row["error_kind"] = p.failure.kind if p.failure else None
            row["error_message"] = p.failure.message if p.failure else None
            rows.append(row)
        return pd.DataFrame(rows)


@dataclass(slots=True, frozen=True)
class BonjeanPoint:
    draft_m: float
    area_m2: float | None = None
    failure: CurveFailure | None = None


@dataclass(slots=True, frozen=True)
class BonjeanCurve:
    """Sectional submerged area vs draft for one station."""
    station_index: int
    station_x_m: float
    points: Tuple[BonjeanPoint, ...] = ()

    def areas(self) -> Tuple[np.ndarray, np.ndarray]:
        ok = [p for p in self.points if p.area_m2 is not None]
        return (
            np.array([p.draft_m for p in ok], dtype=float),
            np.array([p.area_m2 for p in ok], dtype=float),
        )


@dataclass(slots=True, frozen=True)
class LoadcaseTarget:
    """Equilibrium target supplied by a loadcase: displaced volume and centre of gravity."""
    displacement_m3: float
    lcg_m: float  # from midships, same frame as LCB
    tcg_m: float | None = None
    vcg_m: float | None = None

    @classmethod
    def from_mass(
        cls,
        mass_t: float,
        lcg_m: float,
        water_density_t_m3: float,
        tcg_m: float | None = None,
        vcg_m: float | None = None,
    ) -> "LoadcaseTarget":
        if water_density_t_m3 <= 0:
            raise ValueError("Water density must be greater than zero.")
        return cls(
            displacement_m3=mass_t / water_density_t_m3,
            lcg_m=lcg_m,
            tcg_m=tcg_m,
            vcg_m=vcg_m,
        )


@dataclass(slots=True, frozen=True)
class TrimSolution:
    draft_m: float  # mean (midship) draft
    trim_rad: float  # positive bow down
    heel_rad: float | None
    residual: Tuple[float, ...]  # [dV m3, dLCB m(, dTCB m)]
    iterations: int
    converged: bool
    draft_aft_m: float = 0.0  # at the first station
    draft_fwd_m: float = 0.0  # at the last station
    hydrostatics: HydrostaticsResult | None = None

    @property
    def trim_m(self) -> float:
        """Forward minus aft draft."""
        return self.draft_fwd_m - self.draft_aft_m


@dataclass(slots=True, frozen=True)
class StabilityPoint:
    heel_deg: float
    gz_m: float
    kn_m: float


@dataclass(slots=True)
class GzCurve:
    """Righting-arm curve at constant displacement."""
    method: str
    draft_m: float
    volume_m3: float
    vcg_m: float
    initial_gm_t_m: float
    points: list[StabilityPoint] = field(default_factory=list)
    max_gz_m: float = 0.0
    angle_at_max_gz_deg: float = 0.0
    area_m_rad: float = 0.0
