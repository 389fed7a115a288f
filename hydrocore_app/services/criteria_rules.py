"""
IMO intact stability criteria (IS Code A.749(18) 3.1.2) evaluated on a GZ curve.

Areas are taken under the piecewise-linear GZ curve in m·rad, with the end
angles interpolated between computed points. A criterion whose angles lie
outside the computed heel range is reported N/A rather than extrapolated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

from ..config.limits import (
    MIN_AREA_0_30_M_RAD,
    MIN_AREA_0_40_M_RAD,
    MIN_AREA_30_40_M_RAD,
    MIN_GM_M,
    MIN_GZ_AT_30_M,
    MIN_MAX_GZ_ANGLE_DEG,
)
from ..models import GzCurve
from .integration import TrapezoidalIntegrator, integrate_xy

_LOG = logging.getLogger(__name__)

_REFERENCE = "IS Code A.749(18) 3.1.2"


class CriterionResult(Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    N_A = "N/A"


@dataclass(slots=True)
class CriterionLine:
    """Single criterion line with pass/fail and margin."""
    code: str
    name: str
    reference: str
    result: CriterionResult
    value: float | None
    limit: float
    margin: float | None  # value - limit (positive = pass margin)
    message: str


@dataclass(slots=True)
class CriteriaEvaluation:
    lines: List[CriterionLine] = field(default_factory=list)
    passed: int = 0
    failed: int = 0
    n_a: int = 0

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    def line(self, code: str) -> CriterionLine:
        for line in self.lines:
            if line.code == code:
                return line
        raise KeyError(code)


def _angles_gz(curve: GzCurve) -> tuple[np.ndarray, np.ndarray]:
    return (
        np.array([p.heel_deg for p in curve.points], dtype=float),
        np.array([p.gz_m for p in curve.points], dtype=float),
    )


def gz_at(curve: GzCurve, angle_deg: float) -> float | None:
    """Linearly interpolated GZ, or None outside the computed heel range."""
    angles, gz = _angles_gz(curve)
    if angles.size == 0 or not angles[0] <= angle_deg <= angles[-1]:
        return None
    return float(np.interp(angle_deg, angles, gz))


def area_under_gz(curve: GzCurve, from_deg: float, to_deg: float) -> float | None:
    """Area (m·rad) under the GZ curve between two heel angles, or None outside the computed range."""
    if to_deg <= from_deg:
        raise ValueError("Upper angle must be greater than the lower angle")
    angles, gz = _angles_gz(curve)
    if angles.size < 2 or from_deg < angles[0] or to_deg > angles[-1]:
        return None
    inside = (angles > from_deg) & (angles < to_deg)
    x = np.concatenate(([from_deg], angles[inside], [to_deg]))
    y = np.interp(x, angles, gz)
    return integrate_xy(np.radians(x), y, TrapezoidalIntegrator())


def _line(code: str, name: str, value: float | None, limit: float, unit: str) -> CriterionLine:
    if value is None:
        return CriterionLine(
            code=code,
            name=name,
            reference=_REFERENCE,
            result=CriterionResult.N_A,
            value=None,
            limit=limit,
            margin=None,
            message=f"Not assessed: outside the computed heel range (min {limit} {unit})",
        )
    margin = value - limit
    return CriterionLine(
        code=code,
        name=name,
        reference=_REFERENCE,
        result=CriterionResult.PASS if margin >= 0 else CriterionResult.FAIL,
        value=value,
        limit=limit,
        margin=margin,
        message=f"{value:.4f} {unit}, min {limit} {unit}, margin {margin:+.4f} {unit}",
    )


def check_intact_criteria(curve: GzCurve) -> CriteriaEvaluation:
    """Evaluate the general intact stability criteria on a GZ curve."""
    if not curve.points:
        raise ValueError("GZ curve has no points")

    lines = [
        _line("IMO_AREA_0_30", "Area under GZ curve (0 to 30 deg)",
              area_under_gz(curve, 0.0, 30.0), MIN_AREA_0_30_M_RAD, "m·rad"),
        _line("IMO_AREA_0_40", "Area under GZ curve (0 to 40 deg)",
              area_under_gz(curve, 0.0, 40.0), MIN_AREA_0_40_M_RAD, "m·rad"),
        _line("IMO_AREA_30_40", "Area under GZ curve (30 to 40 deg)",
              area_under_gz(curve, 30.0, 40.0), MIN_AREA_30_40_M_RAD, "m·rad"),
        _line("IMO_GZ_30", "Righting arm at 30 deg", gz_at(curve, 30.0), MIN_GZ_AT_30_M, "m"),
        _line("IMO_MAX_GZ_ANGLE", "Angle of maximum GZ",
              curve.angle_at_max_gz_deg, MIN_MAX_GZ_ANGLE_DEG, "deg"),
        _line("IMO_GM", "Initial metacentric height (GMt)",
              curve.initial_gm_t_m if math.isfinite(curve.initial_gm_t_m) else None, MIN_GM_M, "m"),
    ]

    evaluation = CriteriaEvaluation(lines=lines)
    for line in lines:
        if line.result == CriterionResult.PASS:
            evaluation.passed += 1
        elif line.result == CriterionResult.FAIL:
            evaluation.failed += 1
        else:
            evaluation.n_a += 1

    _LOG.info(
        "Intact criteria at T=%.4f m: %d passed, %d failed, %d n/a",
        curve.draft_m, evaluation.passed, evaluation.failed, evaluation.n_a,
    )
    return evaluation
