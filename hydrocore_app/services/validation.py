"""
Validation of an offsets grid before it is handed to the calculator.

Detects too few stations or waterlines, unordered axes, negative or missing
half-breadths and inconsistent principal particulars.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import numpy as np

from ..models import HullDataProvider

_LOG = logging.getLogger(__name__)

MIN_STATIONS = 3
MIN_WATERLINES = 3


class ValidationSeverity(Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: ValidationSeverity
    message: str
    value: float | None = None
    limit: float | None = None


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity == ValidationSeverity.WARNING for i in self.issues)

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]


def _check_axis(values: np.ndarray, label: str, code: str, minimum: int, issues: List[ValidationIssue]) -> None:
    if values.size < minimum:
        issues.append(
            ValidationIssue(
                code=f"{code}_FEW",
                severity=ValidationSeverity.ERROR,
                message=f"{values.size} {label} given; at least {minimum} are required.",
                value=float(values.size),
                limit=float(minimum),
            )
        )
    if values.size >= 2 and not np.all(np.diff(values) > 0):
        issues.append(
            ValidationIssue(
                code=f"{code}_ORDER",
                severity=ValidationSeverity.ERROR,
                message=f"{label.capitalize()} must be strictly increasing.",
            )
        )


def validate_hull(hull: HullDataProvider) -> ValidationResult:
    """Run all grid and particulars checks."""
    issues: List[ValidationIssue] = []
    stations = np.asarray(hull.stations_m, dtype=float)
    waterlines = np.asarray(hull.waterlines_m, dtype=float)
    offsets = np.asarray(hull.half_breadths_m, dtype=float)

    # 1. Axes
    _check_axis(stations, "stations", "STATIONS", MIN_STATIONS, issues)
    _check_axis(waterlines, "waterlines", "WATERLINES", MIN_WATERLINES, issues)

    # 2. Half-breadth grid
    if offsets.shape != (stations.size, waterlines.size):
        issues.append(
            ValidationIssue(
                code="OFFSETS_SHAPE",
                severity=ValidationSeverity.ERROR,
                message=f"Half-breadth grid shape {offsets.shape} does not match "
                f"{stations.size} stations x {waterlines.size} waterlines.",
            )
        )
    else:
        missing = int(np.count_nonzero(~np.isfinite(offsets)))
        if missing:
            issues.append(
                ValidationIssue(
                    code="OFFSETS_MISSING",
                    severity=ValidationSeverity.ERROR,
                    message=f"{missing} half-breadth(s) are missing or not finite.",
                    value=float(missing),
                )
            )
        negative = offsets[np.isfinite(offsets) & (offsets < 0)]
        if negative.size:
            issues.append(
                ValidationIssue(
                    code="OFFSETS_NEGATIVE",
                    severity=ValidationSeverity.ERROR,
                    message=f"{negative.size} negative half-breadth(s); minimum {negative.min():.4f} m.",
                    value=float(negative.min()),
                    limit=0.0,
                )
            )

    # 3. Principal particulars (unset values fall back to the grid's extents)
    p = hull.particulars
    for code, label, value in (
        ("LBP_NOT_SET", "Length between perpendiculars", p.lbp_m),
        ("BREADTH_NOT_SET", "Breadth", p.breadth_m),
        ("DESIGN_DRAFT_NOT_SET", "Design draft", p.design_draft_m),
    ):
        if value <= 0:
            issues.append(
                ValidationIssue(
                    code=code,
                    severity=ValidationSeverity.WARNING,
                    message=f"{label} is not positive ({value}); grid extents are used instead.",
                    value=value,
                    limit=0.0,
                )
            )
    if not 0.0 < p.block_coefficient <= 1.0:
        issues.append(
            ValidationIssue(
                code="CB_ESTIMATE_RANGE",
                severity=ValidationSeverity.WARNING,
                message=f"Block coefficient estimate {p.block_coefficient} is outside (0, 1].",
                value=p.block_coefficient,
                limit=1.0,
            )
        )

    # 4. Design draft inside the measured waterlines
    if p.design_draft_m > 0 and waterlines.size:
        z_lo, z_hi = float(waterlines.min()), float(waterlines.max())
        if not z_lo <= p.design_draft_m <= z_hi:
            issues.append(
                ValidationIssue(
                    code="DESIGN_DRAFT_SPAN",
                    severity=ValidationSeverity.WARNING,
                    message=f"Design draft {p.design_draft_m:.3f} m is outside the measured "
                    f"waterlines [{z_lo:.3f}, {z_hi:.3f}] m.",
                    value=p.design_draft_m,
                    limit=z_hi,
                )
            )

    result = ValidationResult(
        valid=not any(i.severity == ValidationSeverity.ERROR for i in issues),
        issues=issues,
    )
    if result.has_errors:
        _LOG.warning("Hull %r failed validation: %s", getattr(hull, "name", ""), result.codes())
    return result
