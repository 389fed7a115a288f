"""
Domain models for the hydrocore hydrostatics engine.

Hull description (offsets grid) and the immutable results computed from it.
"""

from hydrocore_app.models.hull import HullDataProvider, HullGeometry, PrincipalParticulars
from hydrocore_app.models.results import (
    BonjeanCurve,
    BonjeanPoint,
    Curve,
    CurveFailure,
    CurvePoint,
    GzCurve,
    HydrostaticsResult,
    LoadcaseTarget,
    SectionProperties,
    StabilityPoint,
    TrimSolution,
)

__all__ = [
    "HullDataProvider",
    "HullGeometry",
    "PrincipalParticulars",
    "BonjeanCurve",
    "BonjeanPoint",
    "Curve",
    "CurveFailure",
    "CurvePoint",
    "GzCurve",
    "HydrostaticsResult",
    "LoadcaseTarget",
    "SectionProperties",
    "StabilityPoint",
    "TrimSolution",
]
