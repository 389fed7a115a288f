"""
Righting-arm (GZ) curves at constant displacement.

Two methods:
- wall_sided: GZ = (GM + 0.5 * BM * tan^2(phi)) * sin(phi), from the upright
  hydrostatics; valid while the deck edge stays dry and the bilge stays wet.
- direct: for every heel angle the midship draft is re-solved (brentq) so the
  heeled hull displaces the upright volume; GZ = TCB*cos(phi) + (KB - VCG)*sin(phi).

KN = GZ + VCG * sin(phi) in both cases.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np
from scipy.optimize import brentq

from hydrocore_app.config.limits import GZ_DRAFT_TOLERANCE_M, LEVEL_TOLERANCE_M
from hydrocore_app.config.settings import Settings

from ..models import GzCurve, HullDataProvider, StabilityPoint
from .errors import DegenerateGeometryError, OutOfRangeError
from .hydrostatics import compute
from .integration import Integrator, integrate_xy

_LOG = logging.getLogger(__name__)

GZ_METHODS = ("wall_sided", "direct")


def _heeled_draft(
    hull: HullDataProvider,
    volume_m3: float,
    heel_rad: float,
    settings: Settings,
    integrator: Integrator | None,
) -> float:
    """Midship draft at which the hull heeled by heel_rad displaces volume_m3."""
    z_lo, z_hi = hull.draft_span_m
    top_half_breadth = float(np.max(np.asarray(hull.half_breadths_m)[:, -1]))
    t_hi = z_hi - top_half_breadth * abs(math.tan(heel_rad)) - LEVEL_TOLERANCE_M
    if t_hi <= z_lo:
        raise OutOfRangeError(
            f"At {math.degrees(heel_rad):.2f} deg the inclined waterline leaves the measured waterlines"
        )

    def volume_excess(t: float) -> float:
        try:
            v = compute(
                hull, t, 0.0, heel_rad,
                integrator=integrator,
                interpolation=settings.interpolation,
                water_density_t_m3=settings.water_density_t_m3,
            ).volume_m3
        except DegenerateGeometryError:
            v = 0.0
        return v - volume_m3

    lo, hi = volume_excess(z_lo), volume_excess(t_hi)
    if lo > 0 or hi < 0:
        raise OutOfRangeError(
            f"Upright volume {volume_m3:.4f} m3 cannot be matched at "
            f"{math.degrees(heel_rad):.2f} deg within the measured waterlines"
        )
    return float(brentq(volume_excess, z_lo, t_hi, xtol=GZ_DRAFT_TOLERANCE_M))


def compute_gz_curve(
    hull: HullDataProvider,
    draft_m: float,
    vcg_m: float,
    angles_deg: Sequence[float],
    method: str = "wall_sided",
    *,
    settings: Settings | None = None,
    integrator: Integrator | None = None,
) -> GzCurve:
    """
    GZ and KN at each heel angle (degrees, strictly increasing, |angle| < 90)
    for the displacement of the upright hull at draft_m.
    """
    if method not in GZ_METHODS:
        raise ValueError(f"Unknown GZ method {method!r}; expected one of {GZ_METHODS}")
    angles = [float(a) for a in angles_deg]
    if not angles:
        raise ValueError("At least one heel angle is required")
    if any(abs(a) >= 90.0 for a in angles):
        raise ValueError("Heel angles must lie strictly between -90 and 90 degrees")
    if any(b <= a for a, b in zip(angles, angles[1:])):
        raise ValueError("Heel angles must be strictly increasing")

    settings = settings or Settings()
    upright = compute(
        hull,
        draft_m,
        vcg_m=vcg_m,
        integrator=integrator,
        interpolation=settings.interpolation,
        water_density_t_m3=settings.water_density_t_m3,
    )
    gm = upright.gm_t_m

    points = []
    for angle in angles:
        phi = math.radians(angle)
        if method == "wall_sided":
            gz = (gm + 0.5 * upright.bm_t_m * math.tan(phi) ** 2) * math.sin(phi)
        elif angle == 0.0:
            gz = 0.0
        else:
            t = _heeled_draft(hull, upright.volume_m3, phi, settings, integrator)
            heeled = compute(
                hull, t, 0.0, phi,
                integrator=integrator,
                interpolation=settings.interpolation,
                water_density_t_m3=settings.water_density_t_m3,
            )
            gz = heeled.tcb_m * math.cos(phi) + (heeled.kb_m - vcg_m) * math.sin(phi)
        points.append(StabilityPoint(heel_deg=angle, gz_m=gz, kn_m=gz + vcg_m * math.sin(phi)))

    best = max(points, key=lambda p: p.gz_m)
    area = 0.0
    if len(points) >= 2:
        area = integrate_xy(
            np.radians([p.heel_deg for p in points]), [p.gz_m for p in points], integrator
        )

    _LOG.info(
        "GZ curve (%s) at T=%.4f m, VCG=%.4f m: GM=%.4f m, max GZ %.4f m at %.1f deg",
        method, draft_m, vcg_m, gm, best.gz_m, best.heel_deg,
    )
    return GzCurve(
        method=method,
        draft_m=draft_m,
        volume_m3=upright.volume_m3,
        vcg_m=vcg_m,
        initial_gm_t_m=gm,
        points=points,
        max_gz_m=best.gz_m,
        angle_at_max_gz_deg=best.heel_deg,
        area_m_rad=area,
    )
