"""
Hydrostatics from an offsets grid.

For a draft at midships, a trim (positive bow down) and a heel (positive
starboard down), every station is cut at its local waterline:

    local draft = draft + tan(trim) * (x - midships)

Upright sections integrate half-breadths over depth; heeled sections clip the
section polygon (both sides of the offsets) with the inclined waterline
z = local draft + y * tan(heel). Section areas, centroids and waterline chords
are then integrated along the length for volume, centres of buoyancy and
waterplane properties. Half-breadths are never extrapolated beyond the
measured waterlines.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Dict, List, Sequence, Tuple

import numpy as np
from scipy.interpolate import PchipInterpolator

from hydrocore_app.config.limits import EPS, LEVEL_TOLERANCE_M, RHO_SEA

from ..models import HullDataProvider, HydrostaticsResult, SectionProperties
from .errors import DegenerateGeometryError, NumericalInstabilityError, OutOfRangeError
from .integration import DEFAULT_INTEGRATOR, Integrator

_LOG = logging.getLogger(__name__)

INTERPOLATION_METHODS = ("linear", "pchip")


def _check_arguments(draft_m: float, trim_rad: float, heel_rad: float, interpolation: str) -> None:
    if not all(math.isfinite(v) for v in (draft_m, trim_rad, heel_rad)):
        raise ValueError("Draft, trim and heel must be finite numbers")
    if abs(trim_rad) >= math.pi / 2 or abs(heel_rad) >= math.pi / 2:
        raise ValueError("Trim and heel must lie strictly between -90 and 90 degrees")
    if interpolation not in INTERPOLATION_METHODS:
        raise ValueError(
            f"Unknown interpolation method {interpolation!r}; expected one of {INTERPOLATION_METHODS}"
        )


def local_drafts(hull: HullDataProvider, draft_m: float, trim_rad: float = 0.0) -> np.ndarray:
    """Waterline height at every station for a midship draft and trim."""
    return draft_m + math.tan(trim_rad) * (np.asarray(hull.stations_m) - hull.midship_x_m)


def _level_in_span(station_index: int, t: float, z_lo: float, z_hi: float) -> float:
    if t < z_lo - LEVEL_TOLERANCE_M or t > z_hi + LEVEL_TOLERANCE_M:
        raise OutOfRangeError(
            f"Local draft {t:.6f} m at station {station_index} is outside the "
            f"measured waterlines [{z_lo}, {z_hi}]",
            station_index=station_index,
            local_draft_m=t,
        )
    return min(max(t, z_lo), z_hi)


def _section_profile(z_levels: np.ndarray, row: np.ndarray, interpolation: str):
    """Half-breadth as a function of height for one station."""
    if interpolation == "pchip":
        return PchipInterpolator(z_levels, row, extrapolate=False)
    return lambda z: np.interp(z, z_levels, row)


def _interval_integrals(profile, a: float, b: float) -> Tuple[float, float]:
    """Area and vertical moment of the half-breadth profile over [a, b]; exact for linear offsets."""
    m = 0.5 * (a + b)
    ya, ym, yb = (float(v) for v in profile(np.array([a, m, b])))
    h = (b - a) / 6.0
    return h * (ya + 4.0 * ym + yb), h * (a * ya + 4.0 * m * ym + b * yb)


def _cumulative_integrals(
    z_levels: np.ndarray, row: np.ndarray, profile, level: int, integrator: Integrator
) -> Tuple[float, float]:
    """Area and vertical moment from the lowest waterline up to waterline `level`."""
    if level == 0:
        return 0.0, 0.0
    if level == 1:
        return _interval_integrals(profile, float(z_levels[0]), float(z_levels[1]))
    zs = z_levels[: level + 1]
    ys = row[: level + 1]
    return integrator.integrate_xy(zs, ys), integrator.integrate_xy(zs, zs * ys)


def _blend(lower: float, upper: float, part: float, full: float) -> float:
    if full <= EPS:
        return lower + part
    return lower + (upper - lower) * part / full


def _upright_section(
    index: int,
    x_m: float,
    t: float,
    z_levels: np.ndarray,
    row: np.ndarray,
    interpolation: str,
    integrator: Integrator,
) -> SectionProperties:
    profile = _section_profile(z_levels, row, interpolation)
    y_t = float(profile(t))
    level = max(int(np.searchsorted(z_levels, t + LEVEL_TOLERANCE_M, side="right")) - 1, 0)
    if level == 0 and t - z_levels[0] <= LEVEL_TOLERANCE_M:
        # waterline on the lowest measured level: nothing submerged
        return SectionProperties(index, x_m, t, 0.0, 0.0, t, -y_t, y_t)

    # measured waterlines go through the integrator; between two of them the
    # increment is shared out in proportion to the interpolated profile, so the
    # section area and moment are continuous in t and exact at every waterline
    area, moment_z = _cumulative_integrals(z_levels, row, profile, level, integrator)
    z_k = float(z_levels[level])
    if t - z_k > LEVEL_TOLERANCE_M:
        next_area, next_moment = _cumulative_integrals(z_levels, row, profile, level + 1, integrator)
        part_area, part_moment = _interval_integrals(profile, z_k, t)
        full_area, full_moment = _interval_integrals(profile, z_k, float(z_levels[level + 1]))
        area = _blend(area, next_area, part_area, full_area)
        moment_z = _blend(moment_z, next_moment, part_moment, full_moment)

    zc = moment_z / area if area > EPS else t
    return SectionProperties(index, x_m, t, 2.0 * area, 0.0, zc, -y_t, y_t)


def _section_polygon(z_levels: np.ndarray, row: np.ndarray) -> List[Tuple[float, float]]:
    """Closed (y, z) outline, counter-clockwise: starboard going up, port coming down."""
    starboard = [(float(y), float(z)) for y, z in zip(row, z_levels)]
    port = [(-float(y), float(z)) for y, z in zip(row[::-1], z_levels[::-1])]
    return starboard + port


def _clip_below_waterline(
    vertices: Sequence[Tuple[float, float]], t: float, tan_heel: float
) -> Tuple[List[Tuple[float, float]], List[float]]:
    """
    Sutherland-Hodgman clip against the submerged half-plane z <= t + y*tan(heel).
    Returns the clipped polygon and the y of every point lying on the waterline.
    """
    clipped: List[Tuple[float, float]] = []
    cuts: List[float] = []
    n = len(vertices)
    for k in range(n):
        py, pz = vertices[k]
        qy, qz = vertices[(k + 1) % n]
        fp = t + py * tan_heel - pz
        fq = t + qy * tan_heel - qz
        if fp >= 0.0:
            clipped.append((py, pz))
            if fp <= LEVEL_TOLERANCE_M:
                cuts.append(py)
        if (fp > 0.0 and fq < 0.0) or (fp < 0.0 and fq > 0.0):
            r = fp / (fp - fq)
            y = py + r * (qy - py)
            clipped.append((y, pz + r * (qz - pz)))
            cuts.append(y)
    return clipped, cuts


def _polygon_area_centroid(vertices: Sequence[Tuple[float, float]]) -> Tuple[float, float, float]:
    """Shoelace area and centroid (area, cy, cz) of a closed polygon."""
    n = len(vertices)
    if n < 3:
        return 0.0, 0.0, 0.0
    area = 0.0
    cy_num = 0.0
    cz_num = 0.0
    for i in range(n):
        yi, zi = vertices[i]
        yj, zj = vertices[(i + 1) % n]
        cross = yi * zj - yj * zi
        area += cross
        cy_num += (yi + yj) * cross
        cz_num += (zi + zj) * cross
    area *= 0.5
    if abs(area) < EPS:
        return 0.0, 0.0, 0.0
    return abs(area), cy_num / (6.0 * area), cz_num / (6.0 * area)


def _heeled_section(
    index: int,
    x_m: float,
    t: float,
    z_levels: np.ndarray,
    row: np.ndarray,
    heel_rad: float,
) -> SectionProperties:
    tan_heel = math.tan(heel_rad)
    z_top = float(z_levels[-1])
    rise = abs(float(row[-1]) * tan_heel)
    if t + rise > z_top + LEVEL_TOLERANCE_M:
        raise OutOfRangeError(
            f"Inclined waterline at station {index} reaches {t + rise:.6f} m, "
            f"above the highest measured waterline {z_top} m",
            station_index=index,
            local_draft_m=t,
        )
    clipped, cuts = _clip_below_waterline(_section_polygon(z_levels, row), t, tan_heel)
    area, yc, zc = _polygon_area_centroid(clipped)
    if cuts:
        cos_heel = math.cos(heel_rad)
        s_port, s_stbd = min(cuts) / cos_heel, max(cuts) / cos_heel
    else:
        s_port = s_stbd = 0.0
    return SectionProperties(index, x_m, t, area, yc, zc if area > 0.0 else t, s_port, s_stbd)


def section_properties(
    hull: HullDataProvider,
    draft_m: float,
    trim_rad: float = 0.0,
    heel_rad: float = 0.0,
    *,
    interpolation: str = "linear",
    integrator: Integrator | None = None,
) -> Tuple[SectionProperties, ...]:
    """
    Submerged area, centroid and waterline chord of every station.

    Raises OutOfRangeError when any local waterline leaves the measured span.
    """
    _check_arguments(draft_m, trim_rad, heel_rad, interpolation)
    integrator = integrator or DEFAULT_INTEGRATOR
    z_levels = np.asarray(hull.waterlines_m, dtype=float)
    offsets = np.asarray(hull.half_breadths_m, dtype=float)
    stations = np.asarray(hull.stations_m, dtype=float)
    z_lo, z_hi = hull.draft_span_m

    sections: List[SectionProperties] = []
    for i, t in enumerate(local_drafts(hull, draft_m, trim_rad)):
        level = _level_in_span(i, float(t), z_lo, z_hi)
        if heel_rad == 0.0:
            sections.append(
                _upright_section(i, float(stations[i]), level, z_levels, offsets[i], interpolation, integrator)
            )
        else:
            sections.append(_heeled_section(i, float(stations[i]), level, z_levels, offsets[i], heel_rad))
    return tuple(sections)


def _midship_area(x_rel: np.ndarray, areas: np.ndarray, interpolation: str) -> float:
    if interpolation == "pchip":
        return float(PchipInterpolator(x_rel, areas, extrapolate=False)(0.0))
    return float(np.interp(0.0, x_rel, areas))


def principal_dimensions(hull: HullDataProvider) -> Tuple[float, float]:
    """(L, B) from the particulars, or from the offsets grid where a particular is unset."""
    p = hull.particulars
    stations = np.asarray(hull.stations_m)
    length = p.lbp_m if p.lbp_m > 0 else float(stations[-1] - stations[0])
    breadth = p.breadth_m if p.breadth_m > 0 else 2.0 * float(np.max(hull.half_breadths_m))
    return length, breadth


def compute(
    hull: HullDataProvider,
    draft_m: float,
    trim_rad: float = 0.0,
    heel_rad: float = 0.0,
    vcg_m: float | None = None,
    *,
    integrator: Integrator | None = None,
    interpolation: str = "linear",
    water_density_t_m3: float | None = None,
) -> HydrostaticsResult:
    """
    Full hydrostatic property set at one draft / trim / heel.

    LCB and LCF are measured from midships; GM values are only filled when a
    vertical centre of gravity is given. Never returns partially valid results:
    raises OutOfRangeError, DegenerateGeometryError or NumericalInstabilityError.
    """
    rho = RHO_SEA if water_density_t_m3 is None else water_density_t_m3
    if rho <= 0:
        raise ValueError("Water density must be greater than zero.")
    integrator = integrator or DEFAULT_INTEGRATOR
    sections = section_properties(
        hull, draft_m, trim_rad, heel_rad, interpolation=interpolation, integrator=integrator
    )

    x = np.array([s.station_x_m for s in sections]) - hull.midship_x_m
    areas = np.array([s.area_m2 for s in sections])
    y_c = np.array([s.centroid_y_m for s in sections])
    z_c = np.array([s.centroid_z_m for s in sections])
    s_p = np.array([s.chord_port_m for s in sections])
    s_s = np.array([s.chord_stbd_m for s in sections])

    volume = integrator.integrate_xy(x, areas)
    if not math.isfinite(volume) or volume < -EPS:
        raise NumericalInstabilityError(f"Integrated volume is {volume!r} at draft {draft_m} m")
    if volume <= EPS:
        raise DegenerateGeometryError(f"Zero displaced volume at draft {draft_m} m")

    lcb = integrator.integrate_xy(x, x * areas) / volume
    tcb = integrator.integrate_xy(x, y_c * areas) / volume
    kb = integrator.integrate_xy(x, z_c * areas) / volume

    chord = s_s - s_p
    awp = integrator.integrate_xy(x, chord)
    if not math.isfinite(awp):
        raise NumericalInstabilityError(f"Integrated waterplane area is {awp!r} at draft {draft_m} m")
    if awp <= EPS:
        raise DegenerateGeometryError(f"Zero waterplane area at draft {draft_m} m")
    lcf = integrator.integrate_xy(x, x * chord) / awp
    s_centre = integrator.integrate_xy(x, 0.5 * (s_s ** 2 - s_p ** 2)) / awp
    i_t = integrator.integrate_xy(x, (s_s ** 3 - s_p ** 3) / 3.0) - awp * s_centre ** 2
    i_l = integrator.integrate_xy(x, x * x * chord) - awp * lcf ** 2

    length, breadth = principal_dimensions(hull)
    box = length * breadth * draft_m
    if box <= EPS or breadth * draft_m <= EPS:
        raise DegenerateGeometryError(
            f"Non-positive reference dimensions L={length}, B={breadth}, T={draft_m}"
        )
    a_mid = _midship_area(x, areas, interpolation)
    if not a_mid > EPS:
        raise DegenerateGeometryError(f"Zero midship section area at draft {draft_m} m")

    bm_t = i_t / volume
    bm_l = i_l / volume
    km_t = kb + bm_t
    km_l = kb + bm_l
    cb = volume / box
    cm = a_mid / (breadth * draft_m)
    displacement = volume * rho

    checks = (lcb, tcb, kb, lcf, i_t, i_l, cb, cm)
    if not all(math.isfinite(v) for v in checks):
        raise NumericalInstabilityError(f"Non-finite hydrostatic property at draft {draft_m} m")

    result = HydrostaticsResult(
        draft_m=draft_m,
        trim_rad=trim_rad,
        heel_rad=heel_rad,
        volume_m3=volume,
        displacement_t=displacement,
        lcb_m=lcb,
        tcb_m=tcb,
        kb_m=kb,
        awp_m2=awp,
        lcf_m=lcf,
        i_t_m4=i_t,
        i_l_m4=i_l,
        bm_t_m=bm_t,
        bm_l_m=bm_l,
        km_t_m=km_t,
        km_l_m=km_l,
        cb=cb,
        cp=cb / cm,
        cm=cm,
        cwp=awp / (length * breadth),
        midship_area_m2=a_mid,
        tpc_t_per_cm=awp * rho / 100.0,
        mtc_tm_per_cm=displacement * bm_l / (100.0 * length),
        gm_t_m=None if vcg_m is None else km_t - vcg_m,
        gm_l_m=None if vcg_m is None else km_l - vcg_m,
    )
    _LOG.debug(
        "Hydrostatics T=%.4f trim=%.6f heel=%.6f: V=%.4f LCB=%.4f KB=%.4f Awp=%.4f",
        draft_m, trim_rad, heel_rad, volume, lcb, kb, awp,
    )
    return result


class EvaluationCache:
    """
    Memo of compute() results for one run (a solve or a curve), keyed by
    (draft, trim, heel). Owned by the caller that creates it; safe to share
    between that caller's worker threads.
    """

    def __init__(
        self,
        hull: HullDataProvider,
        vcg_m: float | None = None,
        *,
        integrator: Integrator | None = None,
        interpolation: str = "linear",
        water_density_t_m3: float | None = None,
    ) -> None:
        self.hull = hull
        self.vcg_m = vcg_m
        self.integrator = integrator
        self.interpolation = interpolation
        self.water_density_t_m3 = water_density_t_m3
        self._results: Dict[Tuple[float, float, float], HydrostaticsResult] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def evaluate(self, draft_m: float, trim_rad: float = 0.0, heel_rad: float = 0.0) -> HydrostaticsResult:
        key = (float(draft_m), float(trim_rad), float(heel_rad))
        with self._lock:
            cached = self._results.get(key)
            if cached is not None:
                self.hits += 1
                return cached
        result = compute(
            self.hull,
            key[0],
            key[1],
            key[2],
            self.vcg_m,
            integrator=self.integrator,
            interpolation=self.interpolation,
            water_density_t_m3=self.water_density_t_m3,
        )
        with self._lock:
            self.misses += 1
            return self._results.setdefault(key, result)
