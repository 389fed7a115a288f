"""
Hydrostatic curves: properties and sectional areas over a range of drafts.

Drafts are evaluated independently on a bounded thread pool and reassembled
in draft order. A draft that fails with an engine error becomes a
CurveFailure marker; the rest of the curve is still produced.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Tuple, TypeVar

import numpy as np

from hydrocore_app.config.settings import Settings

from ..models import (
    BonjeanCurve,
    BonjeanPoint,
    Curve,
    CurveFailure,
    CurvePoint,
    HullDataProvider,
    SectionProperties,
)
from .errors import HydrostaticsError
from .hydrostatics import EvaluationCache, section_properties
from .integration import Integrator

_LOG = logging.getLogger(__name__)

_T = TypeVar("_T")


def draft_range(min_draft_m: float, max_draft_m: float, step_count: int) -> List[float]:
    """step_count evenly spaced drafts from min to max inclusive."""
    if step_count < 2:
        raise ValueError(f"step_count must be at least 2, got {step_count}")
    if not max_draft_m > min_draft_m:
        raise ValueError(
            f"Maximum draft ({max_draft_m} m) must exceed minimum draft ({min_draft_m} m)"
        )
    return [float(d) for d in np.linspace(min_draft_m, max_draft_m, step_count)]


def _worker_count(task_count: int, max_workers: int | None) -> int:
    cap = max_workers if max_workers is not None else (os.cpu_count() or 1)
    return max(1, min(task_count, cap))


def _map_ordered(fn: Callable[[float], _T], drafts: List[float], workers: int) -> List[_T]:
    """Run fn for every draft on the pool; results come back in draft order."""
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(fn, d) for d in drafts]
        return [f.result() for f in futures]


def generate(
    hull: HullDataProvider,
    draft_range: Tuple[float, float],
    step_count: int,
    *,
    trim_rad: float = 0.0,
    heel_rad: float = 0.0,
    vcg_m: float | None = None,
    max_workers: int | None = None,
    integrator: Integrator | None = None,
    settings: Settings | None = None,
) -> Curve:
    """
    Hydrostatics at step_count drafts over draft_range = (min, max).

    Non-engine exceptions propagate; engine errors are isolated per draft.
    """
    settings = settings or Settings()
    drafts = _drafts(draft_range, step_count)
    cache = EvaluationCache(
        hull,
        vcg_m,
        integrator=integrator,
        interpolation=settings.interpolation,
        water_density_t_m3=settings.water_density_t_m3,
    )

    def evaluate(draft_m: float) -> CurvePoint:
        try:
            return CurvePoint(draft_m, result=cache.evaluate(draft_m, trim_rad, heel_rad))
        except HydrostaticsError as exc:
            _LOG.warning("Draft %.4f m skipped: %s: %s", draft_m, exc.kind, exc.message)
            return CurvePoint(draft_m, failure=CurveFailure(exc.kind, exc.message))

    workers = _worker_count(len(drafts), max_workers if max_workers is not None else settings.max_workers)
    points = _map_ordered(evaluate, drafts, workers)
    curve = Curve(points=tuple(points), trim_rad=trim_rad, heel_rad=heel_rad)
    _LOG.info(
        "Hydrostatic curve for %s: %d drafts %.4f..%.4f m, %d failed, %d workers",
        getattr(hull, "name", "") or "hull",
        len(drafts),
        drafts[0],
        drafts[-1],
        len(curve.failures()),
        workers,
    )
    return curve


def generate_bonjean(
    hull: HullDataProvider,
    draft_range: Tuple[float, float],
    step_count: int,
    *,
    max_workers: int | None = None,
    integrator: Integrator | None = None,
    settings: Settings | None = None,
) -> Tuple[BonjeanCurve, ...]:
    """Upright sectional area vs draft, one curve per station."""
    settings = settings or Settings()
    drafts = _drafts(draft_range, step_count)

    def evaluate(draft_m: float) -> Tuple[SectionProperties, ...] | CurveFailure:
        try:
            return section_properties(
                hull, draft_m, interpolation=settings.interpolation, integrator=integrator
            )
        except HydrostaticsError as exc:
            _LOG.warning("Bonjean draft %.4f m skipped: %s: %s", draft_m, exc.kind, exc.message)
            return CurveFailure(exc.kind, exc.message)

    workers = _worker_count(len(drafts), max_workers if max_workers is not None else settings.max_workers)
    per_draft = _map_ordered(evaluate, drafts, workers)

    stations = np.asarray(hull.stations_m, dtype=float)
    curves = []
    for i, x_m in enumerate(stations):
        points = []
        for draft_m, outcome in zip(drafts, per_draft):
            if isinstance(outcome, CurveFailure):
                points.append(BonjeanPoint(draft_m, failure=outcome))
            else:
                points.append(BonjeanPoint(draft_m, area_m2=outcome[i].area_m2))
        curves.append(BonjeanCurve(station_index=i, station_x_m=float(x_m), points=tuple(points)))

    failed = sum(isinstance(o, CurveFailure) for o in per_draft)
    _LOG.info("Bonjean curves: %d stations x %d drafts, %d drafts failed", len(curves), len(drafts), failed)
    return tuple(curves)


def _drafts(range_m: Tuple[float, float], step_count: int) -> List[float]:
    lo, hi = range_m
    return draft_range(lo, hi, step_count)
