"""
Equilibrium trim solver.

Finds the midship draft and trim (and heel, when a transverse centre of
gravity is given) at which the hull displaces the target volume with its
centre of buoyancy in line with the centre of gravity.

Newton-Raphson on the scaled residual

    [ (V - V_target) / V_target, (LCB - LCG) / L (, (TCB - TCG) / B) ]

with a finite-difference Jacobian and step halving when a trial state leaves
the measured waterlines or fails to reduce the residual.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Sequence, Tuple

import numpy as np

from hydrocore_app.config.settings import Settings

from ..models import HullDataProvider, HydrostaticsResult, LoadcaseTarget, TrimSolution
from .errors import (
    DegenerateGeometryError,
    NonConvergenceError,
    NumericalInstabilityError,
    OutOfRangeError,
    SingularJacobianError,
)
from .hydrostatics import EvaluationCache, principal_dimensions, compute, local_drafts
from .integration import Integrator

_LOG = logging.getLogger(__name__)

# Evaluation failures that mark a state as unusable
_INVALID_STATE = (OutOfRangeError, DegenerateGeometryError, NumericalInstabilityError)

ResidualFn = Callable[[np.ndarray], Tuple[np.ndarray, HydrostaticsResult]]


def estimate_initial_draft(
    hull: HullDataProvider,
    target_displacement_m3: float,
    settings: Settings | None = None,
) -> float:
    """
    Box approximation T0 = V / (L * B * Cb), clamped into the measured
    waterlines far enough from either end for a central-difference step.
    """
    settings = settings or Settings()
    length, breadth = principal_dimensions(hull)
    cb = hull.particulars.block_coefficient
    if cb <= 0:
        cb = settings.cb_estimate
    draft = target_displacement_m3 / (length * breadth * cb)
    z_lo, z_hi = hull.draft_span_m
    margin = 2.0 * settings.jacobian_draft_fraction * (z_hi - z_lo)
    return min(max(draft, z_lo + margin), z_hi - margin)


def _within_angle_limits(state: np.ndarray) -> bool:
    return all(abs(a) < math.pi / 2 for a in state[1:])


def _jacobian(
    residual: ResidualFn,
    state: np.ndarray,
    base: np.ndarray,
    steps: np.ndarray,
) -> np.ndarray:
    """Central differences per column; one-sided where a shifted state leaves the valid range."""
    n = state.size
    jac = np.zeros((n, n))
    for j in range(n):
        offset = np.zeros(n)
        offset[j] = steps[j]
        shifted = []
        for candidate in (state + offset, state - offset):
            try:
                shifted.append(residual(candidate)[0] if _within_angle_limits(candidate) else None)
            except _INVALID_STATE:
                shifted.append(None)
        plus, minus = shifted
        if plus is not None and minus is not None:
            jac[:, j] = (plus - minus) / (2.0 * steps[j])
        elif plus is not None:
            jac[:, j] = (plus - base) / steps[j]
        elif minus is not None:
            jac[:, j] = (base - minus) / steps[j]
        else:
            raise OutOfRangeError(f"Neither Jacobian step for unknown {j} can be evaluated")
    return jac


def _solution(
    hull: HullDataProvider,
    state: np.ndarray,
    raw: np.ndarray,
    result: HydrostaticsResult,
    iterations: int,
    heel_mode: bool,
) -> TrimSolution:
    draft, trim = float(state[0]), float(state[1])
    ends = local_drafts(hull, draft, trim)
    return TrimSolution(
        draft_m=draft,
        trim_rad=trim,
        heel_rad=float(state[2]) if heel_mode else None,
        residual=tuple(float(r) for r in raw),
        iterations=iterations,
        converged=True,
        draft_aft_m=float(ends[0]),
        draft_fwd_m=float(ends[-1]),
        hydrostatics=result,
    )


def _error_state(state: np.ndarray, raw: np.ndarray, iterations: int, heel_mode: bool) -> dict:
    return {
        "draft_m": float(state[0]),
        "trim_rad": float(state[1]),
        "heel_rad": float(state[2]) if heel_mode else None,
        "residual": tuple(float(r) for r in raw),
        "iterations": iterations,
    }


def solve(
    hull: HullDataProvider,
    target_displacement_m3: float,
    target_lcg_m: float,
    initial_guess: Sequence[float] | None = None,
    *,
    target_tcg_m: float | None = None,
    vcg_m: float | None = None,
    settings: Settings | None = None,
    integrator: Integrator | None = None,
) -> TrimSolution:
    """
    Solve for (draft, trim) or, with target_tcg_m, (draft, trim, heel).

    initial_guess is (draft_m, trim_rad[, heel_rad]); by default the box
    estimate at zero trim and heel. LCG and TCG use the same frame as LCB and
    TCB (midships, centreline). Raises SingularJacobianError or
    NonConvergenceError carrying the last state.
    """
    if not (math.isfinite(target_displacement_m3) and target_displacement_m3 > 0):
        raise ValueError("Target displacement must be a positive volume (m3)")
    if not math.isfinite(target_lcg_m):
        raise ValueError("Target LCG must be finite")
    if target_tcg_m is not None and not math.isfinite(target_tcg_m):
        raise ValueError("Target TCG must be finite")

    settings = settings or Settings()
    heel_mode = target_tcg_m is not None
    n = 3 if heel_mode else 2
    length, breadth = principal_dimensions(hull)
    scale = np.array([target_displacement_m3, length, breadth][:n])
    z_lo, z_hi = hull.draft_span_m
    steps = np.array(
        [settings.jacobian_draft_fraction * (z_hi - z_lo)] + [settings.jacobian_angle_step_rad] * (n - 1)
    )

    if initial_guess is None:
        state = np.zeros(n)
        state[0] = estimate_initial_draft(hull, target_displacement_m3, settings)
    else:
        guess = [float(v) for v in initial_guess]
        if len(guess) not in (2, 3):
            raise ValueError("initial_guess must be (draft_m, trim_rad) or (draft_m, trim_rad, heel_rad)")
        state = np.array((guess + [0.0])[:n])

    cache = EvaluationCache(
        hull,
        vcg_m,
        integrator=integrator,
        interpolation=settings.interpolation,
        water_density_t_m3=settings.water_density_t_m3,
    )

    def residual(s: np.ndarray) -> Tuple[np.ndarray, HydrostaticsResult]:
        r = cache.evaluate(s[0], s[1], s[2] if heel_mode else 0.0)
        values = [r.volume_m3 - target_displacement_m3, r.lcb_m - target_lcg_m]
        if heel_mode:
            values.append(r.tcb_m - target_tcg_m)
        return np.array(values), r

    _LOG.info(
        "Trim solve: V=%.4f m3 LCG=%.4f m%s, start T=%.4f m",
        target_displacement_m3,
        target_lcg_m,
        "" if not heel_mode else f" TCG={target_tcg_m:.4f} m",
        state[0],
    )

    try:
        raw, result = residual(state)
    except _INVALID_STATE as exc:
        raise NonConvergenceError(
            f"Initial state cannot be evaluated: {exc.message}",
            **_error_state(state, np.full(n, np.nan), 0, heel_mode),
        ) from exc

    iterations = 0
    while True:
        norm = float(np.linalg.norm(raw / scale))
        _LOG.debug("Iteration %d: state=%s |R|=%.3e", iterations, state, norm)
        if norm < settings.solver_tolerance:
            _LOG.info(
                "Trim solve converged in %d iterations: T=%.5f m trim=%.6f rad", iterations, state[0], state[1]
            )
            return _solution(hull, state, raw, result, iterations, heel_mode)
        if iterations >= settings.max_iterations:
            _LOG.warning("Trim solve did not converge after %d iterations (|R|=%.3e)", iterations, norm)
            raise NonConvergenceError(
                f"No convergence after {iterations} iterations (scaled residual {norm:.3e})",
                **_error_state(state, raw, iterations, heel_mode),
            )

        try:
            jac = _jacobian(residual, state, raw, steps) / scale[:, None]
        except OutOfRangeError as exc:
            raise NonConvergenceError(exc.message, **_error_state(state, raw, iterations, heel_mode)) from exc
        det = float(np.linalg.det(jac))
        if abs(det) < settings.determinant_min:
            raise SingularJacobianError(
                f"Singular Jacobian (|det| = {abs(det):.3e}) at iteration {iterations}",
                **_error_state(state, raw, iterations, heel_mode),
            )
        step = -np.linalg.solve(jac, raw / scale)
        iterations += 1

        accepted = None
        last_in_range = None
        factor = 1.0
        for _ in range(settings.max_step_halvings + 1):
            trial = state + factor * step
            factor *= 0.5
            if not _within_angle_limits(trial):
                continue
            try:
                t_raw, t_result = residual(trial)
            except _INVALID_STATE:
                continue
            if float(np.linalg.norm(t_raw / scale)) < norm:
                accepted = (trial, t_raw, t_result)
                break
            last_in_range = (trial, t_raw, t_result)

        if accepted is None:
            if last_in_range is None:
                _LOG.warning("Trim solve: no damped step stays inside the measured waterlines")
                raise NonConvergenceError(
                    f"No damped step stays inside the measured waterlines at iteration {iterations}",
                    **_error_state(state, raw, iterations, heel_mode),
                )
            accepted = last_in_range
        state, raw, result = accepted


def solve_loadcase(
    hull: HullDataProvider,
    target: LoadcaseTarget,
    initial_guess: Sequence[float] | None = None,
    *,
    settings: Settings | None = None,
    integrator: Integrator | None = None,
) -> TrimSolution:
    """solve() for a loadcase target; heel is solved when the target has a TCG."""
    return solve(
        hull,
        target.displacement_m3,
        target.lcg_m,
        initial_guess,
        target_tcg_m=target.tcg_m,
        vcg_m=target.vcg_m,
        settings=settings,
        integrator=integrator,
    )


def is_displacement_achievable(
    hull: HullDataProvider,
    target_displacement_m3: float,
    settings: Settings | None = None,
    *,
    integrator: Integrator | None = None,
) -> bool:
    """True when 0 < target <= volume at the highest measured waterline, upright."""
    if not target_displacement_m3 > 0:
        return False
    settings = settings or Settings()
    max_volume = compute(
        hull,
        hull.draft_span_m[1],
        integrator=integrator,
        interpolation=settings.interpolation,
        water_density_t_m3=settings.water_density_t_m3,
    ).volume_m3
    return target_displacement_m3 <= max_volume
