"""
Numerical integration of sampled functions.

Composite Simpson on equally spaced abscissae (3/8 rule on the tail when the
interval count is odd), a three-point quadratic fit per interval pair when the
spacing is uneven, and the trapezoid rule for a single interval. All functions
are pure: same inputs give bit-identical outputs.
"""

from __future__ import annotations

from typing import Protocol, Sequence, Tuple

import numpy as np
from scipy.integrate import trapezoid

from hydrocore_app.config.limits import SPACING_RTOL

from .errors import InsufficientPointsError


class Integrator(Protocol):
    """Strategy used by the calculator for every 1-D integral."""

    def integrate_xy(self, x: Sequence[float] | np.ndarray, y: Sequence[float] | np.ndarray) -> float: ...


def _as_samples(x, y) -> Tuple[np.ndarray, np.ndarray]:
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if xs.ndim != 1 or ys.ndim != 1:
        raise ValueError("Abscissae and ordinates must be one-dimensional")
    if xs.size != ys.size:
        raise ValueError(f"Length mismatch: {xs.size} abscissae, {ys.size} ordinates")
    if xs.size < 2:
        raise InsufficientPointsError(f"Need at least 2 points to integrate, got {xs.size}")
    if np.any(np.diff(xs) <= 0):
        raise ValueError("Abscissae must be strictly increasing")
    return xs, ys


def _is_uniform(h: np.ndarray) -> bool:
    return bool(np.allclose(h, h[0], rtol=SPACING_RTOL, atol=0.0))


def _simpson_uniform(h: float, y: np.ndarray) -> float:
    """Composite Simpson 1/3 on an even number of equal intervals."""
    return h / 3.0 * float(y[0] + 4.0 * y[1:-1:2].sum() + 2.0 * y[2:-1:2].sum() + y[-1])


def _simpson_38(h: float, y: np.ndarray) -> float:
    """Simpson 3/8 on exactly three equal intervals."""
    return 3.0 * h / 8.0 * float(y[0] + 3.0 * y[1] + 3.0 * y[2] + y[3])


def _quadratic_pairs(h0: np.ndarray, h1: np.ndarray, f0, f1, f2) -> float:
    """Sum of exact integrals of the parabola through each point triple."""
    hs = h0 + h1
    return float(
        np.sum(
            hs / 6.0
            * ((2.0 - h1 / h0) * f0 + hs * hs / (h0 * h1) * f1 + (2.0 - h0 / h1) * f2)
        )
    )


def _quadratic_tail(h0: float, h1: float, f0: float, f1: float, f2: float) -> float:
    """Integral over the last interval [x1, x2] of the parabola through (x0, x1, x2)."""
    hs = h0 + h1
    return (
        f2 * (2.0 * h1 * h1 + 3.0 * h0 * h1) / (6.0 * hs)
        + f1 * (h1 * h1 + 3.0 * h0 * h1) / (6.0 * h0)
        - f0 * h1 ** 3 / (6.0 * h0 * hs)
    )


class CompositeSimpsonIntegrator:
    """Default rule selection for tabulated ship data."""

    def integrate_xy(self, x, y) -> float:
        xs, ys = _as_samples(x, y)
        h = np.diff(xs)
        n = h.size
        if n == 1:
            return 0.5 * float(h[0] * (ys[0] + ys[1]))

        if _is_uniform(h):
            step = float(h.mean())
            if n % 2 == 0:
                return _simpson_uniform(step, ys)
            # odd count: 1/3 rule on the head, 3/8 rule on the last three intervals
            head = _simpson_uniform(step, ys[: n - 2]) if n > 3 else 0.0
            return head + _simpson_38(step, ys[n - 3:])

        pairs = n // 2
        h0 = h[0 : 2 * pairs : 2]
        h1 = h[1 : 2 * pairs : 2]
        total = _quadratic_pairs(
            h0, h1, ys[0 : 2 * pairs : 2], ys[1 : 2 * pairs : 2], ys[2 : 2 * pairs + 1 : 2]
        )
        if n % 2 == 1:
            total += _quadratic_tail(
                float(h[-2]), float(h[-1]), float(ys[-3]), float(ys[-2]), float(ys[-1])
            )
        return total


class TrapezoidalIntegrator:
    """Piecewise-linear rule; exact for linearly interpolated offsets."""

    def integrate_xy(self, x, y) -> float:
        xs, ys = _as_samples(x, y)
        return float(trapezoid(ys, xs))


DEFAULT_INTEGRATOR: Integrator = CompositeSimpsonIntegrator()


def integrate_xy(x, y, integrator: Integrator | None = None) -> float:
    """Integral of y dx over the sampled range."""
    return (integrator or DEFAULT_INTEGRATOR).integrate_xy(x, y)


def integrate(points: Sequence[Tuple[float, float]], integrator: Integrator | None = None) -> float:
    """Integral from a sequence of (x, f(x)) pairs with strictly increasing x."""
    pts = list(points)
    if len(pts) < 2:
        raise InsufficientPointsError(f"Need at least 2 points to integrate, got {len(pts)}")
    xs, ys = zip(*pts)
    return integrate_xy(xs, ys, integrator)


def first_moment(x, y, integrator: Integrator | None = None) -> float:
    """Integral of x * y dx."""
    xs = np.asarray(x, dtype=float)
    return integrate_xy(xs, xs * np.asarray(y, dtype=float), integrator)


def second_moment(x, y, integrator: Integrator | None = None) -> float:
    """Integral of x**2 * y dx."""
    xs = np.asarray(x, dtype=float)
    return integrate_xy(xs, xs * xs * np.asarray(y, dtype=float), integrator)


def integrate_nested(
    outer_x,
    inner_x_per_outer: Sequence[Sequence[float]],
    inner_y_per_outer: Sequence[Sequence[float]],
    integrator: Integrator | None = None,
) -> float:
    """
    Double integral: integrate each inner sample set, then integrate the inner
    results along the outer abscissae.
    """
    if len(inner_x_per_outer) != len(outer_x) or len(inner_y_per_outer) != len(outer_x):
        raise ValueError("One inner sample set is required per outer abscissa")
    inner = [
        integrate_xy(xi, yi, integrator)
        for xi, yi in zip(inner_x_per_outer, inner_y_per_outer)
    ]
    return integrate_xy(outer_x, inner, integrator)
