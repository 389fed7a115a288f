"""
Numerical tolerances and solver limits for the hydrostatics engine.

Values are engine-wide defaults; Settings carries per-run overrides for the
solver-facing ones.
"""

from __future__ import annotations

# Floating-point tolerance for safe divisions and zero checks
EPS = 1e-9

# Relative tolerance when deciding whether abscissae are equally spaced
SPACING_RTOL = 1e-6

# Absolute tolerance (m) for treating a local draft as lying on a waterline
LEVEL_TOLERANCE_M = 1e-9

# Seawater density t/m³
RHO_SEA = 1.025

# Block coefficient used for the box-approximation initial guess
DEFAULT_CB_ESTIMATE = 0.7

# Newton-Raphson trim solver
MAX_ITERATIONS = 50
SOLVER_TOLERANCE = 1e-7  # on the scaled residual norm
MAX_STEP_HALVINGS = 10
DETERMINANT_MIN = 1e-12  # |det J| of the scaled Jacobian

# Finite-difference steps for the Jacobian
JACOBIAN_DRAFT_FRACTION = 1e-4  # fraction of the waterline span
JACOBIAN_ANGLE_STEP_RAD = 1e-4

# Direct GZ method: root tolerance on the heeled draft (m)
GZ_DRAFT_TOLERANCE_M = 1e-10

# Intact stability, IMO IS Code A.749(18) 3.1.2
MIN_AREA_0_30_M_RAD = 0.055
MIN_AREA_0_40_M_RAD = 0.090
MIN_AREA_30_40_M_RAD = 0.030
MIN_GZ_AT_30_M = 0.20
MIN_MAX_GZ_ANGLE_DEG = 25.0
MIN_GM_M = 0.15  # initial GMt
