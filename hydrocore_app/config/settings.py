"""
Engine settings and logging configuration for hydrocore_app.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from hydrocore_app.config.limits import (
    DEFAULT_CB_ESTIMATE,
    DETERMINANT_MIN,
    JACOBIAN_ANGLE_STEP_RAD,
    JACOBIAN_DRAFT_FRACTION,
    MAX_ITERATIONS,
    MAX_STEP_HALVINGS,
    RHO_SEA,
    SOLVER_TOLERANCE,
)

_INTERPOLATION_METHODS = ("linear", "pchip")


@dataclass(slots=True, frozen=True)
class Settings:
    """Engine-level defaults shared by the calculator, curves and solver."""

    water_density_t_m3: float = RHO_SEA
    interpolation: str = "linear"
    max_workers: int | None = None  # None = one per CPU core
    max_iterations: int = MAX_ITERATIONS
    solver_tolerance: float = SOLVER_TOLERANCE
    max_step_halvings: int = MAX_STEP_HALVINGS
    determinant_min: float = DETERMINANT_MIN
    jacobian_draft_fraction: float = JACOBIAN_DRAFT_FRACTION
    jacobian_angle_step_rad: float = JACOBIAN_ANGLE_STEP_RAD
    cb_estimate: float = DEFAULT_CB_ESTIMATE
    log_level: str = "INFO"
    log_file: Path | None = None

    def __post_init__(self) -> None:
        if self.interpolation not in _INTERPOLATION_METHODS:
            raise ValueError(
                f"Unknown interpolation method {self.interpolation!r}; "
                f"expected one of {_INTERPOLATION_METHODS}"
            )
        if self.water_density_t_m3 <= 0:
            raise ValueError("Water density must be greater than zero.")
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1.")
        if self.max_step_halvings < 0:
            raise ValueError("max_step_halvings must not be negative.")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1 when given.")

    @classmethod
    def default(cls) -> "Settings":
        """Defaults, with the log level and log file overridable from the environment."""
        log_file = os.environ.get("HYDROCORE_LOG_FILE")
        return cls(
            log_level=os.environ.get("HYDROCORE_LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None,
        )


def init_logging(settings: Settings) -> None:
    """Configure basic logging to console and optional file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file is not None:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=handlers,
    )

    logging.getLogger(__name__).info(
        "Logging initialized. Water density %.4f t/m3, interpolation %s",
        settings.water_density_t_m3,
        settings.interpolation,
    )
