"""
Reference hull forms with closed-form hydrostatics.

Used to check the calculator: a rectangular barge (every coefficient 1) and
the Wigley hull y = B/2 * (1 - (2x/L)^2) * (1 - ((T - z)/T)^2), which is
parabolic in both waterlines and sections below the design draft and
wall-sided above it.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from hydrocore_app.config.limits import RHO_SEA

from ..models import HullGeometry, PrincipalParticulars


@dataclass(slots=True, frozen=True)
class ReferenceHydrostatics:
    """Exact hydrostatics of a reference form at its design draft (LCB from midships)."""
    draft_m: float
    volume_m3: float
    displacement_t: float
    lcb_m: float
    tcb_m: float
    kb_m: float
    awp_m2: float
    i_t_m4: float
    i_l_m4: float
    bm_t_m: float
    bm_l_m: float
    cb: float
    cp: float
    cm: float
    cwp: float


def _axes(length_m: float, depth_m: float, station_count: int, waterline_count: int):
    if station_count < 2 or waterline_count < 2:
        raise ValueError("At least two stations and two waterlines are required")
    if length_m <= 0 or depth_m <= 0:
        raise ValueError("Length and depth must be greater than zero")
    return np.linspace(0.0, length_m, station_count), np.linspace(0.0, depth_m, waterline_count)


def rectangular_barge(
    length_m: float = 100.0,
    breadth_m: float = 20.0,
    design_draft_m: float = 10.0,
    depth_m: float | None = None,
    station_count: int = 5,
    waterline_count: int = 3,
) -> HullGeometry:
    """Box of constant half-breadth; waterlines from the keel up to depth (design draft by default)."""
    stations, waterlines = _axes(length_m, depth_m or design_draft_m, station_count, waterline_count)
    offsets = np.full((stations.size, waterlines.size), breadth_m / 2.0)
    return HullGeometry(
        stations_m=stations,
        waterlines_m=waterlines,
        half_breadths_m=offsets,
        particulars=PrincipalParticulars(length_m, breadth_m, design_draft_m, block_coefficient=1.0),
        name="Rectangular barge",
    )


def wigley_hull(
    length_m: float = 100.0,
    breadth_m: float = 10.0,
    design_draft_m: float = 6.25,
    depth_m: float | None = None,
    station_count: int = 21,
    waterline_count: int = 13,
) -> HullGeometry:
    """Wigley form sampled on equally spaced stations and waterlines."""
    stations, waterlines = _axes(length_m, depth_m or design_draft_m, station_count, waterline_count)
    xi = (stations - length_m / 2.0) / (length_m / 2.0)
    zeta = np.clip((design_draft_m - waterlines) / design_draft_m, 0.0, None)
    offsets = breadth_m / 2.0 * np.outer(1.0 - xi ** 2, 1.0 - zeta ** 2)
    return HullGeometry(
        stations_m=stations,
        waterlines_m=waterlines,
        half_breadths_m=np.maximum(offsets, 0.0),
        particulars=PrincipalParticulars(length_m, breadth_m, design_draft_m, block_coefficient=4.0 / 9.0),
        name="Wigley hull",
    )


def barge_reference(
    length_m: float, breadth_m: float, draft_m: float, water_density_t_m3: float = RHO_SEA
) -> ReferenceHydrostatics:
    volume = length_m * breadth_m * draft_m
    i_t = length_m * breadth_m ** 3 / 12.0
    i_l = breadth_m * length_m ** 3 / 12.0
    return ReferenceHydrostatics(
        draft_m=draft_m,
        volume_m3=volume,
        displacement_t=volume * water_density_t_m3,
        lcb_m=0.0,
        tcb_m=0.0,
        kb_m=draft_m / 2.0,
        awp_m2=length_m * breadth_m,
        i_t_m4=i_t,
        i_l_m4=i_l,
        bm_t_m=i_t / volume,
        bm_l_m=i_l / volume,
        cb=1.0,
        cp=1.0,
        cm=1.0,
        cwp=1.0,
    )


def wigley_reference(
    length_m: float, breadth_m: float, draft_m: float, water_density_t_m3: float = RHO_SEA
) -> ReferenceHydrostatics:
    """Wigley form at its design draft."""
    volume = 4.0 / 9.0 * length_m * breadth_m * draft_m
    i_t = 4.0 * breadth_m ** 3 * length_m / 105.0
    i_l = breadth_m * length_m ** 3 / 30.0
    return ReferenceHydrostatics(
        draft_m=draft_m,
        volume_m3=volume,
        displacement_t=volume * water_density_t_m3,
        lcb_m=0.0,
        tcb_m=0.0,
        kb_m=5.0 * draft_m / 8.0,
        awp_m2=2.0 / 3.0 * length_m * breadth_m,
        i_t_m4=i_t,
        i_l_m4=i_l,
        bm_t_m=i_t / volume,
        bm_l_m=i_l / volume,
        cb=4.0 / 9.0,
        cp=2.0 / 3.0,
        cm=2.0 / 3.0,
        cwp=2.0 / 3.0,
    )


def wigley_volume_and_kb(length_m: float, breadth_m: float, design_draft_m: float, draft_m: float):
    """
    Exact (volume, KB) of the Wigley form at any draft up to the design draft.

    With y = B/2 (1 - xi^2)(2Tz - z^2)/T^2 the section integrals are
    d^2 (T - d/3) / T^2 for area and d^3 (2T/3 - d/4) / T^2 for moment.
    """
    if not 0.0 < draft_m <= design_draft_m:
        raise ValueError("Draft must lie in (0, design draft] for the Wigley closed form")
    t, d = design_draft_m, draft_m
    area = d * d * (t - d / 3.0) / (t * t)
    moment = d ** 3 * (2.0 * t / 3.0 - d / 4.0) / (t * t)
    return 2.0 / 3.0 * length_m * breadth_m * area, moment / area
