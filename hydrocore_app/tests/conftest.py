"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure project root is on path when running tests
_project_root = Path(__file__).resolve().parents[2]
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from hydrocore_app.services.hull_forms import rectangular_barge, wigley_hull


@pytest.fixture
def box_hull():
    """100 x 20 m barge, 11 stations every 10 m, waterlines every 1 m up to 20 m."""
    return rectangular_barge(
        length_m=100.0,
        breadth_m=20.0,
        design_draft_m=6.0,
        depth_m=20.0,
        station_count=11,
        waterline_count=21,
    )


@pytest.fixture
def wigley():
    """Wigley form, L=100 m, B=10 m, T=6.25 m; offsets up to the design draft."""
    return wigley_hull(length_m=100.0, breadth_m=10.0, design_draft_m=6.25, station_count=21, waterline_count=13)


@pytest.fixture
def deep_wigley():
    """Wigley form with wall-sided topsides up to twice the design draft (T on a waterline)."""
    return wigley_hull(
        length_m=100.0,
        breadth_m=10.0,
        design_draft_m=6.25,
        depth_m=12.5,
        station_count=21,
        waterline_count=25,
    )
