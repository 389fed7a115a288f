"""Tests for hydrostatic and Bonjean curve generation."""

from __future__ import annotations

import numpy as np
import pytest

from hydrocore_app.config.settings import Settings
from hydrocore_app.services.hydrostatic_curves import draft_range, generate, generate_bonjean


class TestDraftRange:
    def test_inclusive_even_spacing(self):
        drafts = draft_range(1.0, 5.0, 5)
        assert drafts == pytest.approx([1.0, 2.0, 3.0, 4.0, 5.0])

    def test_two_steps(self):
        assert draft_range(2.0, 3.0, 2) == pytest.approx([2.0, 3.0])

    @pytest.mark.parametrize("lo, hi, steps", [(1.0, 5.0, 1), (5.0, 5.0, 4), (6.0, 5.0, 4)])
    def test_invalid(self, lo, hi, steps):
        with pytest.raises(ValueError):
            draft_range(lo, hi, steps)


class TestGenerate:
    def test_all_drafts_succeed_in_order(self, box_hull):
        curve = generate(box_hull, (1.0, 19.0), 10)
        assert len(curve) == 10
        assert not curve.failures()
        assert list(curve.drafts_m) == pytest.approx(list(np.linspace(1.0, 19.0, 10)))
        drafts, volumes = curve.series("volume_m3")
        assert volumes == pytest.approx(100.0 * 20.0 * drafts)
        assert np.all(np.diff(volumes) > 0)

    def test_degenerate_draft_is_isolated(self, box_hull):
        curve = generate(box_hull, (0.0, 10.0), 6)
        failures = curve.failures()
        assert len(failures) == 1
        assert failures[0].draft_m == 0.0
        assert failures[0].failure.kind == "DegenerateGeometryError"
        assert len(curve.successes()) == 5

    def test_out_of_range_drafts_are_isolated(self, box_hull):
        curve = generate(box_hull, (10.0, 28.0), 4)
        kinds = [p.failure.kind if p.failure else None for p in curve.points]
        assert kinds == [None, None, "OutOfRangeError", "OutOfRangeError"]

    def test_single_worker_matches_pool(self, wigley):
        pooled = generate(wigley, (1.0, 6.0), 8)
        serial = generate(wigley, (1.0, 6.0), 8, max_workers=1)
        for a, b in zip(pooled.points, serial.points):
            assert a.result.volume_m3 == b.result.volume_m3
            assert a.result.kb_m == b.result.kb_m

    def test_trim_and_vcg_are_passed_through(self, box_hull):
        curve = generate(box_hull, (4.0, 8.0), 3, trim_rad=0.005, vcg_m=4.0)
        assert curve.trim_rad == 0.005
        for p in curve.successes():
            assert p.result.trim_rad == 0.005
            assert p.result.gm_t_m == pytest.approx(p.result.km_t_m - 4.0)

    def test_settings_density(self, box_hull):
        curve = generate(box_hull, (2.0, 4.0), 3, settings=Settings(water_density_t_m3=1.0))
        assert curve.points[0].result.displacement_t == pytest.approx(4000.0)


class TestCurveLookups:
    def test_interpolate_and_inverse(self, box_hull):
        curve = generate(box_hull, (2.0, 10.0), 5)
        assert curve.interpolate("volume_m3", 5.0) == pytest.approx(10000.0)
        assert curve.draft_for("volume_m3", 13000.0) == pytest.approx(6.5)

    def test_no_extrapolation(self, box_hull):
        curve = generate(box_hull, (2.0, 10.0), 5)
        with pytest.raises(ValueError):
            curve.interpolate("volume_m3", 12.0)
        with pytest.raises(ValueError):
            curve.draft_for("volume_m3", 50000.0)

    def test_inverse_requires_increasing_series(self, box_hull):
        curve = generate(box_hull, (2.0, 10.0), 5)
        with pytest.raises(ValueError):
            curve.draft_for("bm_t_m", 5.0)

    def test_dataframe(self, box_hull):
        curve = generate(box_hull, (0.0, 10.0), 6)
        df = curve.to_dataframe()
        assert len(df) == 6
        assert {"draft_m", "volume_m3", "error_kind", "error_message"} <= set(df.columns)
        assert df.loc[0, "error_kind"] == "DegenerateGeometryError"
        assert df.loc[1, "volume_m3"] == pytest.approx(4000.0)


class TestBonjean:
    def test_box_sectional_areas(self, box_hull):
        curves = generate_bonjean(box_hull, (1.0, 9.0), 5)
        assert len(curves) == box_hull.station_count
        for c in curves:
            drafts, areas = c.areas()
            assert areas == pytest.approx(20.0 * drafts)
        assert curves[3].station_x_m == pytest.approx(30.0)

    def test_failures_marked_per_draft(self, box_hull):
        curves = generate_bonjean(box_hull, (15.0, 25.0), 3)
        for c in curves:
            assert c.points[0].area_m2 == pytest.approx(300.0)
            assert c.points[2].area_m2 is None
            assert c.points[2].failure.kind == "OutOfRangeError"

    def test_wigley_midship_area(self, wigley):
        curves = generate_bonjean(wigley, (3.125, 6.25), 2)
        drafts, areas = curves[10].areas()
        assert areas[-1] == pytest.approx(2.0 / 3.0 * 10.0 * 6.25, rel=1e-9)
        assert curves[0].areas()[1] == pytest.approx([0.0, 0.0], abs=1e-12)
