"""Tests for the hydrostatic calculator."""

from __future__ import annotations

import math

import numpy as np
import pytest

from hydrocore_app.models import HullGeometry, PrincipalParticulars
from hydrocore_app.services.errors import DegenerateGeometryError, OutOfRangeError
from hydrocore_app.services.hull_forms import barge_reference, wigley_reference, wigley_volume_and_kb
from hydrocore_app.services.hydrostatic_curves import generate
from hydrocore_app.services.hydrostatics import (
    EvaluationCache,
    compute,
    local_drafts,
    section_properties,
)
from hydrocore_app.services.integration import TrapezoidalIntegrator

L, B = 100.0, 20.0


def _flared_hull() -> HullGeometry:
    """Wall-sided up to 1.5 m, then flaring out 1 m per metre; waterlines every 0.5 m."""
    waterlines = np.arange(0.0, 3.01, 0.5)
    row = 1.0 + np.clip(waterlines - 1.5, 0.0, None)
    return HullGeometry.from_offsets(
        [0.0, 5.0, 10.0],
        waterlines,
        [row] * 3,
        PrincipalParticulars(lbp_m=10.0, breadth_m=6.0, design_draft_m=2.0),
    )


def _drafts_around_waterlines(waterlines, lo: float, hi: float) -> np.ndarray:
    near = [z + d for z in waterlines for d in (-1e-7, 0.0, 1e-7) if lo <= z + d <= hi]
    return np.unique(np.concatenate((np.linspace(lo, hi, 60), near)))


class TestBoxBarge:
    @pytest.mark.parametrize("draft", [6.0, 6.5, 13.25])
    def test_closed_forms(self, box_hull, draft):
        r = compute(box_hull, draft)
        ref = barge_reference(L, B, draft)
        assert r.volume_m3 == pytest.approx(ref.volume_m3, rel=1e-9)
        assert r.kb_m == pytest.approx(draft / 2.0, rel=1e-9)
        assert r.bm_t_m == pytest.approx(B ** 2 / (12.0 * draft), rel=1e-9)
        assert r.bm_l_m == pytest.approx(L ** 2 / (12.0 * draft), rel=1e-9)
        assert r.awp_m2 == pytest.approx(L * B, rel=1e-9)
        assert r.i_t_m4 == pytest.approx(ref.i_t_m4, rel=1e-9)
        assert r.i_l_m4 == pytest.approx(ref.i_l_m4, rel=1e-9)

    def test_coefficients_are_one(self, box_hull):
        r = compute(box_hull, 6.0)
        for value in (r.cb, r.cm, r.cp, r.cwp):
            assert value == pytest.approx(1.0, rel=1e-9)

    def test_centres_on_midships_and_centreline(self, box_hull):
        r = compute(box_hull, 6.0)
        assert r.lcb_m == pytest.approx(0.0, abs=1e-9)
        assert r.lcf_m == pytest.approx(0.0, abs=1e-9)
        assert r.tcb_m == 0.0

    def test_tpc_mtc_and_displacement(self, box_hull):
        r = compute(box_hull, 6.0)
        assert r.displacement_t == pytest.approx(12000.0 * 1.025)
        assert r.tpc_t_per_cm == pytest.approx(L * B * 1.025 / 100.0)
        assert r.mtc_tm_per_cm == pytest.approx(r.displacement_t * r.bm_l_m / (100.0 * L))
        assert r.midship_area_m2 == pytest.approx(B * 6.0)

    def test_water_density_override(self, box_hull):
        r = compute(box_hull, 6.0, water_density_t_m3=1.0)
        assert r.displacement_t == pytest.approx(12000.0)

    def test_gm_only_with_vcg(self, box_hull):
        assert compute(box_hull, 6.0).gm_t_m is None
        r = compute(box_hull, 6.0, vcg_m=5.0)
        assert r.gm_t_m == pytest.approx(3.0 + B ** 2 / 72.0 - 5.0)
        assert r.gm_l_m == pytest.approx(r.km_l_m - 5.0)

    def test_trim_keeps_volume_and_shifts_lcb(self, box_hull):
        theta = 0.01
        r = compute(box_hull, 6.0, trim_rad=theta)
        assert r.volume_m3 == pytest.approx(L * B * 6.0, rel=1e-9)
        # bow down moves the centre of buoyancy forward
        assert r.lcb_m == pytest.approx(math.tan(theta) * L ** 2 / (12.0 * 6.0), rel=1e-9)

    def test_heel_wall_sided_properties(self, box_hull):
        phi = math.radians(5.0)
        r = compute(box_hull, 6.0, heel_rad=phi)
        tan_phi = math.tan(phi)
        assert r.volume_m3 == pytest.approx(L * B * 6.0, rel=1e-9)
        assert r.tcb_m == pytest.approx(B ** 2 * tan_phi / (12.0 * 6.0), rel=1e-9)
        assert r.kb_m == pytest.approx(3.0 + B ** 2 * tan_phi ** 2 / (24.0 * 6.0), rel=1e-9)
        assert r.i_t_m4 == pytest.approx(L * (B / math.cos(phi)) ** 3 / 12.0, rel=1e-9)

    def test_heel_symmetry(self, box_hull):
        phi = math.radians(7.0)
        stbd = compute(box_hull, 6.0, heel_rad=phi)
        port = compute(box_hull, 6.0, heel_rad=-phi)
        assert stbd.volume_m3 == pytest.approx(port.volume_m3, rel=1e-9)
        assert stbd.tcb_m == pytest.approx(-port.tcb_m, rel=1e-9)
        assert stbd.kb_m == pytest.approx(port.kb_m, rel=1e-9)

    def test_volume_monotonic_in_draft(self, box_hull):
        volumes = [compute(box_hull, d).volume_m3 for d in np.linspace(0.5, 19.5, 12)]
        assert all(b > a for a, b in zip(volumes, volumes[1:]))

    def test_integrator_strategy(self, box_hull):
        r = compute(box_hull, 6.5, integrator=TrapezoidalIntegrator())
        assert r.volume_m3 == pytest.approx(L * B * 6.5, rel=1e-9)

    def test_pchip_matches_linear_on_constant_offsets(self, box_hull):
        lin = compute(box_hull, 6.3)
        pchip = compute(box_hull, 6.3, interpolation="pchip")
        assert pchip.volume_m3 == pytest.approx(lin.volume_m3, rel=1e-12)


class TestRangeAndErrors:
    def test_draft_above_highest_waterline(self, box_hull):
        with pytest.raises(OutOfRangeError):
            compute(box_hull, 20.5)

    def test_draft_below_lowest_waterline(self, box_hull):
        with pytest.raises(OutOfRangeError):
            compute(box_hull, -0.5)

    def test_trim_lifts_bow_out_of_range(self, box_hull):
        with pytest.raises(OutOfRangeError) as info:
            compute(box_hull, 19.8, trim_rad=0.01)
        assert info.value.station_index is not None
        assert info.value.local_draft_m > 20.0

    def test_highest_waterline_is_in_range(self, box_hull):
        r = compute(box_hull, 20.0)
        assert r.volume_m3 == pytest.approx(L * B * 20.0, rel=1e-9)

    def test_heel_immerses_above_offsets(self, box_hull):
        # side rises 10 * tan(30 deg) = 5.77 m above the centreline draft
        with pytest.raises(OutOfRangeError):
            compute(box_hull, 16.0, heel_rad=math.radians(30.0))

    def test_zero_draft_is_degenerate(self, box_hull):
        with pytest.raises(DegenerateGeometryError):
            compute(box_hull, 0.0)

    def test_unknown_interpolation(self, box_hull):
        with pytest.raises(ValueError):
            compute(box_hull, 6.0, interpolation="cubic")

    def test_right_angle_heel_rejected(self, box_hull):
        with pytest.raises(ValueError):
            compute(box_hull, 6.0, heel_rad=math.pi / 2)

    def test_non_finite_draft_rejected(self, box_hull):
        with pytest.raises(ValueError):
            compute(box_hull, float("nan"))


class TestWigley:
    def test_benchmark_at_design_draft(self, wigley):
        ref = wigley_reference(100.0, 10.0, 6.25)
        r = compute(wigley, 6.25)
        assert r.volume_m3 == pytest.approx(ref.volume_m3, rel=1e-6)
        assert r.cb == pytest.approx(4.0 / 9.0, rel=1e-6)
        assert r.cm == pytest.approx(2.0 / 3.0, rel=1e-6)
        assert r.cwp == pytest.approx(2.0 / 3.0, rel=1e-6)
        assert r.cp == pytest.approx(2.0 / 3.0, rel=1e-6)
        assert r.kb_m == pytest.approx(5.0 * 6.25 / 8.0, rel=1e-6)
        assert r.bm_t_m == pytest.approx(3.0 * 10.0 ** 2 / (35.0 * 6.25), rel=1e-3)
        assert r.bm_l_m == pytest.approx(ref.bm_l_m, rel=1e-3)
        assert r.lcb_m == pytest.approx(0.0, abs=1e-9)

    def test_wall_sided_topsides(self, deep_wigley):
        r = compute(deep_wigley, 8.0)
        expected = 4.0 / 9.0 * 100.0 * 10.0 * 6.25 + 2.0 / 3.0 * 100.0 * 10.0 * 1.75
        assert r.volume_m3 == pytest.approx(expected, rel=1e-9)
        assert r.awp_m2 == pytest.approx(2.0 / 3.0 * 100.0 * 10.0, rel=1e-9)

    def test_heel_symmetry(self, deep_wigley):
        phi = math.radians(10.0)
        stbd = compute(deep_wigley, 6.25, heel_rad=phi)
        port = compute(deep_wigley, 6.25, heel_rad=-phi)
        assert stbd.tcb_m > 0
        assert stbd.tcb_m == pytest.approx(-port.tcb_m, rel=1e-9)
        assert stbd.volume_m3 == pytest.approx(port.volume_m3, rel=1e-9)

    def test_pchip_close_to_linear(self, wigley):
        lin = compute(wigley, 5.0)
        pchip = compute(wigley, 5.0, interpolation="pchip")
        assert pchip.volume_m3 == pytest.approx(lin.volume_m3, rel=1e-2)


class TestSectionProperties:
    def test_box_sections(self, box_hull):
        sections = section_properties(box_hull, 6.0)
        assert len(sections) == box_hull.station_count
        for s in sections:
            assert s.area_m2 == pytest.approx(B * 6.0)
            assert s.centroid_z_m == pytest.approx(3.0)
            assert s.centroid_y_m == 0.0
            assert s.chord_m == pytest.approx(B)

    def test_local_drafts_follow_trim(self, box_hull):
        drafts = local_drafts(box_hull, 6.0, 0.01)
        assert drafts[0] == pytest.approx(6.0 - math.tan(0.01) * 50.0)
        assert drafts[-1] == pytest.approx(6.0 + math.tan(0.01) * 50.0)

    def test_wigley_end_sections_are_empty(self, wigley):
        sections = section_properties(wigley, 6.25)
        assert sections[0].area_m2 == pytest.approx(0.0, abs=1e-12)
        assert sections[10].area_m2 == pytest.approx(2.0 / 3.0 * 10.0 * 6.25, rel=1e-9)


class TestEvaluationCache:
    def test_repeated_evaluation_hits_cache(self, box_hull):
        cache = EvaluationCache(box_hull, vcg_m=5.0)
        first = cache.evaluate(6.0)
        second = cache.evaluate(6.0)
        assert first is second
        assert cache.hits == 1
        assert cache.misses == 1
        assert len(cache) == 1
        assert first.gm_t_m is not None

    def test_errors_are_not_cached(self, box_hull):
        cache = EvaluationCache(box_hull)
        with pytest.raises(OutOfRangeError):
            cache.evaluate(25.0)
        assert len(cache) == 0


class TestDepthIntegration:
    def test_volume_continuous_just_above_waterline(self):
        hull = _flared_hull()
        at_level = compute(hull, 1.5).volume_m3
        above = compute(hull, 1.5 + 1e-6).volume_m3
        assert at_level == pytest.approx(30.0, rel=1e-12)
        assert above >= at_level
        assert above == pytest.approx(at_level, rel=1e-6)

    @pytest.mark.parametrize("interpolation", ["linear", "pchip"])
    def test_flared_volume_non_decreasing(self, interpolation):
        hull = _flared_hull()
        drafts = _drafts_around_waterlines(hull.waterlines_m, 0.1, 3.0)
        volumes = np.array([compute(hull, d, interpolation=interpolation).volume_m3 for d in drafts])
        assert np.all(np.diff(volumes) > -1e-9)

    def test_wigley_volume_non_decreasing(self, wigley):
        drafts = _drafts_around_waterlines(wigley.waterlines_m, 0.05, 6.25)
        volumes = np.array([compute(wigley, d).volume_m3 for d in drafts])
        assert np.all(np.diff(volumes) > -1e-9)

    def test_wigley_kb_continuous_at_waterlines(self, wigley):
        for z in wigley.waterlines_m[1:-1]:
            at_level = compute(wigley, float(z))
            above = compute(wigley, float(z) + 1e-7)
            assert above.volume_m3 == pytest.approx(at_level.volume_m3, rel=1e-5)
            assert above.kb_m == pytest.approx(at_level.kb_m, rel=1e-5)

    def test_wigley_curves_follow_closed_form(self, wigley):
        # first two waterline intervals carry the linear-offset error of a parabolic section
        spacing = 6.25 / 12.0
        curve = generate(wigley, (0.5, 6.25), 12)
        assert not curve.failures()
        for p in curve.points:
            volume, kb = wigley_volume_and_kb(100.0, 10.0, 6.25, p.draft_m)
            rel = 2e-2 if p.draft_m < 2.0 * spacing else 5e-3
            assert p.result.volume_m3 == pytest.approx(volume, rel=rel)
            assert p.result.kb_m == pytest.approx(kb, rel=rel)

    def test_closed_form_at_design_draft(self):
        volume, kb = wigley_volume_and_kb(100.0, 10.0, 6.25, 6.25)
        ref = wigley_reference(100.0, 10.0, 6.25)
        assert volume == pytest.approx(ref.volume_m3)
        assert kb == pytest.approx(ref.kb_m)
        with pytest.raises(ValueError):
            wigley_volume_and_kb(100.0, 10.0, 6.25, 7.0)
