"""Tests for engine.solar -- single-diode solver and I-V curve generation."""

from __future__ import annotations

import math

import numpy as np
import pytest

from engine.solar.iv_curve import (
    CURVE_POINTS,
    estimate_voc,
    generate_iv_curve,
    nearest_point,
)
from engine.solar.single_diode import ModuleParameters, solve_current, thermal_voltage


def _random_module(rng: np.random.Generator) -> ModuleParameters:
    return ModuleParameters(
        cell_count=int(rng.integers(30, 73)),
        IL_stc=float(rng.uniform(1.0, 10.0)),
        I0_stc=float(10 ** rng.uniform(-10.0, -7.0)),
        Rs=float(rng.uniform(0.05, 0.5)),
        Rsh=float(rng.uniform(50.0, 1000.0)),
        n=float(rng.uniform(1.0, 1.5)),
    )


def _diode_voc(IL, I0, Rsh, nVt):
    """Zero-current voltage of the diode equation, by bisection."""
    lo, hi = 0.0, 200.0
    for _ in range(200):
        mid = 0.5 * (lo + hi)
        f = IL - I0 * (math.exp(mid / nVt) - 1.0) - mid / Rsh
        if f > 0:
            lo = mid
        else:
            hi = mid
    return 0.5 * (lo + hi)


# ======================================================================
# Single-diode solver
# ======================================================================


class TestSolveCurrent:
    """Tests for the Newton-Raphson current solver."""

    VT = 36 * thermal_voltage(25.0)

    def test_thermal_voltage_at_25c(self):
        assert thermal_voltage(25.0) == pytest.approx(0.025693, rel=1e-4)

    def test_short_circuit_close_to_photo_current(self):
        """At V=0 the current is IL less the small shunt/series loss."""
        i = solve_current(0.0, 5.5, 1e-9, 0.25, 200.0, 1.3, self.VT)
        assert i == pytest.approx(5.5, rel=0.01)
        assert i <= 5.5

    def test_zero_current_at_diode_voc(self):
        nVt = 1.3 * self.VT
        voc = _diode_voc(5.5, 1e-9, 200.0, nVt)
        assert 20.0 < voc < 35.0
        i = solve_current(voc, 5.5, 1e-9, 0.25, 200.0, 1.3, self.VT)
        assert i == pytest.approx(0.0, abs=1e-4)

    def test_beyond_voc_clamped_to_zero(self):
        """Reverse current is not modelled."""
        assert solve_current(40.0, 5.5, 1e-9, 0.25, 200.0, 1.3, self.VT) == 0.0

    def test_zero_photo_current(self):
        for v in (0.0, 5.0, 21.6):
            assert solve_current(v, 0.0, 1e-9, 0.25, 200.0, 1.3, self.VT) == 0.0

    def test_divergence_falls_back_to_zero(self):
        """A non-finite iterate resets the current to 0 instead of raising."""
        i = solve_current(float("nan"), 5.5, 1e-9, 0.25, 200.0, 1.3, self.VT)
        assert i == 0.0

    def test_finite_and_non_negative_over_random_parameters(self):
        rng = np.random.default_rng(42)
        for _ in range(50):
            p = _random_module(rng)
            temp = float(rng.uniform(-10.0, 75.0))
            vt = p.cell_count * thermal_voltage(temp)
            voc = estimate_voc(temp, p.cell_count)
            il = p.IL_stc * float(rng.uniform(0.0, 1.0))
            for v in np.linspace(0.0, voc, 17):
                i = solve_current(float(v), il, p.I0_stc, p.Rs, p.Rsh, p.n, vt)
                assert math.isfinite(i)
                assert i >= 0.0


# ======================================================================
# Module parameters
# ======================================================================


class TestModuleParameters:
    def test_defaults(self, default_module):
        assert default_module.cell_count == 36
        assert default_module.IL_stc == 5.5
        assert default_module.Rsh == 200.0

    @pytest.mark.parametrize(
        "kwargs",
        [{"cell_count": 0}, {"Rsh": 0.0}, {"n": 0.0}, {"Rs": -0.1}],
    )
    def test_invalid_parameters_rejected(self, kwargs):
        with pytest.raises(ValueError):
            ModuleParameters(**kwargs)


# ======================================================================
# Curve generation
# ======================================================================


class TestIVCurve:
    """Tests for generate_iv_curve()."""

    def test_stc_scenario(self, stc_curve):
        """1000 W/m^2, 25 degC: Voc estimate 36*0.6 V, IL = IL_stc."""
        assert stc_curve.voc == pytest.approx(21.6)
        assert stc_curve.il == pytest.approx(5.5)
        assert len(stc_curve) == CURVE_POINTS == 81

        mpp = stc_curve.mpp
        assert mpp.P > 0
        assert 0.0 < mpp.V <= stc_curve.voc

    def test_sweep_covers_zero_to_voc(self, stc_curve):
        assert stc_curve.voltage[0] == 0.0
        assert stc_curve.voltage[-1] == pytest.approx(stc_curve.voc)
        assert np.all(np.diff(stc_curve.voltage) > 0)
        np.testing.assert_allclose(stc_curve.power, stc_curve.voltage * stc_curve.current)

    def test_short_circuit_point(self, stc_curve):
        assert stc_curve.current[0] == pytest.approx(stc_curve.il, rel=0.01)
        assert stc_curve.power[0] == 0.0

    def test_current_non_increasing_over_random_parameters(self):
        rng = np.random.default_rng(7)
        for _ in range(40):
            params = _random_module(rng)
            curve = generate_iv_curve(
                float(rng.uniform(0.0, 1000.0)),
                float(rng.uniform(-10.0, 75.0)),
                params,
            )
            assert np.all(np.diff(curve.current) <= 1e-6)
            assert np.all(curve.current >= 0.0)
            assert np.all(np.isfinite(curve.current))

    def test_deterministic(self, default_module):
        a = generate_iv_curve(650.0, 41.0, default_module)
        b = generate_iv_curve(650.0, 41.0, default_module)
        assert np.array_equal(a.voltage, b.voltage)
        assert np.array_equal(a.current, b.current)
        assert np.array_equal(a.power, b.power)
        assert a.points == b.points

    def test_zero_irradiance(self, default_module):
        curve = generate_iv_curve(0.0, 25.0, default_module)
        assert curve.il == 0.0
        assert np.all(curve.current < 1e-9)
        assert curve.mpp.P < 1e-9

    def test_photo_current_scales_with_irradiance(self, default_module):
        half = generate_iv_curve(500.0, 25.0, default_module)
        full = generate_iv_curve(1000.0, 25.0, default_module)
        assert half.il == pytest.approx(full.il / 2)
        assert half.current[0] < full.current[0]

    def test_high_temperature_lowers_voc(self, default_module):
        cold = generate_iv_curve(1000.0, 0.0, default_module)
        hot = generate_iv_curve(1000.0, 60.0, default_module)
        assert hot.voc < cold.voc
        assert hot.voc == pytest.approx(36 * (0.6 - 0.002 * 35))

    def test_curve_is_read_only(self, stc_curve):
        with pytest.raises(ValueError):
            stc_curve.current[0] = 1.0

    def test_to_dict(self, stc_curve):
        data = stc_curve.to_dict()
        assert len(data["points"]) == 81
        assert set(data["points"][0]) == {"V", "I", "P"}
        assert data["voc"] == stc_curve.voc


class TestNearestPoint:
    def test_exact_sample(self, stc_curve):
        target = float(stc_curve.voltage[40])
        assert nearest_point(stc_curve, target).V == target

    def test_between_samples(self, stc_curve):
        step = stc_curve.voc / 80
        p = nearest_point(stc_curve, 10.3 * step)
        assert p.V == pytest.approx(10 * step)

    def test_tie_prefers_lower_voltage(self, stc_curve):
        midpoint = float(stc_curve.voltage[1]) / 2
        assert nearest_point(stc_curve, midpoint).V == 0.0

    def test_out_of_range_targets(self, stc_curve):
        assert nearest_point(stc_curve, -5.0).V == 0.0
        assert nearest_point(stc_curve, 100.0).V == pytest.approx(stc_curve.voc)
