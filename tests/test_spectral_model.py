"""
Spectral Model Tests

Kubelka-Munk conversions and curve colorimetry.
"""

import numpy as np
import pytest

from pigment_mixer.core.spectral_model import (
    N_BANDS,
    T_MATRIX,
    WAVELENGTHS,
    WHITE_POINT_XYZ,
    as_curve,
    curve_to_hex,
    curve_to_lab,
    delta_e,
    ks_to_reflectance,
    ks_to_reflectance_derivative,
    lab_to_target_xyz,
    reflectance_to_ks,
)


class TestKubelkaMunk:
    def test_roundtrip(self):
        """K/S → reflectance recovers the reflectance within 1e-9"""
        r = np.concatenate([np.logspace(-5, 0, 200), np.linspace(0.01, 1.0, 200)])
        np.testing.assert_allclose(ks_to_reflectance(reflectance_to_ks(r)), r, atol=1e-9, rtol=0)

    def test_known_values(self):
        assert reflectance_to_ks(0.5) == pytest.approx(0.25)
        assert reflectance_to_ks(1.0) == pytest.approx(0.0)
        assert ks_to_reflectance(0.25) == pytest.approx(0.5)

    def test_zero_reflectance_is_floored(self):
        ks = reflectance_to_ks(np.array([0.0, -0.1]))
        assert np.all(np.isfinite(ks))
        assert ks[0] == pytest.approx((1 - 1e-6) ** 2 / 2e-6)

    def test_inverse_stays_in_unit_interval(self):
        r = ks_to_reflectance(np.array([-1.0, 0.0, 1e-12, 1.0, 1e6, 1e12]))
        assert np.all((r >= 0.0) & (r <= 1.0))
        assert r[0] == 1.0

    def test_derivative_matches_finite_difference(self):
        ks = np.array([0.01, 0.3, 2.0, 50.0])
        h = 1e-7 * ks
        numeric = (ks_to_reflectance(ks + h) - ks_to_reflectance(ks - h)) / (2 * h)
        np.testing.assert_allclose(ks_to_reflectance_derivative(ks), numeric, rtol=1e-5)


class TestColorimetry:
    def test_grid(self):
        assert N_BANDS == 31
        assert WAVELENGTHS[0] == 400 and WAVELENGTHS[-1] == 700
        assert T_MATRIX.shape == (3, 31)

    def test_perfect_reflector_is_white(self):
        assert WHITE_POINT_XYZ[1] == pytest.approx(1.0)
        np.testing.assert_allclose(curve_to_lab(np.ones(31)), [100.0, 0.0, 0.0], atol=1e-9)

    def test_flat_curve_is_neutral(self):
        L, a, b = curve_to_lab(np.full(31, 0.5))
        assert 0 < L < 100
        assert a == pytest.approx(0.0, abs=1e-9)
        assert b == pytest.approx(0.0, abs=1e-9)

    def test_batched_curves(self):
        curves = np.stack([np.full(31, 0.2), np.full(31, 0.8)])
        labs = curve_to_lab(curves)
        assert labs.shape == (2, 3)
        assert labs[0, 0] < labs[1, 0]

    def test_lab_to_target_xyz_inverts_lab(self):
        curve = np.linspace(0.1, 0.7, 31)
        xyz = curve @ T_MATRIX.T
        np.testing.assert_allclose(lab_to_target_xyz(curve_to_lab(curve)), xyz, atol=1e-12)

    def test_red_curve_has_positive_a(self):
        red = np.where(np.arange(31) > 20, 0.8, 0.05)
        assert curve_to_lab(red)[1] > 20

    def test_delta_e_is_euclidean(self):
        assert delta_e((50, 0, 0), (50, 3, 4)) == pytest.approx(5.0)

    def test_curve_to_hex(self):
        assert curve_to_hex(np.ones(31)) == "#ffffff"
        assert curve_to_hex(np.zeros(31)) == "#000000"


class TestAsCurve:
    def test_clamps_and_freezes(self):
        curve = as_curve([-0.2] + [0.5] * 29 + [1.3])
        assert curve[0] == 0.0 and curve[-1] == 1.0
        assert not curve.flags.writeable

    def test_wrong_length(self):
        with pytest.raises(ValueError):
            as_curve([0.5] * 30)

    def test_non_finite(self):
        with pytest.raises(ValueError):
            as_curve([np.nan] + [0.5] * 30)
