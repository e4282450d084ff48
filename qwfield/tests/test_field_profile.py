# -*- coding: utf-8 -*-
"""
Field extraction on known potentials and the sampled-profile mesh contract.
"""
import numpy as np
import pytest

from qwfield.geometry.profile import SampledProfile, check_same_length, uniform_spacing
from qwfield.postprocess.field import extract_field
from qwfield.utils.errors import ProfileShapeError


def test_linear_potential_gives_constant_field():
    z = np.linspace(0.0, 50e-9, 51)
    a, b = 3.0e6, -0.2
    F = extract_field(a * z + b, z[1] - z[0])
    np.testing.assert_allclose(F[1:-1], -a, rtol=1e-9)
    assert F[0] == 0.0 and F[-1] == 0.0


def test_field_scale_convention():
    z = np.linspace(0.0, 1e-8, 11)
    q = 1.602176634e-19
    U = -q * (2e6 * z)  # carrier energy for phi = 2e6 * z
    F = extract_field(U, z[1] - z[0], scale=1.0 / q)
    np.testing.assert_allclose(F[1:-1], -2e6, rtol=1e-9)


def test_quadratic_potential_exact_inside():
    z = np.linspace(-1e-8, 1e-8, 41)
    F = extract_field(z**2, z[1] - z[0])
    np.testing.assert_allclose(F[1:-1], -2 * z[1:-1], rtol=0, atol=1e-12)


def test_field_needs_three_points():
    with pytest.raises(ProfileShapeError):
        extract_field(np.array([0.0, 1.0]), 1.0)


def test_profile_freezes_and_aligns():
    z = np.arange(10) * 1e-9
    n = np.linspace(0, 1, 10)
    prof = SampledProfile.from_arrays(z, n=n)
    assert prof.N == 10
    assert prof.dz == pytest.approx(1e-9, rel=1e-12, abs=0)
    assert prof.span == pytest.approx(9e-9, rel=1e-12, abs=0)
    n[0] = 99.0
    assert prof["n"][0] == 0.0
    with pytest.raises(ValueError):
        prof["n"][1] = 5.0
    np.testing.assert_array_equal(prof.as_matrix()[:, 1], prof["n"])


def test_with_column_returns_new_profile():
    z = np.arange(5) * 1e-9
    prof = SampledProfile.from_arrays(z, n=np.ones(5))
    other = prof.with_column("D", np.full(5, 1e-20))
    assert "D" in other and "D" not in prof
    with pytest.raises(KeyError):
        prof["D"]


@pytest.mark.parametrize(
    "z",
    [
        np.array([0.0, 1.0]),
        np.array([0.0, 1.0, 1.0, 2.0]),
        np.array([0.0, 1.0, 2.5, 3.0]),
        np.array([2.0, 1.0, 0.0]),
    ],
)
def test_bad_meshes_rejected(z):
    with pytest.raises(ProfileShapeError):
        uniform_spacing(z)


def test_spacing_tolerates_text_round_trip():
    z = np.array([float(f"{v:.10e}") for v in np.arange(200) * 1e-9 / 3.0])
    assert uniform_spacing(z) == pytest.approx(1e-9 / 3.0, rel=1e-8, abs=0)


def test_column_length_mismatch():
    with pytest.raises(ProfileShapeError, match="n has 4"):
        SampledProfile.from_arrays(np.arange(5) * 1.0, n=np.ones(4))
    assert check_same_length(a=np.ones(3), b=np.zeros(3)) == 3
