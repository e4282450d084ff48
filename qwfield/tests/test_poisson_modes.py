# qwfield/tests/test_poisson_modes.py
"""Boundary modes and post-processing of the 1D Poisson solver.
Run with:  pytest -q
"""
from __future__ import annotations

import numpy as np
import pytest

from qwfield.geometry.profile import SampledProfile
from qwfield.physics.poisson import (
    BoundaryMode,
    PoissonSetup,
    solve_poisson_1d,
    solve_poisson_profile,
)
from qwfield.solver.subsolvers.poisson_linear import _solve_tridiagonal, residual
from qwfield.utils.errors import ConfigurationError, ProfileShapeError, SingularSystemError

Q = 1.602176634e-19
EPS0 = 8.8541878128e-12


def _mk_mesh(N: int = 201, dz: float = 1e-9):
    z = np.arange(N) * dz
    eps = np.full(N, 12.9 * EPS0)
    return z, eps


def _mk_sheet(N: int = 201, dz: float = 1e-9, density: float = 1e24):
    z, eps = _mk_mesh(N, dz)
    rho = np.zeros(N)
    rho[N // 2] = Q * density
    return z, eps, rho


def test_zero_field_uncharged_is_flat():
    z, eps = _mk_mesh()
    out = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=np.zeros_like(z)))
    assert out.mode is BoundaryMode.ZERO_FIELD
    assert np.ptp(out.phi) == 0.0
    assert np.all(out.field == 0.0)


def test_dirichlet_uncharged_is_linear():
    z, eps = _mk_mesh(N=101)
    L = z[-1] - z[0]
    field = 2.5e6  # V/m
    out = solve_poisson_1d(
        PoissonSetup(z=z, eps=eps, rho=np.zeros_like(z), mode="dirichlet", field_Vm=field)
    )
    V = field * L
    assert out.V_drop == pytest.approx(V)
    assert out.phi[-1] - out.phi[0] == pytest.approx(V, rel=1e-12)
    np.testing.assert_allclose(out.phi, V * (z - z[0]) / L, rtol=0, atol=1e-12 * V)


def test_point_charge_symmetric_potential_antisymmetric_field():
    z, eps, rho = _mk_sheet()
    out = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, mode=BoundaryMode.ZERO_FIELD))
    phi, F = out.phi, out.field
    c = z.size // 2
    k = np.arange(1, c + 1)
    np.testing.assert_allclose(phi[c - k], phi[c + k], rtol=0, atol=1e-9 * np.max(np.abs(phi)))
    np.testing.assert_allclose(F[c - k], -F[c + k], rtol=0, atol=1e-9 * np.max(np.abs(F)))
    # positive sheet: potential peaks on it, field points away from it
    assert np.argmax(phi) == c
    assert F[c - 5] < 0.0 < F[c + 5]


def test_zero_field_balances_end_fields():
    z, eps, rho = _mk_sheet()
    out = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    dz = z[1] - z[0]
    sheet = rho.sum() * dz
    # |E| on each side of a sheet in a symmetric closure is σ / (2ε)
    assert abs(out.field[1]) == pytest.approx(sheet / (2 * eps[0]), rel=1e-9)
    assert out.field[1] == pytest.approx(-out.field[-2], rel=1e-9)


def test_neutral_dipole_has_zero_field_at_both_ends():
    z, eps = _mk_mesh(N=101)
    rho = np.zeros_like(z)
    rho[30], rho[70] = Q * 1e24, -Q * 1e24
    out = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    scale = np.max(np.abs(out.field))
    assert abs(out.field[1]) < 1e-9 * scale
    assert abs(out.field[-2]) < 1e-9 * scale


def test_solution_satisfies_discrete_system():
    z, eps, rho = _mk_sheet(N=51)
    eps = eps * np.linspace(1.0, 1.2, z.size)
    out = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    r = residual(out.phi, eps, rho, z[1] - z[0], "zero-field")
    assert np.max(np.abs(r)) < 1e-6 * np.max(np.abs(rho))


def test_mixed_without_field_equals_zero_field():
    z, eps, rho = _mk_sheet()
    zf = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    mx = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, mode="mixed", centred=True))
    np.testing.assert_array_equal(mx.phi, zf.phi)
    assert mx.V_drop is None


def test_mixed_with_field_fixes_total_drop():
    z, eps, rho = _mk_sheet()
    rho[:60] += -Q * 5e22  # make the space-charge drop asymmetric
    field = 1e6
    L = z[-1] - z[0]
    zf = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    mx = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, mode="mixed", field_Vm=field))
    assert mx.phi[-1] - mx.phi[0] == pytest.approx(field * L, rel=1e-9)
    assert mx.V_drop == pytest.approx(field * L - zf.intrinsic_drop, rel=1e-12)
    # superposition: the difference to the zero-field solution is linear
    diff = mx.phi - zf.phi
    np.testing.assert_allclose(diff, mx.V_drop * (z - z[0]) / L, rtol=0, atol=1e-9 * abs(mx.V_drop))

    centred = solve_poisson_1d(
        PoissonSetup(z=z, eps=eps, rho=rho, mode="mixed", field_Vm=field, centred=True)
    )
    np.testing.assert_allclose(centred.phi, mx.phi - 0.5 * mx.V_drop)


def test_dirichlet_without_field_degrades_to_zero_field():
    z, eps, rho = _mk_sheet()
    zf = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    dr = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, mode="dirichlet"))
    np.testing.assert_array_equal(dr.phi, zf.phi)
    assert dr.V_drop is None


def test_centring_zero_field_pivots_on_midpoint():
    z, eps, rho = _mk_sheet()
    out = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, centred=True))
    assert out.phi[z.size // 2] == pytest.approx(0.0, abs=1e-15)


def test_centring_dirichlet_splits_drop():
    z, eps = _mk_mesh(N=101)
    field = 1e6
    V = field * (z[-1] - z[0])
    out = solve_poisson_1d(
        PoissonSetup(z=z, eps=eps, rho=np.zeros_like(z), mode="dirichlet", field_Vm=field, centred=True)
    )
    assert out.phi[0] == pytest.approx(-V / 2)
    assert out.phi[-1] == pytest.approx(V / 2)


def test_inversion_and_offset():
    z, eps, rho = _mk_sheet()
    z = z - 20e-9  # origin inside the structure, at node 20
    raw = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho))
    inv = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, carrier_energy=True))
    np.testing.assert_array_equal(inv.phi, -raw.phi)
    np.testing.assert_array_equal(inv.field, raw.field)

    off = solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=rho, carrier_energy=True, offset_V=0.125))
    assert off.phi[20] == pytest.approx(0.125)
    np.testing.assert_allclose(np.diff(off.phi), np.diff(inv.phi), rtol=0, atol=1e-15)


def test_length_mismatch_reports_both_lengths():
    z, eps = _mk_mesh(N=50)
    with pytest.raises(ProfileShapeError, match="50.*49"):
        solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=np.zeros(49)))


def test_unknown_mode():
    z, eps = _mk_mesh(N=11)
    with pytest.raises(ConfigurationError):
        solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=np.zeros(11), mode="periodic"))
    assert BoundaryMode.parse("ZERO_FIELD") is BoundaryMode.ZERO_FIELD


def test_profile_wrapper_adds_columns():
    z, eps, rho = _mk_sheet(N=31)
    prof = SampledProfile.from_arrays(z, eps=eps, rho=rho)
    out = solve_poisson_profile(prof, mode="mixed")
    assert {"phi", "field"} <= set(out.names)
    assert "phi" not in prof


@pytest.mark.parametrize("bad", [0.0, -1.0, np.nan])
def test_bad_permittivity_is_profile_error(bad):
    z, eps = _mk_mesh(N=21)
    eps[4] = bad
    with pytest.raises(ProfileShapeError, match="node 4"):
        solve_poisson_1d(PoissonSetup(z=z, eps=eps, rho=np.zeros_like(z)))


def test_zero_pivot_is_reported():
    n = 5
    with pytest.raises(SingularSystemError) as info:
        _solve_tridiagonal(np.zeros(n), np.zeros(n), np.zeros(n), np.ones(n))
    assert isinstance(info.value, ZeroDivisionError)
