# qwfield/tests/test_diffusion_stepper.py
"""Explicit diffusion stepper: boundaries, stability guard, conservation.
Run with:  pytest -q
"""
from __future__ import annotations

import numpy as np
import pytest

from qwfield.physics.diffusivity import Constant
from qwfield.solver.time_integration import (
    ExplicitEuler,
    check_stability,
    integrate,
    stability_limit,
    step,
)
from qwfield.utils.errors import ConfigurationError, ProfileShapeError, StabilityError


def _mk_spike(N: int = 200, dz: float = 10e-10, width_cells: float = 3.0):
    z = np.arange(N) * dz
    z_c = z[N // 2]
    n = np.exp(-0.5 * ((z - z_c) / (width_cells * dz)) ** 2)
    return z, n


def test_boundary_cells_copy_neighbours():
    rng = np.random.default_rng(1)
    n = rng.random(50)
    D = 1e-20 * (1.0 + rng.random(50))
    out = step(n, D, dz=1e-9, dt=1e-3)
    assert out[0] == out[1]
    assert out[-1] == out[-2]


def test_step_does_not_touch_input():
    z, n = _mk_spike(N=41)
    before = n.copy()
    D = np.full_like(n, 1e-20)
    out = step(n, D, dz=z[1] - z[0], dt=1.0)
    assert out is not n
    np.testing.assert_array_equal(n, before)


def test_zero_coefficient_is_identity_inside():
    z, n = _mk_spike(N=60)
    out = step(n, np.zeros_like(n), dz=z[1] - z[0], dt=1e6)
    np.testing.assert_allclose(out[1:-1], n[1:-1], rtol=0, atol=1e-15)
    assert out[0] == out[1] and out[-1] == out[-2]


def test_zero_coefficient_leaves_flat_edges_unchanged():
    # spike is ~0 at both ends, so the full profile is reproduced
    z, n = _mk_spike(N=80)
    out = step(n, np.zeros_like(n), dz=z[1] - z[0], dt=10.0)
    np.testing.assert_allclose(out, n, rtol=0, atol=1e-12)


def test_stability_violation_raises_before_output():
    dz = 1e-9
    D = np.full(20, 1e-20)
    dt_max = stability_limit(dz, 1e-20)
    assert dt_max == pytest.approx(50.0)
    with pytest.raises(StabilityError) as info:
        step(np.ones(20), D, dz=dz, dt=1.01 * dt_max)
    err = info.value
    assert err.dt == pytest.approx(1.01 * dt_max)
    assert err.dt_max == pytest.approx(dt_max)
    assert err.D_max == pytest.approx(1e-20, rel=1e-12, abs=0)
    assert "dt_max" in str(err)


def test_stability_bound_is_inclusive():
    check_stability(dt=stability_limit(1e-9, 1e-20), dz=1e-9, D_max=1e-20)
    check_stability(dt=1e30, dz=1e-9, D_max=0.0)


def test_mismatched_coefficient_length():
    with pytest.raises(ProfileShapeError):
        step(np.ones(10), np.ones(9) * 1e-20, dz=1e-9, dt=1e-3)


def test_scheme_step_count():
    assert ExplicitEuler(dt=0.001, t_final=1.0).n_steps == 1000
    assert ExplicitEuler(dt=0.01, t_final=1.0).n_steps == 100
    assert ExplicitEuler(dt=0.3, t_final=1.0).n_steps == 3
    with pytest.raises(ConfigurationError):
        ExplicitEuler(dt=0.0, t_final=1.0)


def test_gaussian_spike_spreads_and_conserves():
    z, n0 = _mk_spike(N=200, dz=10e-10)
    res = integrate(z, n0, Constant(D0=1e-20), ExplicitEuler(dt=0.001, t_final=1.0))

    assert res.steps == 1000
    assert res.t == pytest.approx(1.0)
    assert res.n.max() < n0.max()

    def spread(n):
        mean = np.sum(z * n) / np.sum(n)
        return np.sum(n * (z - mean) ** 2) / np.sum(n)

    assert spread(res.n) > spread(n0)
    np.testing.assert_allclose(np.sum(res.n), np.sum(n0), rtol=1e-9)


def test_integrate_callback_sees_every_step():
    z, n0 = _mk_spike(N=30)
    seen = []
    integrate(
        z, n0, Constant(D0=1e-20), ExplicitEuler(dt=0.1, t_final=0.5),
        callback=lambda k, t, n, D: seen.append((k, t)),
    )
    assert [k for k, _ in seen] == [1, 2, 3, 4, 5]
    assert seen[-1][1] == pytest.approx(0.5)


def test_integrate_rejects_unstable_run():
    z, n0 = _mk_spike(N=30, dz=1e-10)
    # dt_max = 1e-20 / 2e-18 = 5e-3 s
    with pytest.raises(StabilityError):
        integrate(z, n0, Constant(D0=1e-18), ExplicitEuler(dt=1e-2, t_final=1.0))


@pytest.mark.parametrize("size", [0, 1, 2])
def test_step_needs_three_points(size):
    with pytest.raises(ProfileShapeError, match="at least 3"):
        step(np.ones(size), np.full(size, 1e-20), dz=1e-9, dt=1e-3)


@pytest.mark.parametrize("bad", [np.nan, np.inf])
def test_non_finite_coefficient_is_rejected(bad):
    D = np.full(20, 1e-20)
    D[7] = bad
    with pytest.raises(ProfileShapeError, match="not finite"):
        step(np.ones(20), D, dz=1e-9, dt=1e-3)
