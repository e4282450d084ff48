# -*- coding: utf-8 -*-
"""
Explicit time integration of the 1-D diffusion equation

    ∂n/∂t = ∂/∂z ( D ∂n/∂z ),     n = n(z, t),  D = D(z, t, n)

Forward Euler in time, centred product-rule differences in space:

    n_new[i] = n[i] + dt * ( (D[i+1]-D[i-1]) (n[i+1]-n[i-1]) / (2 dz)^2
                           +  D[i] (n[i+1] - 2 n[i] + n[i-1]) / dz^2 )

Closed-system (reflective) boundaries: the edge cells copy their interior
neighbour after every step, so no diffusant leaves the structure.

The scheme is only stable for dt <= dz^2 / (2 max D); ``step`` refuses to run
beyond that limit.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Callable, Optional

import numpy as np

from ..geometry.profile import MIN_POINTS, uniform_spacing, check_same_length
from ..physics.diffusivity import DiffusivityModel
from ..utils.errors import ConfigurationError, ProfileShapeError, StabilityError

__all__ = [
    "ExplicitEuler",
    "DiffusionResult",
    "stability_limit",
    "check_stability",
    "step",
    "integrate",
]


def _c64(x) -> np.ndarray:
    return np.ascontiguousarray(x, dtype=np.float64)


@dataclass(slots=True)
class ExplicitEuler:
    """Fixed-step forward Euler schedule from t=0 to t_final."""
    dt: float
    t_final: float

    def __post_init__(self) -> None:
        if not (self.dt > 0.0 and math.isfinite(self.dt)):
            raise ConfigurationError(f"Time step must be positive and finite (got dt={self.dt}).")
        if not (self.t_final >= 0.0 and math.isfinite(self.t_final)):
            raise ConfigurationError(f"End time must be non-negative and finite (got t_final={self.t_final}).")

    @property
    def n_steps(self) -> int:
        # small slack so t_final = k*dt is reached despite rounding
        return int(math.floor(self.t_final / self.dt + 1e-9))


@dataclass(slots=True)
class DiffusionResult:
    z: np.ndarray
    n: np.ndarray
    D: np.ndarray
    t: float
    steps: int

    def as_matrix(self) -> np.ndarray:
        return np.column_stack((self.z, self.n))


# ----------------------------- Stepper ------------------------------------- #
def stability_limit(dz: float, D_max: float) -> float:
    """Largest stable time step dz^2 / (2 D_max); infinite when D_max <= 0."""
    if D_max <= 0.0:
        return math.inf
    return dz * dz / (2.0 * D_max)


def check_stability(dt: float, dz: float, D_max: float) -> None:
    if not math.isfinite(D_max):
        raise ProfileShapeError(f"Diffusion coefficient is not finite (max D = {D_max}).")
    dt_max = stability_limit(dz, D_max)
    if dt > dt_max:
        raise StabilityError(dt=dt, dt_max=dt_max, D_max=D_max)


def step(n: np.ndarray, D: np.ndarray, dz: float, dt: float) -> np.ndarray:
    """
    Advance ``n`` by one time increment ``dt``.

    Reads only ``n`` and ``D``; the result is a new array.
    """
    n = _c64(n)
    D = _c64(D)
    check_same_length(concentration=n, coefficient=D)
    if n.size < MIN_POINTS:
        raise ProfileShapeError(f"Need at least {MIN_POINTS} points to step (got {n.size}).")
    # np.max propagates NaN, which check_stability rejects
    check_stability(dt, dz, float(np.max(D)))

    n_new = np.empty_like(n)
    drift = (D[2:] - D[:-2]) * (n[2:] - n[:-2]) / (2.0 * dz) ** 2
    curv = D[1:-1] * (n[2:] - 2.0 * n[1:-1] + n[:-2]) / dz ** 2
    n_new[1:-1] = n[1:-1] + dt * (drift + curv)

    # closed system: zero flux through both ends
    n_new[0] = n_new[1]
    n_new[-1] = n_new[-2]
    return n_new


# ----------------------------- Time loop ----------------------------------- #
def integrate(
    z: np.ndarray,
    n0: np.ndarray,
    model: DiffusivityModel,
    scheme: ExplicitEuler,
    *,
    callback: Optional[Callable[[int, float, np.ndarray, np.ndarray], None]] = None,
    debug: bool = False,
    print_every: int = 100,
) -> DiffusionResult:
    """
    Run the diffusion time loop.

    At step k (elapsed time t = k*dt) the model refreshes D from the committed
    state, then the stepper advances n. ``callback(k, t, n, D)`` is invoked
    after each committed step.
    """
    z = _c64(z)
    dz = uniform_spacing(z)
    n = _c64(n0).copy()
    check_same_length(z=z, concentration=n)

    D = _c64(model.initial(z, n))
    check_same_length(z=z, coefficient=D)
    dt = float(scheme.dt)

    if debug:
        print(
            f"[diffuse] model={type(model).__name__} | N={z.size} dz={dz:.3e} m | "
            f"dt={dt:.3e} s steps={scheme.n_steps} | "
            f"dt_max={stability_limit(dz, float(np.max(D))):.3e} s"
        )

    t = 0.0
    k = 0
    for k in range(1, scheme.n_steps + 1):
        t = k * dt
        D = _c64(model.refresh(z, n, D, t))
        n = step(n, D, dz, dt)
        if callback is not None:
            callback(k, t, n, D)
        if debug and (k % int(print_every) == 0):
            print(
                f"[diffuse] step {k:06d} | t={t:.4e} s | "
                f"n∈[{n.min():+.3e},{n.max():+.3e}] | max D={float(np.max(D)):.3e}"
            )

    return DiffusionResult(z=z, n=n, D=D, t=t, steps=k)
