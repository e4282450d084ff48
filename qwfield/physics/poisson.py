# qwfield/physics/poisson.py
"""
1-D Poisson driver for layered heterostructures (variable ε, fixed space charge).

This module is *dispatch + post-processing only*:
- Validates the mesh and the aligned ε/ρ profiles
- Selects the boundary closure(s) for the requested mode
- Dispatches to the linear sub-solver (zero-field / Dirichlet / Laplace)
- Applies centring, sign inversion and offset, extracts the field

Strong form (1D):
    d/dz( ε(z) dφ/dz ) = -ρ(z)

Boundary modes
--------------
ZERO_FIELD  balanced (zero net) field at the two ends; φ has a free additive
            constant, fixed here by φ[0] = 0.
DIRICHLET   voltage drop across the structure fixed to V = field * L, where
            L = z[-1] - z[0]. Without a field the zero-field problem is solved.
MIXED       zero-field solve; if a field is given, a Laplace solve supplies the
            drop still missing after the space-charge drop and the two are
            added. Without a field the zero-field result is returned as is.

Units are whatever the caller supplies consistently; with ε in F/m, ρ in C/m^3
and z in m, φ is in volts and the field in V/m.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from ..geometry.profile import SampledProfile, check_same_length, uniform_spacing
from ..postprocess.field import extract_field
from ..solver.subsolvers.poisson_linear import solve as poisson_linear_solve, solve_laplace
from ..utils.errors import ConfigurationError

__all__ = ["BoundaryMode", "PoissonSetup", "PoissonResult", "solve_poisson_1d", "solve_poisson_profile"]


# ----------------------------- Data containers ----------------------------- #
class BoundaryMode(str, Enum):
    """Electrostatic boundary regime."""
    ZERO_FIELD = "zero-field"
    DIRICHLET = "dirichlet"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: "BoundaryMode | str") -> "BoundaryMode":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        for mode in cls:
            if mode.value == key:
                return mode
        choices = ", ".join(m.value for m in cls)
        raise ConfigurationError(f"Boundary mode '{value}' not recognised (expected one of: {choices}).")


@dataclass(slots=True)
class PoissonSetup:
    """Inputs to a single Poisson solve."""
    z: np.ndarray                       # (N,) node coordinates [m]
    eps: np.ndarray                     # (N,) permittivity [F/m]
    rho: np.ndarray                     # (N,) charge density [C/m^3], + for net positive
    mode: BoundaryMode | str = BoundaryMode.ZERO_FIELD

    # Applied field [V/m]; None means "no bias requested"
    field_Vm: Optional[float] = None

    # Post-processing (linear transforms after the raw solve)
    centred: bool = False
    carrier_energy: bool = False        # multiply by -1 (potential seen by an electron)
    offset_V: Optional[float] = None    # value at the node closest to z = 0

    debug: bool = False


@dataclass(slots=True)
class PoissonResult:
    """Result container (float64, C-contiguous arrays)."""
    z: np.ndarray
    phi: np.ndarray
    field: np.ndarray                   # E = -dφ/dz of the absolute potential [V/m]
    mode: BoundaryMode
    V_drop: Optional[float]             # bias imposed by a Dirichlet/Laplace solve
    intrinsic_drop: float               # φ[-1] - φ[0] of the space-charge solution


# ----------------------------- Internal helpers ---------------------------- #
def _c64(x: np.ndarray | float) -> np.ndarray:
    return np.ascontiguousarray(x, dtype=np.float64)


def _midpoint_value(z: np.ndarray, phi: np.ndarray) -> float:
    return float(np.interp(0.5 * (z[0] + z[-1]), z, phi))


# --------------------------------- Driver ---------------------------------- #
def solve_poisson_1d(setup: PoissonSetup) -> PoissonResult:
    """
    Solve d/dz(ε dφ/dz) = -ρ under the requested boundary mode and return the
    post-processed potential plus its field.
    """
    mode = BoundaryMode.parse(setup.mode)

    z = _c64(setup.z)
    eps = _c64(setup.eps)
    rho = _c64(setup.rho)
    check_same_length(permittivity=eps, charge=rho)
    check_same_length(positions=z, permittivity=eps)
    dz = uniform_spacing(z)
    length = float(z[-1] - z[0])

    field_Vm = None if setup.field_Vm is None else float(setup.field_Vm)
    V_drop: Optional[float] = None
    pivot = 0.0

    if setup.debug:
        print(
            f"[Poisson] mode={mode.value} | N={z.size} dz={dz:.3e} m L={length:.3e} m | "
            f"field={'none' if field_Vm is None else f'{field_Vm:.3e} V/m'} | "
            f"Q_sheet={dz * float(np.sum(rho)):+.3e} C/m^2"
        )

    if mode is BoundaryMode.MIXED:
        phi = poisson_linear_solve(eps=eps, rho=rho, dz=dz, closure="zero-field", debug=setup.debug).phi
        intrinsic = float(phi[-1] - phi[0])
        if field_Vm is not None:
            # Bias still needed once the space-charge drop is accounted for
            V_drop = field_Vm * length - intrinsic
            if setup.debug:
                print(f"[Poisson] Laplace correction: V_drop={V_drop:+.6e} V")
            phi = phi + solve_laplace(eps, dz, V_drop, debug=setup.debug)
            pivot = 0.5 * V_drop
    elif mode is BoundaryMode.DIRICHLET and field_Vm is not None:
        V_drop = field_Vm * length
        phi = poisson_linear_solve(
            eps=eps, rho=rho, dz=dz, closure="dirichlet", V_drop=V_drop, debug=setup.debug
        ).phi
        intrinsic = float(phi[-1] - phi[0])
        pivot = float(phi[0]) + 0.5 * V_drop
    else:
        if mode is BoundaryMode.DIRICHLET and setup.debug:
            print("[Poisson] no field given for dirichlet mode; solving zero-field")
        phi = poisson_linear_solve(eps=eps, rho=rho, dz=dz, closure="zero-field", debug=setup.debug).phi
        intrinsic = float(phi[-1] - phi[0])
        pivot = _midpoint_value(z, phi)

    # MIXED without a field is left uncentred (pivot stays 0)
    if setup.centred:
        phi = phi - pivot

    field = extract_field(phi, dz)

    if setup.carrier_energy:
        phi = -phi

    if setup.offset_V is not None:
        i0 = int(np.argmin(np.abs(z)))
        phi = phi + (float(setup.offset_V) - float(phi[i0]))

    return PoissonResult(
        z=z,
        phi=_c64(phi),
        field=_c64(field),
        mode=mode,
        V_drop=V_drop,
        intrinsic_drop=intrinsic,
    )


def solve_poisson_profile(
    profile: SampledProfile,
    *,
    eps: str = "eps",
    rho: str = "rho",
    **options,
) -> SampledProfile:
    """
    Convenience wrapper: solve on a SampledProfile holding ε and ρ columns and
    return a new profile with ``phi`` and ``field`` columns added.
    """
    res = solve_poisson_1d(PoissonSetup(z=profile.z, eps=profile[eps], rho=profile[rho], **options))
    return profile.with_column("phi", res.phi).with_column("field", res.field)
