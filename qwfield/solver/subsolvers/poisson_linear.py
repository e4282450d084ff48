"""
qwfield/solver/subsolvers/poisson_linear.py

Linear Poisson sub-solver on a uniform node-centred mesh:
- Face permittivity from the harmonic mean of neighbouring nodes.
- Assembles the electrostatic tridiagonal system for one boundary closure.
- Solves it with the Thomas algorithm.

Discrete form at node i (each node owns a cell of width dz):

    -(α_{i-1/2} φ_{i-1} - (α_{i-1/2} + α_{i+1/2}) φ_i + α_{i+1/2} φ_{i+1}) / dz = ρ_i

with α_{i+1/2} = ε_{i+1/2} / dz.

Closures
--------
"zero-field":  φ_0 = 0 (gauge) and the displacement through the two outer faces
               is balanced, ε dφ/dz = +Q/2 on the left and -Q/2 on the right,
               Q = dz Σρ. A neutral structure has zero field at both ends.
"dirichlet":   φ_0 = 0 and φ_{N-1} = V_drop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

import numpy as np

from ...utils.errors import ProfileShapeError, SingularSystemError

ClosureT = Literal["zero-field", "dirichlet"]

__all__ = [
    "PoissonLinearResult",
    "face_permittivity",
    "assemble_electrostatic_tridiagonal",
    "residual",
    "solve",
    "solve_laplace",
]


@dataclass
class PoissonLinearResult:
    phi: np.ndarray
    residual: np.ndarray
    closure: str


def _solve_tridiagonal(a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray) -> np.ndarray:
    """Thomas algorithm for tridiagonal systems."""
    n = b.size
    ac = a.copy()
    bc = b.copy()
    cc = c.copy()
    dc = d.copy()

    for i in range(1, n):
        if bc[i - 1] == 0.0:
            raise SingularSystemError("Zero diagonal encountered (forward elim).")
        m = ac[i] / bc[i - 1]
        bc[i] -= m * cc[i - 1]
        dc[i] -= m * dc[i - 1]

    x = np.zeros_like(dc)
    if bc[-1] == 0.0:
        raise SingularSystemError("Zero diagonal encountered (back solve).")
    x[-1] = dc[-1] / bc[-1]
    for i in range(n - 2, -1, -1):
        if bc[i] == 0.0:
            raise SingularSystemError("Zero diagonal encountered.")
        x[i] = (dc[i] - cc[i] * x[i + 1]) / bc[i]
    return x


def face_permittivity(eps: np.ndarray) -> np.ndarray:
    """ε_{i+1/2} = 2 ε_i ε_{i+1} / (ε_i + ε_{i+1}), shape (N-1,)."""
    eps = np.asarray(eps, dtype=np.float64)
    bad = ~(np.isfinite(eps) & (eps > 0.0))
    if np.any(bad):
        i = int(np.argmax(bad))
        raise ProfileShapeError(
            f"Permittivity must be positive and finite at every node "
            f"(node {i} has {eps[i]!r}, {int(np.sum(bad))} bad node(s) in total)."
        )
    epL = eps[:-1]
    epR = eps[1:]
    return 2.0 * epL * epR / (epL + epR)


def assemble_electrostatic_tridiagonal(
    alpha_f: np.ndarray,
    dz: float,
    closure: ClosureT,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    N = alpha_f.size + 1
    a = np.zeros(N, dtype=np.float64)
    b = np.zeros(N, dtype=np.float64)
    c = np.zeros(N, dtype=np.float64)

    a[1:-1] = -alpha_f[:-1] / dz
    c[1:-1] = -alpha_f[1:] / dz
    b[1:-1] = (alpha_f[:-1] + alpha_f[1:]) / dz

    # Left boundary: gauge / pinned potential
    b[0] = 1.0; a[0] = 0.0; c[0] = 0.0

    # Right boundary
    if closure == "dirichlet":
        b[-1] = 1.0; a[-1] = 0.0; c[-1] = 0.0
    elif closure == "zero-field":
        # flux row; the outer-face displacement goes to the right-hand side
        a[-1] = -alpha_f[-1] / dz
        b[-1] = alpha_f[-1] / dz
    else:
        raise ValueError(f"Unknown closure '{closure}'")

    return a, b, c


def _rhs(rho: np.ndarray, dz: float, closure: ClosureT, V_drop: float) -> np.ndarray:
    d = np.array(rho, dtype=np.float64, copy=True)
    d[0] = 0.0
    if closure == "dirichlet":
        d[-1] = float(V_drop)
    else:
        Q = dz * float(np.sum(rho))
        d[-1] = rho[-1] - 0.5 * Q / dz
    return d


def residual(
    phi: np.ndarray,
    eps: np.ndarray,
    rho: np.ndarray,
    dz: float,
    closure: ClosureT,
    V_drop: float = 0.0,
) -> np.ndarray:
    """A·φ - d for the assembled system (units of C/m^3 on interior rows)."""
    alpha_f = face_permittivity(eps) / dz
    a, b, c = assemble_electrostatic_tridiagonal(alpha_f, dz, closure)
    d = _rhs(np.asarray(rho, dtype=np.float64), dz, closure, V_drop)
    Ax = b * phi
    Ax[1:] += a[1:] * phi[:-1]
    Ax[:-1] += c[:-1] * phi[1:]
    return Ax - d


def solve(
    *,
    eps: np.ndarray,
    rho: np.ndarray,
    dz: float,
    closure: ClosureT,
    V_drop: float = 0.0,
    debug: bool = False,
) -> PoissonLinearResult:
    """
    Solve the electrostatic Poisson problem for one closure.
    """
    eps = np.asarray(eps, dtype=np.float64)
    rho = np.asarray(rho, dtype=np.float64)
    alpha_f = face_permittivity(eps) / dz

    a, b, c = assemble_electrostatic_tridiagonal(alpha_f, dz, closure)
    d = _rhs(rho, dz, closure, V_drop)
    phi = _solve_tridiagonal(a, b, c, d)
    resid = residual(phi, eps, rho, dz, closure, V_drop)

    if debug:
        print(
            f"[PoissonLinear] closure={closure} | N={phi.size} | "
            f"||res||_inf={float(np.linalg.norm(resid, ord=np.inf)):.3e} | "
            f"φ∈[{phi.min():+.3e},{phi.max():+.3e}] V"
        )

    return PoissonLinearResult(phi=phi, residual=resid, closure=closure)


def solve_laplace(eps: np.ndarray, dz: float, V_drop: float, debug: bool = False) -> np.ndarray:
    """Charge-free Dirichlet solve: φ_0 = 0, φ_{N-1} = V_drop."""
    eps = np.asarray(eps, dtype=np.float64)
    out = solve(eps=eps, rho=np.zeros_like(eps), dz=dz, closure="dirichlet", V_drop=V_drop, debug=debug)
    return out.phi
