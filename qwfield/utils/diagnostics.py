"""
qwfield/utils/diagnostics.py

Low-noise diagnostics for the diffusion and Poisson runs.
Import and call these from solvers/workflows when debug=True.
"""

from __future__ import annotations

from typing import Optional

import numpy as np


def _fmt_range(x: np.ndarray, name: str) -> str:
    if x.size == 0:
        return f"{name}: (empty)"
    return f"{name}∈[{np.min(x):+.3e},{np.max(x):+.3e}]"


def log_profile_summary(
    *,
    z: np.ndarray,
    n: Optional[np.ndarray] = None,
    D: Optional[np.ndarray] = None,
    phi: Optional[np.ndarray] = None,
    field: Optional[np.ndarray] = None,
    prefix: str = "[diag]",
) -> None:
    """Print compact ranges for whichever profiles are given."""
    msg = [prefix, f"N={z.size}", _fmt_range(z, "z")]
    if n is not None:
        msg.append(_fmt_range(n, "n"))
    if D is not None:
        msg.append(_fmt_range(D, "D"))
    if phi is not None:
        msg.append(_fmt_range(phi, "φ"))
    if field is not None:
        msg.append(_fmt_range(field, "F"))
    print(" | ".join(msg))


def integrated_amount(n: np.ndarray, dz: float) -> float:
    """Total diffusant on a node-centred mesh (each node owns a cell of width dz)."""
    return float(np.sum(n) * dz)


def check_conservation(
    *,
    n_initial: np.ndarray,
    n_final: np.ndarray,
    dz: float,
    rtol: float = 1e-6,
    prefix: str = "[diag]",
) -> float:
    """
    Report the relative drift of the integrated concentration.

    The reflective boundaries copy the neighbouring interior cell, so a profile
    with non-zero edges does not conserve the total exactly; the drift is
    returned for callers that want to bound it.
    """
    total0 = integrated_amount(n_initial, dz)
    total1 = integrated_amount(n_final, dz)
    scale = abs(total0) if total0 != 0.0 else 1.0
    drift = (total1 - total0) / scale
    print(f"{prefix} amount audit: initial={total0:+.6e}, final={total1:+.6e}, "
          f"rel. drift={drift:+.3e} | ok={abs(drift) < rtol}")
    return drift
