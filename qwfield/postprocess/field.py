# -*- coding: utf-8 -*-
"""
Field extraction from a solved potential.

Centred difference on the interior nodes; the two edge nodes have no symmetric
neighbour and are left at zero.
"""
import numpy as np

from ..geometry.profile import MIN_POINTS
from ..utils.errors import ProfileShapeError

__all__ = ["extract_field"]


def extract_field(phi: np.ndarray, dz: float, scale: float = -1.0) -> np.ndarray:
    """
    F[i] = scale * (phi[i+1] - phi[i-1]) / (2 dz), F[0] = F[-1] = 0.

    scale=-1 gives E = -dφ/dz for an absolute potential in volts; use 1/q for a
    carrier potential energy in joules.
    """
    phi = np.asarray(phi, dtype=np.float64)
    if phi.size < MIN_POINTS:
        raise ProfileShapeError(f"Need at least {MIN_POINTS} points to difference (got {phi.size}).")
    F = np.zeros_like(phi)
    F[1:-1] = scale * (phi[2:] - phi[:-2]) / (2.0 * dz)
    return F
