# qwfield/geometry/profile.py
"""
Uniformly sampled 1-D profiles along the growth axis.

- SI units throughout (positions in metres).
- One position array plus any number of named, index-aligned value columns
  (concentration, permittivity, charge density, potential, field, ...).
- Arrays are copied on construction and frozen (read-only); replacing a column
  returns a new profile.

Public API (stable):
    SampledProfile
    uniform_spacing(z) -> float
    check_same_length(**arrays)

Notes
-----
- No physics here: only the mesh contract the solvers rely on.
- Spacing is checked with a relative tolerance so tables that went through a
  text round trip (e.g. ``%.10e``) are still accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Tuple

import numpy as np

from ..utils.errors import ProfileShapeError

__all__ = ["SampledProfile", "uniform_spacing", "check_same_length", "MIN_POINTS"]

MIN_POINTS = 3
SPACING_RTOL = 1e-6


def _frozen(a) -> np.ndarray:
    out = np.array(a, dtype=np.float64, copy=True, order="C")
    out.setflags(write=False)
    return out


def uniform_spacing(z: np.ndarray, rtol: float = SPACING_RTOL) -> float:
    """
    Return the mesh spacing dz of ``z``.

    Raises ProfileShapeError if there are fewer than three points, if the
    positions do not strictly increase, or if the spacing is not uniform.
    """
    z = np.asarray(z, dtype=np.float64)
    if z.ndim != 1 or z.size < MIN_POINTS:
        raise ProfileShapeError(
            f"A profile needs at least {MIN_POINTS} points along z (got {z.size})."
        )
    steps = np.diff(z)
    if not np.all(np.isfinite(steps)) or np.any(steps <= 0.0):
        raise ProfileShapeError("Positions must be finite and strictly increasing.")
    dz = float((z[-1] - z[0]) / (z.size - 1))
    worst = float(np.max(np.abs(steps - dz)))
    if worst > rtol * dz:
        raise ProfileShapeError(
            f"Mesh spacing is not uniform: dz={dz:.6e} m, largest deviation {worst:.3e} m."
        )
    return dz


def check_same_length(**arrays: np.ndarray) -> int:
    """Ensure all named arrays share one length; return it."""
    items = [(name, int(np.size(a))) for name, a in arrays.items()]
    if not items:
        return 0
    ref_name, ref_len = items[0]
    for name, n in items[1:]:
        if n != ref_len:
            raise ProfileShapeError(
                f"Profiles have different lengths: {ref_name} has {ref_len}, {name} has {n}."
            )
    return ref_len


@dataclass(slots=True, frozen=True)
class SampledProfile:
    """
    Positions plus aligned value columns.

    Attributes
    ----------
    z : np.ndarray
        Node coordinates [m], uniform spacing, N >= 3.
    columns : Mapping[str, np.ndarray]
        Named value arrays, each of length N.
    """
    z: np.ndarray
    columns: Mapping[str, np.ndarray] = field(default_factory=dict)
    dz: float = field(init=False)

    def __post_init__(self) -> None:
        z = _frozen(self.z)
        dz = uniform_spacing(z)
        cols: Dict[str, np.ndarray] = {}
        for name, values in dict(self.columns).items():
            arr = _frozen(values)
            check_same_length(z=z, **{name: arr})
            cols[name] = arr
        object.__setattr__(self, "z", z)
        object.__setattr__(self, "columns", cols)
        object.__setattr__(self, "dz", dz)

    @classmethod
    def from_arrays(cls, z, **columns) -> "SampledProfile":
        return cls(z=z, columns=columns)

    # ---- accessors -------------------------------------------------------

    @property
    def N(self) -> int:
        return int(self.z.size)

    @property
    def span(self) -> float:
        """Distance between the first and last sample [m]."""
        return float(self.z[-1] - self.z[0])

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self.columns)

    def __getitem__(self, name: str) -> np.ndarray:
        try:
            return self.columns[name]
        except KeyError:
            raise KeyError(f"Profile has no column '{name}' (have: {', '.join(self.names) or 'none'})") from None

    def __contains__(self, name: object) -> bool:
        return name in self.columns

    # ---- derived profiles ------------------------------------------------

    def with_column(self, name: str, values) -> "SampledProfile":
        """Return a new profile with ``name`` added or replaced."""
        cols = dict(self.columns)
        cols[name] = values
        return SampledProfile(z=self.z, columns=cols)

    def as_matrix(self, *names: str) -> np.ndarray:
        """Stack z and the requested columns (all columns if none given)."""
        chosen = names or self.names
        return np.column_stack([self.z] + [self[n] for n in chosen])
