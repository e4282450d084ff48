# qwfield/physics/diffusivity.py
"""
Diffusion-coefficient models D(z, t, n) for the explicit diffusion solver.

Each mode is a small frozen dataclass carrying exactly the parameters it needs;
together they form the closed set ``DiffusivityModel``. A model is chosen once
per run and exposes two hooks used by the time loop:

    initial(z, n)          -> D before the first step
    refresh(z, n, D, t)    -> D for the step ending at elapsed time t

Modes (selector string → variant):
    "constant"                 Constant(D0)                  D = D0 everywhere
    "file"                     FromTable(D)                  D read once, fixed
    "concentration-dependent"  ConcentrationDependent(k)     D = k n^2, every step
    "depth-dependent"          DepthDependent(D0, z0, sigma) Gaussian in z, fixed
    "time"                     TimeEvolving(D_initial, update)
                               D[i] = update(D[i], n[i], z[i], t), every step

All coefficients are SI [m^2/s]. Negative values are not checked.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import importlib
from typing import Callable, Dict, Optional, Protocol, Union

import numpy as np

from ..utils.errors import ConfigurationError, ProfileShapeError

__all__ = [
    "CoefficientUpdate",
    "Constant",
    "FromTable",
    "ConcentrationDependent",
    "DepthDependent",
    "TimeEvolving",
    "DiffusivityModel",
    "MODES",
    "hold",
    "load_update",
    "model_from_name",
]


def _c64(x) -> np.ndarray:
    return np.ascontiguousarray(x, dtype=np.float64)


def _check_aligned(D: np.ndarray, z: np.ndarray, what: str) -> None:
    if D.size != z.size:
        raise ProfileShapeError(
            f"{what} has {D.size} points but the concentration profile has {z.size}."
        )


class CoefficientUpdate(Protocol):
    """Per-point update rule for the time-evolving mode."""

    def __call__(self, D: float, n: float, z: float, t: float) -> float: ...


def hold(D: float, n: float, z: float, t: float) -> float:
    """Built-in update that keeps the coefficient unchanged."""
    return D


_BUILTIN_UPDATES: Dict[str, CoefficientUpdate] = {"hold": hold}


# ----------------------------- Model variants ------------------------------ #
@dataclass(slots=True, frozen=True)
class Constant:
    """Same scalar at every position and every step."""
    D0: float

    def initial(self, z: np.ndarray, n: np.ndarray) -> np.ndarray:
        return np.full(z.shape, float(self.D0), dtype=np.float64)

    def refresh(self, z, n, D, t) -> np.ndarray:
        return D


@dataclass(slots=True, frozen=True)
class FromTable:
    """Externally supplied profile, read once and held fixed."""
    D: np.ndarray

    def initial(self, z: np.ndarray, n: np.ndarray) -> np.ndarray:
        D = _c64(self.D).copy()
        _check_aligned(D, z, "Diffusion-coefficient table")
        return D

    def refresh(self, z, n, D, t) -> np.ndarray:
        return D


@dataclass(slots=True, frozen=True)
class ConcentrationDependent:
    """D = k n^2 recomputed from the current concentration."""
    k: float = 1e-20

    def initial(self, z: np.ndarray, n: np.ndarray) -> np.ndarray:
        n = _c64(n)
        return float(self.k) * n * n

    def refresh(self, z, n, D, t) -> np.ndarray:
        return self.initial(z, n)


@dataclass(slots=True, frozen=True)
class DepthDependent:
    """Static Gaussian distribution D0 exp(-((z - z0)/sigma)^2 / 2)."""
    D0: float = 10e-20      # [m^2/s]
    z0: float = 1800e-10    # centre [m]
    sigma: float = 600e-10  # width [m]

    def initial(self, z: np.ndarray, n: np.ndarray) -> np.ndarray:
        u = (_c64(z) - float(self.z0)) / float(self.sigma)
        return float(self.D0) * np.exp(-0.5 * u * u)

    def refresh(self, z, n, D, t) -> np.ndarray:
        return D


@dataclass(slots=True, frozen=True)
class TimeEvolving:
    """
    Starts from ``D_initial`` and applies ``update`` point by point each step.

    ``update`` receives (current D, local concentration, position, elapsed time)
    and returns the new coefficient at that point.
    """
    D_initial: np.ndarray
    update: CoefficientUpdate = field(default=hold)

    def initial(self, z: np.ndarray, n: np.ndarray) -> np.ndarray:
        D = _c64(self.D_initial).copy()
        _check_aligned(D, z, "Initial diffusion-coefficient table")
        return D

    def refresh(self, z: np.ndarray, n: np.ndarray, D: np.ndarray, t: float) -> np.ndarray:
        fn = self.update
        out = np.empty_like(D)
        for i in range(D.size):
            out[i] = fn(float(D[i]), float(n[i]), float(z[i]), float(t))
        return out


DiffusivityModel = Union[Constant, FromTable, ConcentrationDependent, DepthDependent, TimeEvolving]

MODES = ("constant", "file", "concentration-dependent", "depth-dependent", "time")


# ----------------------------- Construction -------------------------------- #
def load_update(target: Optional[str]) -> CoefficientUpdate:
    """
    Resolve an update callable.

    ``target`` is a built-in name ("hold") or a "package.module:function" path.
    """
    if target is None or target == "":
        return hold
    if target in _BUILTIN_UPDATES:
        return _BUILTIN_UPDATES[target]
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(
            f"Cannot parse update '{target}': expected 'package.module:function' or one of "
            f"{sorted(_BUILTIN_UPDATES)}."
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import module '{module_name}' for update '{target}': {exc}") from exc
    fn = getattr(module, attr, None)
    if not callable(fn):
        raise ConfigurationError(f"'{attr}' in module '{module_name}' is not a callable.")
    return fn


def model_from_name(
    mode: str,
    *,
    D0: float = 1e-20,
    D_table: Optional[np.ndarray] = None,
    k: float = 1e-20,
    depth_D0: float = 10e-20,
    depth_z0: float = 1800e-10,
    depth_sigma: float = 600e-10,
    update: Optional[Callable[..., float]] = None,
) -> DiffusivityModel:
    """
    Map a selector string onto a model variant.

    Raises ConfigurationError for an unknown selector, or when a table-based
    mode is requested without a table.
    """
    key = str(mode).strip().lower()
    if key == "constant":
        return Constant(D0=float(D0))
    if key in ("file", "time"):
        if D_table is None:
            raise ConfigurationError(f"Diffusion mode '{key}' needs a diffusion-coefficient table.")
        if key == "file":
            return FromTable(D=_c64(D_table))
        return TimeEvolving(D_initial=_c64(D_table), update=update or hold)
    if key == "concentration-dependent":
        return ConcentrationDependent(k=float(k))
    if key == "depth-dependent":
        return DepthDependent(D0=float(depth_D0), z0=float(depth_z0), sigma=float(depth_sigma))
    raise ConfigurationError(
        f"Diffusion mode '{mode}' not recognised (expected one of: {', '.join(MODES)})."
    )
