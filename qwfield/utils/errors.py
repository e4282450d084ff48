# qwfield/utils/errors.py
"""
Error taxonomy shared by the solvers, the file layer and the CLI.

Every fatal condition derives from QWFieldError so the command line can turn
it into a non-zero exit with a one-line message.
"""
from __future__ import annotations

__all__ = [
    "QWFieldError", "StabilityError", "ConfigurationError", "ProfileShapeError", "SingularSystemError",
]


class QWFieldError(Exception):
    """Base class for all fatal qwfield conditions."""


class StabilityError(QWFieldError, RuntimeError):
    """Explicit time step exceeds dz^2 / (2 max D)."""

    def __init__(self, dt: float, dt_max: float, D_max: float) -> None:
        self.dt = float(dt)
        self.dt_max = float(dt_max)
        self.D_max = float(D_max)
        super().__init__(
            f"Time step dt = {self.dt:.6e} s exceeds the stability limit "
            f"dt_max = {self.dt_max:.6e} s (max D = {self.D_max:.6e} m^2/s). "
            "Choose a smaller --dt or increase the spatial step of the input profile."
        )


class ConfigurationError(QWFieldError, ValueError):
    """Unknown mode selector, malformed config or missing input."""


class ProfileShapeError(QWFieldError, ValueError):
    """Arrays that must share a mesh do not, or the mesh itself is invalid."""


class SingularSystemError(QWFieldError, ZeroDivisionError):
    """Zero pivot met while solving a tridiagonal system."""
