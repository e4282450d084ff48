# qwfield/utils/__init__.py
from __future__ import annotations
from .constants import Q, EPS0, ANGSTROM, KV_PER_CM, MEV
from .errors import QWFieldError, StabilityError, ConfigurationError, ProfileShapeError, SingularSystemError

__all__ = [
    "Q", "EPS0", "ANGSTROM", "KV_PER_CM", "MEV",
    "QWFieldError", "StabilityError", "ConfigurationError", "ProfileShapeError", "SingularSystemError",
]
