# qwfield/utils/constants.py
from __future__ import annotations

__all__ = ["Q", "EPS0", "ANGSTROM", "KV_PER_CM", "MEV"]

# Fundamental constants (SI)
Q    = 1.602176634e-19       # elementary charge [C]
EPS0 = 8.8541878128e-12      # vacuum permittivity [F/m]

# Unit conversions used by the file/CLI layer
ANGSTROM  = 1e-10            # [m]
KV_PER_CM = 1e5              # 1 kV/cm in [V/m]
MEV       = 1e-3             # 1 meV in [eV] (i.e. volts per unit charge)
