# qwfield/io/config.py
# -*- coding: utf-8 -*-
"""
YAML → DiffusionRunConfig / PoissonRunConfig helpers.

Schema (example; every key optional, defaults shown):

diffusion:
  input: x.r                 # initial concentration (z [m], n)
  output: X.r                # final concentration
  coefficient_file: D.r      # used by modes "file" and "time"
  dt_s: 0.01
  t_final_s: 1.0
  mode: constant             # constant | file | concentration-dependent | depth-dependent | time
  coeff_A2s: 1.0             # constant D [Å^2/s]
  k: 1.0e-20                 # concentration factor, D = k n^2
  D0_A2s: 10.0               # depth-dependent magnitude [Å^2/s]
  z0_A: 1800.0               # depth-dependent centre [Å]
  sigma_A: 600.0             # depth-dependent width [Å]
  update: hold               # time mode: built-in name or "package.module:function"

poisson:
  permittivity_file: eps_dc.r
  charge_file: cd.r          # number density [1/m^3]
  uncharged: false
  mode: auto                 # auto | zero-field | dirichlet | mixed
  field_kVcm: null
  centred: false
  offset_meV: null
  ptype: false
  bandedge_file: null        # e.g. v_b.r
  poisson_potential_file: v_p.r
  total_potential_file: v.r
  field_file: field.r

Both sections also accept ``png`` (plot path) and ``debug``.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from qwfield.physics.diffusivity import MODES as DIFFUSION_MODES
from qwfield.physics.poisson import BoundaryMode
from qwfield.utils.constants import ANGSTROM, KV_PER_CM, MEV
from qwfield.utils.errors import ConfigurationError

__all__ = [
    "RunConfig", "DiffusionRunConfig", "PoissonRunConfig",
    "load_config", "apply_overrides", "diffusion_config", "poisson_config",
    "POISSON_MODES",
]

POISSON_MODES = ("auto",) + tuple(m.value for m in BoundaryMode)


@dataclass
class RunConfig:
    raw: dict
    path: Path


@dataclass
class DiffusionRunConfig:
    """Diffusion run, SI units."""
    input_path: Path = Path("x.r")
    output_path: Path = Path("X.r")
    coefficient_path: Path = Path("D.r")
    dt_s: float = 0.01
    t_final_s: float = 1.0
    mode: str = "constant"
    D0_m2s: float = 1.0 * ANGSTROM**2
    k: float = 1e-20
    depth_D0_m2s: float = 10.0 * ANGSTROM**2
    depth_z0_m: float = 1800.0 * ANGSTROM
    depth_sigma_m: float = 600.0 * ANGSTROM
    update: Optional[str] = None
    png_path: Optional[Path] = None
    debug: bool = False

    def __post_init__(self) -> None:
        self.mode = str(self.mode).strip().lower()
        if self.mode not in DIFFUSION_MODES:
            raise ConfigurationError(
                f"Diffusion mode '{self.mode}' not recognised (expected one of: {', '.join(DIFFUSION_MODES)})."
            )


@dataclass
class PoissonRunConfig:
    """Poisson run, SI units (field in V/m, offset in V)."""
    permittivity_path: Path = Path("eps_dc.r")
    charge_path: Path = Path("cd.r")
    uncharged: bool = False
    mode: str = "auto"
    field_Vm: Optional[float] = None
    centred: bool = False
    offset_V: Optional[float] = None
    ptype: bool = False
    bandedge_path: Optional[Path] = None
    poisson_potential_path: Path = Path("v_p.r")
    total_potential_path: Path = Path("v.r")
    field_path: Path = Path("field.r")
    png_path: Optional[Path] = None
    debug: bool = False

    def __post_init__(self) -> None:
        self.mode = str(self.mode).strip().lower().replace("_", "-")
        if self.mode not in POISSON_MODES:
            raise ConfigurationError(
                f"Boundary mode '{self.mode}' not recognised (expected one of: {', '.join(POISSON_MODES)})."
            )

    def boundary_mode(self) -> BoundaryMode:
        """Resolve 'auto': pinned drop when a field is given, zero-field otherwise."""
        if self.mode == "auto":
            return BoundaryMode.DIRICHLET if self.field_Vm is not None else BoundaryMode.ZERO_FIELD
        return BoundaryMode.parse(self.mode)


def load_config(path: Path) -> RunConfig:
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Cannot parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Top-level YAML must be a mapping")
    _validate_minimum(data)
    return RunConfig(raw=data, path=path)


def apply_overrides(cfg: RunConfig, overrides: Sequence[str]) -> RunConfig:
    """
    Apply "section.key=value" overrides in place; values are parsed as YAML
    scalars so numbers, booleans and null behave as in the file.
    """
    for item in overrides:
        key, sep, text = item.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"Override '{item}' is not of the form key=value")
        parts = [p for p in key.strip().split(".") if p]
        node = cfg.raw
        for p in parts[:-1]:
            child = node.setdefault(p, {})
            if not isinstance(child, dict):
                raise ConfigurationError(f"Override '{item}': '{p}' is not a section")
            node = child
        try:
            node[parts[-1]] = yaml.safe_load(text) if text.strip() else None
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Override '{item}': cannot parse value: {exc}") from exc
    _validate_minimum(cfg.raw)
    return cfg


def _opt_path(v: Any) -> Optional[Path]:
    return None if v in (None, "") else Path(str(v))


def _opt_float(v: Any, scale: float = 1.0) -> Optional[float]:
    return None if v is None else float(v) * scale


def _section(cfg: RunConfig, name: str) -> dict:
    sec = cfg.raw.get(name)
    if sec is None:
        raise ConfigurationError(f"Config {cfg.path} has no '{name}' section")
    if not isinstance(sec, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    return sec


def diffusion_config(cfg: RunConfig) -> DiffusionRunConfig:
    d = _section(cfg, "diffusion")
    try:
        return DiffusionRunConfig(
            input_path=Path(str(d.get("input", "x.r"))),
            output_path=Path(str(d.get("output", "X.r"))),
            coefficient_path=Path(str(d.get("coefficient_file", "D.r"))),
            dt_s=float(d.get("dt_s", 0.01)),
            t_final_s=float(d.get("t_final_s", 1.0)),
            mode=str(d.get("mode", "constant")),
            D0_m2s=float(d.get("coeff_A2s", 1.0)) * ANGSTROM**2,
            k=float(d.get("k", 1e-20)),
            depth_D0_m2s=float(d.get("D0_A2s", 10.0)) * ANGSTROM**2,
            depth_z0_m=float(d.get("z0_A", 1800.0)) * ANGSTROM,
            depth_sigma_m=float(d.get("sigma_A", 600.0)) * ANGSTROM,
            update=d.get("update"),
            png_path=_opt_path(d.get("png")),
            debug=bool(d.get("debug", False)),
        )
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid diffusion settings in {cfg.path}: {exc}") from exc


def poisson_config(cfg: RunConfig) -> PoissonRunConfig:
    p = _section(cfg, "poisson")
    try:
        return PoissonRunConfig(
            permittivity_path=Path(str(p.get("permittivity_file", "eps_dc.r"))),
            charge_path=Path(str(p.get("charge_file", "cd.r"))),
            uncharged=bool(p.get("uncharged", False)),
            mode=str(p.get("mode", "auto")),
            field_Vm=_opt_float(p.get("field_kVcm"), KV_PER_CM),
            centred=bool(p.get("centred", False)),
            offset_V=_opt_float(p.get("offset_meV"), MEV),
            ptype=bool(p.get("ptype", False)),
            bandedge_path=_opt_path(p.get("bandedge_file")),
            poisson_potential_path=Path(str(p.get("poisson_potential_file", "v_p.r"))),
            total_potential_path=Path(str(p.get("total_potential_file", "v.r"))),
            field_path=Path(str(p.get("field_file", "field.r"))),
            png_path=_opt_path(p.get("png")),
            debug=bool(p.get("debug", False)),
        )
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid poisson settings in {cfg.path}: {exc}") from exc


def _validate_minimum(cfg: dict) -> None:
    if not any(key in cfg for key in ("diffusion", "poisson")):
        raise ConfigurationError("Config needs a 'diffusion' and/or 'poisson' section")
    unknown = sorted(set(cfg) - {"diffusion", "poisson"})
    if unknown:
        raise ConfigurationError(f"Unknown top-level key(s): {', '.join(unknown)}")
