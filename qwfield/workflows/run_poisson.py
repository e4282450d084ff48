# -*- coding: utf-8 -*-
"""
Poisson workflow: permittivity + charge tables → potential, field, total potential.

File conventions
----------------
- permittivity [F/m], charge as a number density [1/m^3] (converted with q;
  sign inverted for p-type so the energy scale stays positive);
- potentials are written as carrier potential energies [J] (absolute
  potential times -q), the band-edge baseline [J] is added for the total;
- the field is written in [V/m].
"""
from __future__ import annotations
from pathlib import Path

import numpy as np

from qwfield.geometry.profile import SampledProfile, check_same_length
from qwfield.io.config import PoissonRunConfig
from qwfield.io.tables import read_xy, write_table
from qwfield.physics.poisson import BoundaryMode, PoissonResult, PoissonSetup, solve_poisson_1d
from qwfield.utils import logger as log
from qwfield.utils.constants import Q
from qwfield.utils.diagnostics import log_profile_summary


def load_inputs(cfg: PoissonRunConfig, q: float = Q) -> SampledProfile:
    """Read ε and ρ onto one profile (ρ in C/m^3)."""
    z, eps = read_xy(cfg.permittivity_path)
    if cfg.uncharged:
        rho = np.zeros_like(eps)
    else:
        _zc, density = read_xy(cfg.charge_path)
        check_same_length(permittivity=eps, charge=density)
        rho = density * q
    if cfg.ptype:
        rho = -rho
    return SampledProfile.from_arrays(z, eps=eps, rho=rho)


def run_poisson(cfg: PoissonRunConfig, q: float = Q) -> PoissonResult:
    mode = cfg.boundary_mode()
    if mode is BoundaryMode.DIRICHLET and cfg.field_Vm is None:
        log.warn("dirichlet mode without a field; solving with zero-field boundaries")
    profile = load_inputs(cfg, q=q)

    res = solve_poisson_1d(
        PoissonSetup(
            z=profile.z,
            eps=profile["eps"],
            rho=profile["rho"],
            mode=mode,
            field_Vm=cfg.field_Vm,
            centred=cfg.centred,
            carrier_energy=True,
            offset_V=cfg.offset_V,
            debug=cfg.debug,
        )
    )
    if res.V_drop is not None:
        log.info(f"[poisson] voltage drop: {res.V_drop:+.6e} V")
    if cfg.debug:
        log_profile_summary(z=res.z, phi=res.phi, field=res.field, prefix="[poisson]")

    U_J = res.phi * q
    total_J = U_J
    if cfg.bandedge_path is not None:
        _zb, Vb = read_xy(cfg.bandedge_path)
        check_same_length(poisson_potential=U_J, baseline_potential=Vb)
        total_J = U_J + Vb

    write_table(cfg.field_path, res.z, res.field)
    write_table(cfg.poisson_potential_path, res.z, U_J)
    write_table(cfg.total_potential_path, res.z, total_J)
    log.info(
        f"[poisson] wrote {cfg.poisson_potential_path}, {cfg.total_potential_path}, "
        f"{cfg.field_path} (mode={res.mode.value})"
    )

    if cfg.png_path is not None:
        from qwfield.postprocess.visualization import plot_profiles
        fig, _ax = plot_profiles(
            res.z, {"Poisson": U_J / q, "total": total_J / q},
            ylabel="Potential energy (eV)", title=f"Poisson potential ({res.mode.value})",
        )
        fig.savefig(Path(cfg.png_path), dpi=180)
        log.info(f"[poisson] wrote {cfg.png_path}")
    return res
