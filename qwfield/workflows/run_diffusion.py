# -*- coding: utf-8 -*-
"""
Diffusion workflow: tables → coefficient model → time loop → table.
"""
from __future__ import annotations
from pathlib import Path

from qwfield.geometry.profile import SampledProfile
from qwfield.io.config import DiffusionRunConfig
from qwfield.io.tables import read_xy, write_table
from qwfield.physics.diffusivity import DiffusivityModel, load_update, model_from_name
from qwfield.solver.time_integration import DiffusionResult, ExplicitEuler, integrate
from qwfield.utils import logger as log
from qwfield.utils.diagnostics import check_conservation, log_profile_summary
from qwfield.utils.errors import ProfileShapeError


def build_model(cfg: DiffusionRunConfig, profile: SampledProfile) -> DiffusivityModel:
    D_table = None
    if cfg.mode in ("file", "time"):
        zD, D_table = read_xy(cfg.coefficient_path)
        if zD.size != profile.N:
            raise ProfileShapeError(
                f"Diffusion-coefficient table {cfg.coefficient_path} has {zD.size} points "
                f"but the concentration profile has {profile.N}."
            )
    update = load_update(cfg.update) if cfg.mode == "time" else None
    if cfg.mode == "time" and cfg.update is None:
        log.warn("time mode without an update callable; coefficients stay at their initial values")
    return model_from_name(
        cfg.mode,
        D0=cfg.D0_m2s,
        D_table=D_table,
        k=cfg.k,
        depth_D0=cfg.depth_D0_m2s,
        depth_z0=cfg.depth_z0_m,
        depth_sigma=cfg.depth_sigma_m,
        update=update,
    )


def run_diffusion(cfg: DiffusionRunConfig) -> DiffusionResult:
    scheme = ExplicitEuler(dt=cfg.dt_s, t_final=cfg.t_final_s)
    z, n0 = read_xy(cfg.input_path)
    profile = SampledProfile.from_arrays(z, n=n0)
    model = build_model(cfg, profile)

    res = integrate(profile.z, profile["n"], model, scheme, debug=cfg.debug)

    if cfg.debug:
        log_profile_summary(z=res.z, n=res.n, D=res.D, prefix="[diffuse]")
        check_conservation(n_initial=profile["n"], n_final=res.n, dz=profile.dz, prefix="[diffuse]")

    out = write_table(cfg.output_path, *res.as_matrix().T)
    log.info(f"[diffuse] wrote {out} (t={res.t:.4e} s, steps={res.steps})")

    if cfg.png_path is not None:
        from qwfield.postprocess.visualization import plot_profiles
        fig, _ax = plot_profiles(
            res.z, {"initial": profile["n"], "final": res.n},
            ylabel="Concentration", title=f"Diffusion ({cfg.mode}), t = {res.t:g} s",
        )
        fig.savefig(Path(cfg.png_path), dpi=180)
        log.info(f"[diffuse] wrote {cfg.png_path}")
    return res
