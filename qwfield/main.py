# qwfield/main.py
"""
qwfield command-line entrypoint.

Usage examples:
    qwfield diffuse --dt 0.01 --coeff 1.0 --time 1.0 --mode constant
    qwfield diffuse --mode depth-dependent --D0 10 --z0 1800 --sigma 600
    qwfield poisson --centred --field 5 --bandedge-file v_b.r
    qwfield poisson --mixed --field 5
    qwfield run config.yaml --set poisson.field_kVcm=10
    qwfield sweep config.yaml --key poisson.field_kVcm --values 0 5 10 --out sweep.r
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from .io.config import (
    DiffusionRunConfig,
    PoissonRunConfig,
    POISSON_MODES,
    apply_overrides,
    diffusion_config,
    load_config,
    poisson_config,
)
from .physics.diffusivity import MODES as DIFFUSION_MODES
from .utils import logger as log
from .utils.constants import ANGSTROM, KV_PER_CM, MEV
from .utils.errors import QWFieldError
from .workflows.run_diffusion import run_diffusion
from .workflows.run_poisson import run_poisson
from .workflows.sweep import run_sweep

__all__ = ["main", "build_parser"]


# ---------------------------- diffuse subcommand -----------------------------


def _add_diffuse_subparser(
    subparsers: argparse._SubParsersAction,
) -> argparse.ArgumentParser:
    p = subparsers.add_parser(
        "diffuse", help="Solve the generalised diffusion equation"
    )
    p.add_argument("--dt", "-d", type=float, default=0.01, help="Time-step [s]")
    p.add_argument(
        "--coeff", "-D", type=float, default=1.0,
        help="Diffusion coefficient for constant mode [Angstrom^2/s]"
    )
    p.add_argument("--time", "-t", type=float, default=1.0, help="End time for simulation [s]")
    p.add_argument(
        "--mode", "-a", choices=DIFFUSION_MODES, default="constant",
        help="Form of diffusion coefficient"
    )
    p.add_argument("--k", type=float, default=1e-20, help="Concentration factor, D = k n^2")
    p.add_argument("--D0", type=float, default=10.0, help="Depth-dependent magnitude [Angstrom^2/s]")
    p.add_argument("--z0", type=float, default=1800.0, help="Depth-dependent centre [Angstrom]")
    p.add_argument("--sigma", type=float, default=600.0, help="Depth-dependent width [Angstrom]")
    p.add_argument(
        "--update", default=None,
        help="Time mode: coefficient update ('hold' or 'package.module:function')"
    )
    p.add_argument("--input", default="x.r", help="Initial concentration profile")
    p.add_argument("--output", default="X.r", help="Final concentration profile")
    p.add_argument("--coefficient-file", default="D.r", help="Diffusion coefficient profile (file/time modes)")
    p.add_argument("--png", default=None, help="Optional PNG plot output path")
    p.add_argument("--debug", action="store_true", help="Verbose solver prints")
    p.set_defaults(cmd="diffuse")
    return p


def _diffuse_config(ns: argparse.Namespace) -> DiffusionRunConfig:
    return DiffusionRunConfig(
        input_path=Path(ns.input),
        output_path=Path(ns.output),
        coefficient_path=Path(ns.coefficient_file),
        dt_s=ns.dt,
        t_final_s=ns.time,
        mode=ns.mode,
        D0_m2s=ns.coeff * ANGSTROM**2,
        k=ns.k,
        depth_D0_m2s=ns.D0 * ANGSTROM**2,
        depth_z0_m=ns.z0 * ANGSTROM,
        depth_sigma_m=ns.sigma * ANGSTROM,
        update=ns.update,
        png_path=Path(ns.png) if ns.png else None,
        debug=bool(ns.debug),
    )


# ---------------------------- poisson subcommand -----------------------------


def _add_poisson_subparser(
    subparsers: argparse._SubParsersAction,
) -> argparse.ArgumentParser:
    p = subparsers.add_parser(
        "poisson", help="Find the Poisson potential induced by a given charge profile"
    )
    p.add_argument("--uncharged", action="store_true", help="There is no charge in the structure")
    p.add_argument(
        "--centred", action="store_true",
        help="Pivot the potential around the centre of the structure"
    )
    p.add_argument(
        "--mode", choices=POISSON_MODES, default="auto",
        help="Boundary conditions (auto: dirichlet if --field is given, else zero-field)"
    )
    p.add_argument(
        "--mixed", dest="mode", action="store_const", const="mixed",
        help="Shorthand for --mode mixed"
    )
    p.add_argument(
        "--field", "-E", type=float, default=None,
        help="External electric field [kV/cm]; only give it if the voltage drop must be fixed"
    )
    p.add_argument(
        "--offset", type=float, default=None,
        help="Potential at the spatial point closest to the origin [meV]"
    )
    p.add_argument(
        "--ptype", action="store_true",
        help="Dopants are acceptors (charge sign inverted)"
    )
    p.add_argument("--dcpermittivityfile", default="eps_dc.r", help="DC permittivity profile [F/m]")
    p.add_argument("--chargefile", default="cd.r", help="Charge density profile [1/m^3]")
    p.add_argument(
        "--bandedgepotentialfile", default=None,
        help="Baseline potential [J] added to the Poisson potential"
    )
    p.add_argument("--poissonpotentialfile", default="v_p.r", help="Output: Poisson potential [J]")
    p.add_argument("--totalpotentialfile", default="v.r", help="Output: total potential [J]")
    p.add_argument("--fieldfile", default="field.r", help="Output: field profile [V/m]")
    p.add_argument("--png", default=None, help="Optional PNG plot output path")
    p.add_argument("--debug", action="store_true", help="Verbose solver prints")
    p.set_defaults(cmd="poisson")
    return p


def _poisson_config(ns: argparse.Namespace) -> PoissonRunConfig:
    return PoissonRunConfig(
        permittivity_path=Path(ns.dcpermittivityfile),
        charge_path=Path(ns.chargefile),
        uncharged=bool(ns.uncharged),
        mode=ns.mode,
        field_Vm=None if ns.field is None else ns.field * KV_PER_CM,
        centred=bool(ns.centred),
        offset_V=None if ns.offset is None else ns.offset * MEV,
        ptype=bool(ns.ptype),
        bandedge_path=Path(ns.bandedgepotentialfile) if ns.bandedgepotentialfile else None,
        poisson_potential_path=Path(ns.poissonpotentialfile),
        total_potential_path=Path(ns.totalpotentialfile),
        field_path=Path(ns.fieldfile),
        png_path=Path(ns.png) if ns.png else None,
        debug=bool(ns.debug),
    )


# ------------------------- run / sweep subcommands ---------------------------


def _add_run_subparser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    p = subparsers.add_parser("run", help="Run every section of a YAML config")
    p.add_argument("config", help="YAML configuration file")
    p.add_argument(
        "--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE",
        help="Override a config value, e.g. poisson.field_kVcm=5 (repeatable)"
    )
    p.set_defaults(cmd="run")
    return p


def _add_sweep_subparser(subparsers: argparse._SubParsersAction) -> argparse.ArgumentParser:
    p = subparsers.add_parser("sweep", help="Repeat a config run over a list of values")
    p.add_argument("config", help="YAML configuration file")
    p.add_argument("--key", required=True, help="Dotted key to sweep, e.g. poisson.field_kVcm")
    p.add_argument("--values", nargs="+", required=True, help="Values for the swept key")
    p.add_argument("--out", default="sweep.r", help="Summary table output path")
    p.set_defaults(cmd="sweep")
    return p


def _run_config(path: str, overrides: Sequence[str]) -> None:
    cfg = load_config(Path(path))
    if overrides:
        apply_overrides(cfg, overrides)
    if "diffusion" in cfg.raw:
        run_diffusion(diffusion_config(cfg))
    if "poisson" in cfg.raw:
        run_poisson(poisson_config(cfg))


# --------------------------------- main() ------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qwfield",
        description="qwfield: 1-D diffusion and Poisson solvers for layered structures",
    )
    sub = parser.add_subparsers(dest="cmd")
    _add_diffuse_subparser(sub)
    _add_poisson_subparser(sub)
    _add_run_subparser(sub)
    _add_sweep_subparser(sub)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)

    if ns.cmd is None:
        parser.print_help()
        return 2

    try:
        if ns.cmd == "diffuse":
            run_diffusion(_diffuse_config(ns))
        elif ns.cmd == "poisson":
            run_poisson(_poisson_config(ns))
        elif ns.cmd == "run":
            _run_config(ns.config, ns.overrides)
        elif ns.cmd == "sweep":
            run_sweep(Path(ns.config), ns.key, ns.values, Path(ns.out))
        else:
            parser.error(f"Unknown command: {ns.cmd}")
    except QWFieldError as exc:
        log.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
