# -*- coding: utf-8 -*-
"""
Parameter sweep.

Re-runs one section of a YAML config for each value of a single dotted key
(e.g. ``poisson.field_kVcm``) and collects one summary row per run:

  diffusion:  value, peak concentration, rms width [m], elapsed time [s]
  poisson:    value, applied drop [V] (nan if none), space-charge drop [V],
              min/max potential energy [eV]
"""
from __future__ import annotations
import copy
from pathlib import Path
from typing import Sequence

import numpy as np

from qwfield.io.config import RunConfig, apply_overrides, diffusion_config, load_config, poisson_config
from qwfield.io.tables import write_table
from qwfield.utils import logger as log
from qwfield.utils.errors import ConfigurationError
from qwfield.workflows.run_diffusion import run_diffusion
from qwfield.workflows.run_poisson import run_poisson


def _rms_width(z: np.ndarray, n: np.ndarray) -> float:
    w = np.abs(n)
    total = float(np.sum(w))
    if total == 0.0:
        return 0.0
    mean = float(np.sum(w * z) / total)
    return float(np.sqrt(np.sum(w * (z - mean) ** 2) / total))


def _summarise(section: str, cfg: RunConfig) -> list[float]:
    if section == "diffusion":
        res = run_diffusion(diffusion_config(cfg))
        return [float(np.max(res.n)), _rms_width(res.z, res.n), float(res.t)]
    res = run_poisson(poisson_config(cfg))
    drop = np.nan if res.V_drop is None else float(res.V_drop)
    return [drop, float(res.intrinsic_drop), float(np.min(res.phi)), float(np.max(res.phi))]


def run_sweep(cfg_path: Path, key: str, values: Sequence[str], out_path: Path) -> np.ndarray:
    """
    Run the section named by the first component of ``key`` once per value and
    write the collected rows to ``out_path``. Returns the table.
    """
    section = key.split(".", 1)[0]
    if section not in ("diffusion", "poisson") or "." not in key:
        raise ConfigurationError(f"Sweep key '{key}' must look like 'diffusion.<key>' or 'poisson.<key>'")
    if not values:
        raise ConfigurationError("Sweep needs at least one value")

    base = load_config(cfg_path)
    log.info(f"[sweep] base={cfg_path}, key={key}, {len(values)} value(s)")

    rows = []
    for text in values:
        cfg = apply_overrides(RunConfig(raw=copy.deepcopy(base.raw), path=base.path), [f"{key}={text}"])
        try:
            x = float(text)
        except ValueError:
            raise ConfigurationError(f"Sweep value '{text}' is not numeric") from None
        rows.append([x] + _summarise(section, cfg))
        log.info(f"[sweep] {key}={text} done")

    table = np.asarray(rows, dtype=np.float64)
    write_table(out_path, table[:, 0], *table[:, 1:].T)
    log.info(f"[sweep] wrote {out_path}")
    return table
