# qwfield/postprocess/visualization.py
"""
Lightweight plotting helper for sampled 1-D profiles.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Tuple

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

__all__ = ["plot_profiles"]


def _c64(x):
    return np.ascontiguousarray(np.asarray(x, dtype=np.float64))


def _to_nm(z_m: np.ndarray | float) -> np.ndarray:
    return _c64(z_m) * 1e9


def plot_profiles(
    z_m: Iterable[float],
    curves: Mapping[str, Iterable[float]],
    *,
    ylabel: str = "",
    ax: plt.Axes | None = None,
    title: str | None = None,
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot one or more profiles against z (axis in nm).

    Parameters
    ----------
    z_m : iterable of float
        Node coordinates [m].
    curves : mapping of label -> values
        Each value array must have the length of ``z_m``.
    ylabel : str
        Label for the value axis.
    ax : matplotlib Axes, optional
        If provided, plot into this axes; otherwise create a new figure.
    title : str, optional
        Title for the plot.

    Returns
    -------
    fig, ax : matplotlib Figure and Axes
    """
    z_nm = _to_nm(z_m)

    if ax is None:
        fig, ax = plt.subplots(figsize=(6.0, 3.2), constrained_layout=True)
    else:
        fig = ax.figure

    for label, values in curves.items():
        y = _c64(values)
        if y.shape != z_nm.shape:
            raise ValueError(f"Curve '{label}' has {y.size} points, z has {z_nm.size}")
        ax.plot(z_nm, y, label=label, linewidth=1.6)

    ax.set_xlabel("z (nm)")
    ax.set_ylabel(ylabel)
    if title:
        ax.set_title(title)

    ax.grid(True, which="both", linestyle=":", linewidth=0.6)
    if len(curves) > 1:
        ax.legend(frameon=False, loc="best")

    return fig, ax
