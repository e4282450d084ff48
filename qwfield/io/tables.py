# -*- coding: utf-8 -*-
"""
Plain column tables exchanged with the rest of the tool chain.

Format: whitespace- or comma-separated numbers, no header, '#' comments.
  column 1: position z [m]
  column 2..: one value per quantity (concentration, permittivity, ...)

Writes go through a temporary file in the target directory followed by an
atomic rename, so a failed write never leaves a half-written table behind.
"""
from __future__ import annotations
import os
import tempfile
from pathlib import Path
from typing import Tuple

import numpy as np
import pandas as pd

from ..utils.errors import ConfigurationError, ProfileShapeError

__all__ = ["read_table", "read_xy", "write_table"]

_SEP = r"[\s,]+"


def read_table(path: Path | str, ncols: int = 2) -> Tuple[np.ndarray, ...]:
    """
    Read the first ``ncols`` columns of a numeric table as float64 arrays.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Required input table not found: {path}")
    try:
        df = pd.read_csv(path, sep=_SEP, header=None, comment="#", engine="python")
    except pd.errors.EmptyDataError:
        raise ProfileShapeError(f"Table {path} is empty.") from None
    # uniformly indented or trailing-space files carry an all-NaN edge column
    df = df.dropna(axis=1, how="all")
    if df.shape[1] < ncols:
        raise ProfileShapeError(f"Table {path} has {df.shape[1]} columns, expected at least {ncols}.")
    try:
        data = df.iloc[:, :ncols].to_numpy(dtype=np.float64)
    except ValueError as exc:
        raise ProfileShapeError(f"Table {path} contains non-numeric entries: {exc}") from exc
    if np.isnan(data).any():
        raise ProfileShapeError(f"Table {path} has missing values.")
    return tuple(np.ascontiguousarray(data[:, j]) for j in range(ncols))


def read_xy(path: Path | str) -> Tuple[np.ndarray, np.ndarray]:
    z, y = read_table(path, ncols=2)
    return z, y


def write_table(path: Path | str, z: np.ndarray, *columns: np.ndarray, fmt: str = "%.10e") -> Path:
    """
    Write z and value columns side by side (tab separated).
    """
    path = Path(path)
    arrays = [np.asarray(z, dtype=np.float64)] + [np.asarray(c, dtype=np.float64) for c in columns]
    for i, a in enumerate(arrays[1:], start=2):
        if a.shape != arrays[0].shape:
            raise ProfileShapeError(
                f"Column {i} of {path} has {a.size} points but the position column has {arrays[0].size}."
            )
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w") as f:
            np.savetxt(f, np.column_stack(arrays), fmt=fmt, delimiter="\t")
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    return path
