# Small helpers I reuse across the drivers.

from __future__ import annotations

import os

import numpy as np


def binarize(x: np.ndarray, threshold: float = 0.5) -> np.ndarray:
    # Strictly above the threshold -> 1.0, else 0.0. Applied to every row.
    return (np.asarray(x, dtype=np.float64) > float(threshold)).astype(np.float64)


def format_vector(v, digits: int = 3) -> str:
    # I print whole numbers without decimals so {0,1} inputs stay readable.
    parts = []
    for x in np.asarray(v, dtype=np.float64).ravel():
        parts.append(str(int(x)) if float(x).is_integer() else f"{x:.{digits}f}")
    return "[" + " ".join(parts) + "]"


def _join(*parts: str | os.PathLike) -> str:
    return os.path.join(*map(str, parts))
