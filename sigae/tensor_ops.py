# Dense tensor primitives used by the forward and gradient engines.
# Everything here is pure: no globals, no in-place writes to the inputs.

from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import DimensionMismatch


def sigmoid(x: np.ndarray) -> np.ndarray:
    """Logistic sigmoid, stable for large |x|.

    exp() only ever sees non-positive arguments, so nothing overflows:
      x >= 0 -> 1 / (1 + e^-x)
      x <  0 -> e^x / (1 + e^x)
    """
    x = np.asarray(x, dtype=np.float64)
    e = np.exp(-np.abs(x))
    return np.where(x >= 0, 1.0 / (1.0 + e), e / (1.0 + e))


def sigmoid_derivative(x: np.ndarray) -> np.ndarray:
    # x is the pre-activation (Z1/Z2), not the activation
    s = sigmoid(x)
    return s * (1.0 - s)


def matmul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    if a.ndim != 2 or b.ndim != 2:
        raise DimensionMismatch(f"matmul needs 2-D operands, got {a.shape} and {b.shape}")
    if a.shape[1] != b.shape[0]:
        raise DimensionMismatch(f"matmul: {a.shape} x {b.shape} (inner dims {a.shape[1]} != {b.shape[0]})")
    return a @ b


def add_row_bias(m: np.ndarray, bias: np.ndarray) -> np.ndarray:
    if m.ndim != 2 or bias.ndim != 1:
        raise DimensionMismatch(f"add_row_bias needs a matrix and a vector, got {m.shape} and {bias.shape}")
    if bias.shape[0] != m.shape[1]:
        raise DimensionMismatch(f"add_row_bias: bias length {bias.shape[0]} != {m.shape[1]} columns")
    return m + bias[np.newaxis, :]


def as_batch(batch: np.ndarray | Sequence[Sequence[float]], width: int, what: str = "batch") -> np.ndarray:
    """Return `batch` as a float64 [rows, width] array.

    A single 1-D sample is promoted to one row. Ragged samples, an empty batch,
    or a sample length other than `width` raise DimensionMismatch.
    """
    try:
        x = np.asarray(batch, dtype=np.float64)
    except ValueError as e:
        # numpy refuses inhomogeneous nested sequences
        raise DimensionMismatch(f"{what}: samples have different lengths") from e

    if x.ndim == 1:
        x = x.reshape(1, -1)
    if x.ndim != 2:
        raise DimensionMismatch(f"{what}: expected [rows, {width}], got shape {x.shape}")
    if x.shape[0] == 0:
        raise DimensionMismatch(f"{what}: empty batch")
    if x.shape[1] != width:
        raise DimensionMismatch(f"{what}: sample length {x.shape[1]} != expected {width}")
    return x
