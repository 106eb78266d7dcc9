# Backpropagation for the sigmoid autoencoder, parallel over batch rows.
#
# The batch is cut into contiguous row chunks, one per worker. Each worker writes
# only to its own private accumulators (or to its own rows of a per-row buffer),
# so no gradient cell is ever shared between threads. After each phase I wait
# for every worker and then sum the private accumulators in chunk order.
#
# Loss is sum((Out - X)^2) / input_size: divided by the feature count only,
# not by the number of rows. The gradients are those of the undivided sum
# (dOut = 2 * (Out - X) * sigmoid'(Z2)); only the reported loss carries the 1/input_size.

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import DimensionMismatch
from .forward import ForwardPass
from .parallel import resolve_workers, row_chunks, run_chunks
from .params import ModelParameters
from .tensor_ops import as_batch, matmul, sigmoid_derivative


@dataclass
class Gradients:
    dW1: np.ndarray
    db1: np.ndarray
    dW2: np.ndarray
    db2: np.ndarray
    loss: float

    def items(self) -> list[tuple[str, np.ndarray]]:
        # same names/order as ModelParameters.items()
        return [("W1", self.dW1), ("b1", self.db1), ("W2", self.dW2), ("b2", self.db2)]


def _reduce(partials: Sequence[np.ndarray], shape: tuple[int, ...]) -> np.ndarray:
    acc = np.zeros(shape, dtype=np.float64)
    for p in partials:
        acc += p
    return acc


def _check_forward(x: np.ndarray, fwd: ForwardPass, params: ModelParameters) -> None:
    rows = x.shape[0]
    expected = {
        "latent": (rows, params.latent_size),
        "encoder_pre_activation": (rows, params.latent_size),
        "reconstruction": (rows, params.input_size),
        "decoder_pre_activation": (rows, params.input_size),
    }
    for name, shape in expected.items():
        got = getattr(fwd, name).shape
        if tuple(got) != shape:
            raise DimensionMismatch(f"forward pass {name} has shape {got}, expected {shape}")


def compute_gradients(batch, fwd: ForwardPass, params: ModelParameters, *, workers: int | None = None) -> Gradients:
    """Loss and the four parameter gradients for one batch.

    `fwd` must come from forward(batch, params) with the same, not yet updated,
    params. `workers` caps the thread count (None = os.cpu_count()); the result
    does not depend on it beyond float summation order.
    """
    x = as_batch(batch, params.input_size)
    _check_forward(x, fwd, params)

    a1 = fwd.latent
    out = fwd.reconstruction
    z1 = fwd.encoder_pre_activation
    z2 = fwd.decoder_pre_activation
    W2 = params.W2

    n_rows = x.shape[0]
    chunks = row_chunks(n_rows, resolve_workers(n_rows, workers))

    # per-row buffers; each worker fills only its own rows
    d_out = np.empty_like(out)
    d_a1 = np.empty_like(a1)

    def _output_rows(start: int, stop: int) -> float:
        diff = out[start:stop] - x[start:stop]
        d_out[start:stop] = 2.0 * diff * sigmoid_derivative(z2[start:stop])
        return float(np.sum(diff * diff))

    def _decoder_rows(start: int, stop: int) -> tuple[np.ndarray, np.ndarray]:
        g = d_out[start:stop]
        dW2 = matmul(a1[start:stop].T, g)  # [latent, input]
        db2 = g.sum(axis=0)
        # hidden backprop has no cross-row dependency, so it rides along here
        d_a1[start:stop] = sigmoid_derivative(z1[start:stop]) * matmul(g, W2.T)
        return dW2, db2

    def _encoder_rows(start: int, stop: int) -> tuple[np.ndarray, np.ndarray]:
        g = d_a1[start:stop]
        return matmul(x[start:stop].T, g), g.sum(axis=0)  # [input, latent], [latent]

    pool = ThreadPoolExecutor(max_workers=len(chunks)) if len(chunks) > 1 else None
    try:
        sq_err = run_chunks(_output_rows, chunks, pool)
        loss = sum(sq_err) / params.input_size

        dec = run_chunks(_decoder_rows, chunks, pool)
        dW2 = _reduce([p[0] for p in dec], params.W2.shape)
        db2 = _reduce([p[1] for p in dec], params.b2.shape)

        enc = run_chunks(_encoder_rows, chunks, pool)
        dW1 = _reduce([p[0] for p in enc], params.W1.shape)
        db1 = _reduce([p[1] for p in enc], params.b1.shape)
    finally:
        if pool is not None:
            pool.shutdown(wait=True)

    return Gradients(dW1=dW1, db1=db1, dW2=dW2, db2=db2, loss=float(loss))
