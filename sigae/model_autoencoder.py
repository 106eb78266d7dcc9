# One-hidden-layer sigmoid autoencoder trained with hand-written backprop and SGD.
# The model owns its ModelParameters; a training step is forward -> gradients -> update, strictly in that order.

from __future__ import annotations

import os

import numpy as np

from . import persistence
from .forward import ForwardPass, decode, encode, forward
from .gradients import compute_gradients
from .optimizer import apply_update
from .params import ModelParameters, init_parameters
from .utils import binarize


def train_step(batch, params: ModelParameters, lr: float, *, workers: int | None = None) -> float:
    """One SGD step on `batch`; returns the loss measured before the update.

    params are only written after every gradient is fully reduced, so an error
    in the forward or gradient phase leaves them untouched. Do not run two
    steps on the same params concurrently.
    """
    fwd = forward(batch, params)
    grads = compute_gradients(batch, fwd, params, workers=workers)
    apply_update(params, grads, lr, workers=workers)
    return grads.loss


class Autoencoder:
    def __init__(
        self,
        input_size: int,
        latent_size: int,
        *,
        seed: int | None = None,
        workers: int | None = None,
        params: ModelParameters | None = None,
    ):
        if params is None:
            params = init_parameters(input_size, latent_size, seed)
        else:
            params.validate(input_size, latent_size)
        self._input_size = int(input_size)
        self._latent_size = int(latent_size)
        self._params = params
        # None -> os.cpu_count(); 1 -> everything inline
        self.workers = workers

    @property
    def input_size(self) -> int:
        return self._input_size

    @property
    def latent_size(self) -> int:
        return self._latent_size

    @property
    def params(self) -> ModelParameters:
        return self._params

    def forward(self, batch) -> ForwardPass:
        return forward(batch, self._params)

    def encode(self, batch) -> np.ndarray:
        return encode(batch, self._params)

    def decode(self, latent) -> np.ndarray:
        return decode(latent, self._params)

    def train_step(self, batch, lr: float) -> float:
        return train_step(batch, self._params, lr, workers=self.workers)

    def reconstruct(self, batch, threshold: float = 0.5) -> np.ndarray:
        # I binarize every row, outside the forward pass
        return binarize(self.forward(batch).reconstruction, threshold)

    def save(self, path: str | os.PathLike) -> None:
        persistence.save_file(self._params, path)

    def load(self, path: str | os.PathLike) -> None:
        # read + validate fully, then swap the whole set in one assignment
        restored = persistence.load_file(path, input_size=self._input_size, latent_size=self._latent_size)
        self._params = restored

    @classmethod
    def from_file(cls, path: str | os.PathLike, *, workers: int | None = None) -> "Autoencoder":
        params = persistence.load_file(path)
        return cls(params.input_size, params.latent_size, workers=workers, params=params)
