# Learned parameters of the one-hidden-layer autoencoder.
# Encoder: W1 [input, latent], b1 [latent]. Decoder: W2 [latent, input], b2 [input].

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .errors import ShapeMismatch


@dataclass
class ModelParameters:
    W1: np.ndarray
    b1: np.ndarray
    W2: np.ndarray
    b2: np.ndarray

    @property
    def input_size(self) -> int:
        return int(self.W1.shape[0])

    @property
    def latent_size(self) -> int:
        return int(self.W1.shape[1])

    def shapes(self) -> dict[str, tuple[int, ...]]:
        return {name: tuple(arr.shape) for name, arr in self.items()}

    def items(self) -> list[tuple[str, np.ndarray]]:
        return [("W1", self.W1), ("b1", self.b1), ("W2", self.W2), ("b2", self.b2)]

    def copy(self) -> "ModelParameters":
        return ModelParameters(self.W1.copy(), self.b1.copy(), self.W2.copy(), self.b2.copy())

    def validate(self, input_size: int | None = None, latent_size: int | None = None) -> None:
        """Check the four tensors agree with each other and, if given, with the expected sizes."""
        if self.W1.ndim != 2:
            raise ShapeMismatch(f"W1 must be 2-D, got shape {self.W1.shape}")
        n_in, n_lat = self.W1.shape
        expected = {
            "W1": (n_in, n_lat),
            "b1": (n_lat,),
            "W2": (n_lat, n_in),
            "b2": (n_in,),
        }
        for name, arr in self.items():
            if tuple(arr.shape) != expected[name]:
                raise ShapeMismatch(f"{name} has shape {arr.shape}, expected {expected[name]}")

        if input_size is not None and n_in != int(input_size):
            raise ShapeMismatch(f"stored input_size={n_in}, model expects {input_size}")
        if latent_size is not None and n_lat != int(latent_size):
            raise ShapeMismatch(f"stored latent_size={n_lat}, model expects {latent_size}")


def _xavier(rng: np.random.Generator, rows: int, cols: int) -> np.ndarray:
    # Xavier/Glorot normal, suits sigmoid layers
    scale = math.sqrt(2.0 / (rows + cols))
    return rng.standard_normal((rows, cols)) * scale


def init_parameters(input_size: int, latent_size: int, seed: int | None = None) -> ModelParameters:
    """Small random weights, zero biases."""
    if input_size < 1 or latent_size < 1:
        raise ValueError(f"input_size and latent_size must be positive, got {input_size}, {latent_size}")
    rng = np.random.default_rng(seed)
    return ModelParameters(
        W1=_xavier(rng, input_size, latent_size),
        b1=np.zeros(latent_size, dtype=np.float64),
        W2=_xavier(rng, latent_size, input_size),
        b2=np.zeros(input_size, dtype=np.float64),
    )
