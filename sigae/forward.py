# Forward pass: input -> sigmoid encoder -> latent -> sigmoid decoder -> reconstruction.

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .params import ModelParameters
from .tensor_ops import add_row_bias, as_batch, matmul, sigmoid


@dataclass(frozen=True)
class ForwardPass:
    """Everything one forward pass produces, kept so backprop does not recompute it.

    latent                 A1  [rows, latent]
    reconstruction         Out [rows, input]
    encoder_pre_activation Z1  [rows, latent]
    decoder_pre_activation Z2  [rows, input]
    """

    latent: np.ndarray
    reconstruction: np.ndarray
    encoder_pre_activation: np.ndarray
    decoder_pre_activation: np.ndarray


def _encode(x: np.ndarray, params: ModelParameters) -> tuple[np.ndarray, np.ndarray]:
    z1 = add_row_bias(matmul(x, params.W1), params.b1)
    return z1, sigmoid(z1)


def _decode(a1: np.ndarray, params: ModelParameters) -> tuple[np.ndarray, np.ndarray]:
    z2 = add_row_bias(matmul(a1, params.W2), params.b2)
    return z2, sigmoid(z2)


def forward(batch, params: ModelParameters) -> ForwardPass:
    x = as_batch(batch, params.input_size)
    z1, a1 = _encode(x, params)
    z2, out = _decode(a1, params)
    return ForwardPass(latent=a1, reconstruction=out, encoder_pre_activation=z1, decoder_pre_activation=z2)


def encode(batch, params: ModelParameters) -> np.ndarray:
    x = as_batch(batch, params.input_size)
    return _encode(x, params)[1]


def decode(latent, params: ModelParameters) -> np.ndarray:
    # latent can be any [rows, latent_size] matrix, not only one from encode()
    a1 = as_batch(latent, params.latent_size, what="latent")
    return _decode(a1, params)[1]
