# Plain SGD: param -= lr * grad, in place, one task per parameter group.

from __future__ import annotations

from typing import Callable

import numpy as np

from .errors import DimensionMismatch
from .gradients import Gradients
from .parallel import run_tasks
from .params import ModelParameters


def _sgd_update(param: np.ndarray, grad: np.ndarray, lr: float) -> Callable[[], None]:
    def _apply() -> None:
        np.subtract(param, lr * grad, out=param)

    return _apply


def apply_update(params: ModelParameters, grads: Gradients, lr: float, *, workers: int | None = None) -> None:
    # I check every shape before touching anything, so a bad gradient never half-applies.
    pairs = list(zip(params.items(), grads.items()))
    for (name, param), (_, grad) in pairs:
        if grad.shape != param.shape:
            raise DimensionMismatch(f"gradient for {name} has shape {grad.shape}, parameter is {param.shape}")

    # the four groups own disjoint memory
    run_tasks([_sgd_update(param, grad, float(lr)) for (_, param), (_, grad) in pairs], workers)
