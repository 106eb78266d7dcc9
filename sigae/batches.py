# -*- coding: utf-8 -*-
# Batch sources for the drivers: random {0,1} vectors, and .npz/.csv files holding one sample per row.
# The core never sees where a batch came from; it only gets the [rows, input_size] array.

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .config import Config
from .tensor_ops import as_batch

# ---- Generation --------------------------------------------------------------

def random_binary_batch(n: int, input_size: int, rng: np.random.Generator) -> np.ndarray:
    # Each element is 0.0 or 1.0 with equal probability
    return rng.integers(0, 2, size=(int(n), int(input_size))).astype(np.float64)

# ---- I/O ---------------------------------------------------------------------

def _columns(width: int) -> list[str]:
    return [f"x{i}" for i in range(width)]

def save_batch(path: str | os.PathLike, X: np.ndarray) -> str:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix.lower() == ".csv":
        pd.DataFrame(X, columns=_columns(X.shape[1])).to_csv(out_path, index=False)
    else:
        # file handle, so numpy does not append its own ".npz"
        with open(out_path, "wb") as f:
            np.savez_compressed(f, X=X.astype(np.float64))
    return str(out_path)

def load_batch(path: str | os.PathLike, input_size: Optional[int] = None) -> np.ndarray:
    """Read a batch from .npz (array "X") or .csv (header row, numeric columns).

    If input_size is given the batch is checked against it (DimensionMismatch).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Could not find batch at {p}")

    if p.suffix.lower() == ".csv":
        df = pd.read_csv(p)
        df = df.select_dtypes(include="number")
        X = df.to_numpy(dtype=np.float64)
    else:
        with np.load(str(p)) as d:
            X = d["X"]

    if input_size is None:
        input_size = X.shape[-1] if X.ndim else 0
    return as_batch(X, int(input_size), what=str(p))

# ---- Main -------------------------------------------------------------------

def make_batches(cfg: Config = Config(), seed: Optional[int] = None) -> tuple[str, str]:
    # train and test come from one generator, so the test rows are fresh draws
    rng = np.random.default_rng(cfg.seed if seed is None else seed)
    X_train = random_binary_batch(cfg.n_train, cfg.input_size, rng)
    X_test = random_binary_batch(cfg.n_test, cfg.input_size, rng)

    out_train = save_batch(cfg.train_batch, X_train)
    print(f"Saved: {out_train}  rows={X_train.shape[0]}  input_size={X_train.shape[1]}")
    out_test = save_batch(cfg.test_batch, X_test)
    print(f"Saved: {out_test}  rows={X_test.shape[0]}  input_size={X_test.shape[1]}")
    return out_train, out_test

def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--n_train", type=int, default=Config.n_train, help="rows in the train batch")
    parser.add_argument("--n_test", type=int, default=Config.n_test, help="rows in the test batch")
    parser.add_argument("--input_size", type=int, default=Config.input_size)
    parser.add_argument("--seed", type=int, default=None, help="fix the generator for reproducible batches")
    args = parser.parse_args()

    cfg = Config(n_train=args.n_train, n_test=args.n_test, input_size=args.input_size, seed=args.seed)
    make_batches(cfg)


if __name__ == "__main__":
    main()
