# Train the autoencoder on the batch written by `python -m sigae.batches`.
# I write all artifacts into a timestamped run directory under experiments/.

from __future__ import annotations
import os, time, json
from dataclasses import asdict

import numpy as np

from .batches import load_batch
from .config import Config
from .model_autoencoder import Autoencoder
from .utils import _join


def _make_run_dir(out_dir: str) -> str:
    os.makedirs(out_dir, exist_ok=True)
    stamp = time.strftime("%Y%m%d_%H%M%S")
    run_dir = _join(out_dir, f"run_{stamp}")
    # Two runs inside the same second get a numeric suffix instead of sharing a folder
    n = 1
    while os.path.exists(run_dir):
        run_dir = _join(out_dir, f"run_{stamp}_{n}")
        n += 1
    os.makedirs(run_dir)
    return run_dir


def run_train(cfg: Config = Config()):
    run_dir = _make_run_dir(cfg.out_dir)

    X = load_batch(cfg.train_batch, cfg.input_size)

    model = Autoencoder(cfg.input_size, cfg.latent_size, seed=cfg.seed, workers=cfg.workers)

    # Train: one step = one pass over the whole batch
    losses = []
    for ep in range(cfg.epochs):
        loss = model.train_step(X, cfg.lr)
        losses.append(loss)
        if cfg.report_every and ep % cfg.report_every == 0:
            print(f"[{ep:04d}/{cfg.epochs:04d}] loss={loss:.6f}")
    if losses:
        print(f"[{cfg.epochs:04d}/{cfg.epochs:04d}] loss={losses[-1]:.6f}")

    # Save artifacts
    model.save(_join(run_dir, cfg.params_file))
    np.save(_join(run_dir, "losses.npy"), np.array(losses, dtype=np.float64))

    # Save the effective config
    with open(_join(run_dir, "cfg.json"), "w") as f:
        json.dump(asdict(cfg), f, indent=2)

    print("Saved run to", run_dir)
    return run_dir


if __name__ == "__main__":
    run_train()
