# Evaluate an already trained autoencoder on the train and test batches.
# I score both the raw reconstruction (loss, per-sample MSE) and the bits after thresholding.

from __future__ import annotations

import json
import time
from pathlib import Path

import numpy as np
from sklearn.metrics import precision_recall_fscore_support

from .batches import load_batch
from .config import Config
from .model_autoencoder import Autoencoder
from .utils import binarize, format_vector

P = Path


def _p(*xs) -> str:
    return str(P(*xs))


def _recon_errs(recon: np.ndarray, X: np.ndarray) -> np.ndarray:
    """Reconstruction MSE per sample. Returns: (N,) float64"""
    return np.mean((recon - X) ** 2, axis=1)


def _batch_loss(recon: np.ndarray, X: np.ndarray) -> float:
    # same normalization as training: summed over rows, divided by feature count
    return float(np.sum((recon - X) ** 2) / X.shape[1])


def _bit_scores(X: np.ndarray, bits: np.ndarray) -> dict:
    y = binarize(X).astype(int).ravel()
    yhat = bits.astype(int).ravel()
    p, r, f1, _ = precision_recall_fscore_support(y, yhat, average="binary", zero_division=0)
    return dict(
        bit_accuracy=float((y == yhat).mean()),
        exact_rows=int(np.all(bits == binarize(X), axis=1).sum()),
        precision=float(p),
        recall=float(r),
        f1=float(f1),
    )


def _split_report(model: Autoencoder, X: np.ndarray, threshold: float) -> dict:
    recon = model.forward(X).reconstruction
    bits = binarize(recon, threshold)
    errs = _recon_errs(recon, X)
    out = {
        "rows": int(X.shape[0]),
        "loss": _batch_loss(recon, X),
        "err_median": float(np.median(errs)),
        "err_max": float(np.max(errs)),
    }
    out.update(_bit_scores(X, bits))
    return out


def _print_reconstructions(tag: str, model: Autoencoder, X: np.ndarray, threshold: float) -> None:
    print(f"\n=== Reconstruction on {tag} data ===")
    bits = model.reconstruct(X, threshold)
    for i in range(X.shape[0]):
        print(f"[{tag} {i}] input={format_vector(X[i])}  recon={format_vector(bits[i])}")


def run_eval(run_dir: str, cfg_override: dict | None = None):
    # Config
    with open(_p(run_dir, "cfg.json")) as f:
        cfg_dict = json.load(f)
    cfg = Config(**cfg_dict)
    if cfg_override:
        for k, v in cfg_override.items():
            setattr(cfg, k, v)

    # Model
    model = Autoencoder(cfg.input_size, cfg.latent_size, workers=cfg.workers)
    model.load(_p(run_dir, cfg.params_file))

    # Batches
    X_tr = load_batch(cfg.train_batch, cfg.input_size)
    X_te = load_batch(cfg.test_batch, cfg.input_size)

    out = {
        "input_size": int(cfg.input_size),
        "latent_size": int(cfg.latent_size),
        "threshold": float(cfg.threshold),
        "train": _split_report(model, X_tr, cfg.threshold),
        "test": _split_report(model, X_te, cfg.threshold),
    }

    losses_path = P(run_dir) / "losses.npy"
    if losses_path.exists():
        losses = np.load(str(losses_path))
        if len(losses):
            out["first_train_loss"] = float(losses[0])
            out["last_train_loss"] = float(losses[-1])

    # Single batch latency probe
    sample = np.concatenate([X_tr, X_te], axis=0)
    for _ in range(5):
        _ = model.forward(sample)
    t0 = time.perf_counter()
    _ = model.forward(sample)
    out["latency_ms_sample"] = (time.perf_counter() - t0) * 1000.0

    _print_reconstructions("train", model, X_tr, cfg.threshold)
    _print_reconstructions("test", model, X_te, cfg.threshold)

    with open(_p(run_dir, "metrics.json"), "w") as f:
        json.dump(out, f, indent=2)
    print(json.dumps(out, indent=2))
    return out


if __name__ == "__main__":
    exp = P(Config.out_dir)
    runs = sorted([p for p in exp.iterdir() if p.name.startswith("run_")]) if exp.is_dir() else []
    if not runs:
        raise SystemExit("No run_* folder under experiments/. Train first: python -m sigae.train")
    latest = str(runs[-1])
    run_eval(latest)
