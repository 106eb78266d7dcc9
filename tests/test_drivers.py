import json
from pathlib import Path

import numpy as np
import pytest

from sigae.batches import load_batch, make_batches, random_binary_batch, save_batch
from sigae.config import Config
from sigae.errors import DimensionMismatch
from sigae.evaluate import run_eval
from sigae.train import run_train
from sigae.utils import binarize, format_vector


def _cfg(tmp_path, **kw) -> Config:
    base = dict(
        train_batch=str(tmp_path / "data" / "train_batch.npz"),
        test_batch=str(tmp_path / "data" / "test_batch.npz"),
        out_dir=str(tmp_path / "experiments"),
        epochs=60,
        report_every=20,
        seed=0,
        workers=2,
    )
    base.update(kw)
    return Config(**base)


def test_random_binary_batch_values() -> None:
    X = random_binary_batch(10, 8, np.random.default_rng(0))
    assert X.shape == (10, 8)
    assert set(np.unique(X)) <= {0.0, 1.0}


def test_csv_batch_round_trip(tmp_path) -> None:
    X = random_binary_batch(5, 4, np.random.default_rng(1))
    path = save_batch(tmp_path / "b.csv", X)
    np.testing.assert_array_equal(load_batch(path, 4), X)


def test_load_batch_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_batch(tmp_path / "nope.npz")

    path = save_batch(tmp_path / "b.npz", np.zeros((3, 7)))
    with pytest.raises(DimensionMismatch):
        load_batch(path, 8)


def test_make_batches_is_reproducible(tmp_path) -> None:
    cfg = _cfg(tmp_path)
    train_a, test_a = make_batches(cfg, seed=3)
    X_train, X_test = load_batch(train_a, 8), load_batch(test_a, 8)
    assert X_train.shape == (cfg.n_train, 8)
    assert X_test.shape == (cfg.n_test, 8)

    make_batches(cfg, seed=3)
    np.testing.assert_array_equal(load_batch(train_a, 8), X_train)


def test_train_requires_batch_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        run_train(_cfg(tmp_path))


@pytest.mark.parametrize("params_file", ["params.npz", "params.pt"])
def test_train_then_evaluate(tmp_path, capsys, params_file: str) -> None:
    cfg = _cfg(tmp_path, params_file=params_file)
    make_batches(cfg)

    run_dir = run_train(cfg)

    for name in (params_file, "losses.npy", "cfg.json"):
        assert (Path(run_dir) / name).exists()
    losses = np.load(f"{run_dir}/losses.npy")
    assert len(losses) == cfg.epochs
    assert losses[-1] < losses[0]
    assert "loss=" in capsys.readouterr().out

    out = run_eval(run_dir)
    with open(f"{run_dir}/metrics.json") as f:
        saved = json.load(f)
    assert saved["train"]["rows"] == cfg.n_train
    assert saved["test"]["rows"] == cfg.n_test
    assert 0.0 <= out["train"]["bit_accuracy"] <= 1.0
    assert out["last_train_loss"] == pytest.approx(float(losses[-1]))
    assert "=== Reconstruction on test data ===" in capsys.readouterr().out


def test_two_runs_get_separate_folders(tmp_path) -> None:
    cfg = _cfg(tmp_path, epochs=2)
    make_batches(cfg)
    assert run_train(cfg) != run_train(cfg)


def test_binarize_and_format() -> None:
    np.testing.assert_array_equal(binarize([[0.2, 0.5, 0.51]]), [[0.0, 0.0, 1.0]])
    assert format_vector([0.0, 1.0, 0.25]) == "[0 1 0.250]"
