import numpy as np
import pytest
import torch as th

from sigae.errors import DimensionMismatch
from sigae.forward import forward
from sigae.gradients import compute_gradients
from sigae.params import init_parameters


def _sse(batch: np.ndarray, params) -> float:
    # the gradients are taken of the plain sum; the reported loss divides it by input_size
    out = forward(batch, params).reconstruction
    return float(np.sum((out - batch) ** 2))


def _setup(rows: int = 4, input_size: int = 5, latent_size: int = 3, seed: int = 0):
    rng = np.random.default_rng(seed)
    params = init_parameters(input_size, latent_size, seed=seed)
    # non-zero biases so their gradients are checked away from the origin
    params.b1[:] = rng.normal(0, 0.3, latent_size)
    params.b2[:] = rng.normal(0, 0.3, input_size)
    batch = rng.integers(0, 2, size=(rows, input_size)).astype(float)
    return batch, params


def test_gradients_match_finite_differences() -> None:
    batch, params = _setup()
    grads = compute_gradients(batch, forward(batch, params), params, workers=2)

    eps = 1e-6
    for (name, param), (_, analytic) in zip(params.items(), grads.items()):
        numeric = np.zeros_like(param)
        for idx in np.ndindex(param.shape):
            saved = param[idx]
            param[idx] = saved + eps
            up = _sse(batch, params)
            param[idx] = saved - eps
            down = _sse(batch, params)
            param[idx] = saved
            numeric[idx] = (up - down) / (2 * eps)
        np.testing.assert_allclose(analytic, numeric, atol=1e-6, err_msg=name)


def test_gradients_match_torch_autograd() -> None:
    batch, params = _setup(rows=7, input_size=8, latent_size=3, seed=11)
    grads = compute_gradients(batch, forward(batch, params), params)

    t = {name: th.tensor(arr, dtype=th.float64, requires_grad=True) for name, arr in params.items()}
    x = th.tensor(batch, dtype=th.float64)
    out = th.sigmoid(th.sigmoid(x @ t["W1"] + t["b1"]) @ t["W2"] + t["b2"])
    sse = ((out - x) ** 2).sum()
    sse.backward()

    assert grads.loss == pytest.approx(sse.item() / x.shape[1], rel=1e-12)
    for name, analytic in grads.items():
        np.testing.assert_allclose(analytic, t[name].grad.numpy(), rtol=1e-10, atol=1e-12, err_msg=name)


def test_worker_count_does_not_change_result() -> None:
    batch, params = _setup(rows=37, input_size=8, latent_size=3, seed=5)
    fwd = forward(batch, params)

    single = compute_gradients(batch, fwd, params, workers=1)
    for workers in (2, 4, 37, 100):
        multi = compute_gradients(batch, fwd, params, workers=workers)
        assert multi.loss == pytest.approx(single.loss, rel=1e-12)
        for (name, a), (_, b) in zip(single.items(), multi.items()):
            np.testing.assert_allclose(a, b, rtol=1e-10, atol=1e-12, err_msg=name)


def test_loss_is_divided_by_feature_count_only() -> None:
    batch, params = _setup(rows=3, input_size=6, latent_size=2, seed=8)
    one = compute_gradients(batch, forward(batch, params), params, workers=1)

    doubled = np.concatenate([batch, batch], axis=0)
    two = compute_gradients(doubled, forward(doubled, params), params, workers=1)

    out = forward(batch, params).reconstruction
    assert one.loss == pytest.approx(np.sum((out - batch) ** 2) / 6)
    # summed over rows, not averaged
    assert two.loss == pytest.approx(2 * one.loss)
    np.testing.assert_allclose(two.dW1, 2 * one.dW1)
    np.testing.assert_allclose(two.db2, 2 * one.db2)


def test_gradient_shapes_mirror_params() -> None:
    batch, params = _setup(rows=2, input_size=8, latent_size=3)
    grads = compute_gradients(batch, forward(batch, params), params)
    for (_, p), (_, g) in zip(params.items(), grads.items()):
        assert g.shape == p.shape


def test_forward_pass_from_other_batch_is_rejected() -> None:
    batch, params = _setup(rows=4)
    fwd_short = forward(batch[:2], params)
    with pytest.raises(DimensionMismatch):
        compute_gradients(batch, fwd_short, params)


def test_gradients_are_not_divided_by_feature_count() -> None:
    batch, params = _setup(rows=4, input_size=5, latent_size=3, seed=2)
    fwd = forward(batch, params)
    grads = compute_gradients(batch, fwd, params, workers=1)

    out = fwd.reconstruction
    expected_db2 = np.sum(2 * (out - batch) * out * (1 - out), axis=0)
    np.testing.assert_allclose(grads.db2, expected_db2, rtol=1e-12)
    assert grads.loss == pytest.approx(np.sum((out - batch) ** 2) / 5)
