# Save/restore ModelParameters as bytes or files.
# Two formats: numpy .npz (default) and a torch state dict (.pt). Both keep float64 exactly.

from __future__ import annotations

import io
import os
import pickle
import zipfile
from pathlib import Path

import numpy as np
import torch as th

from .errors import ShapeMismatch, StorageIOFailure
from .params import ModelParameters

_KEYS = ("W1", "b1", "W2", "b2")


def _fmt_for(path: str | os.PathLike) -> str:
    return "pt" if Path(path).suffix.lower() == ".pt" else "npz"


def _to_params(arrays: dict[str, np.ndarray]) -> ModelParameters:
    missing = [k for k in _KEYS if k not in arrays]
    if missing:
        raise StorageIOFailure(f"stored parameters are missing {missing}")
    return ModelParameters(*(np.array(arrays[k], dtype=np.float64) for k in _KEYS))


def save(params: ModelParameters, fmt: str = "npz") -> bytes:
    buf = io.BytesIO()
    if fmt == "npz":
        np.savez(
            buf,
            input_size=np.int64(params.input_size),
            latent_size=np.int64(params.latent_size),
            **{name: arr for name, arr in params.items()},
        )
    elif fmt == "pt":
        # no size header here; load() reads the sizes off the tensor shapes
        sd = {name: th.from_numpy(np.ascontiguousarray(arr, dtype=np.float64)) for name, arr in params.items()}
        th.save(sd, buf)
    else:
        raise ValueError(f"unknown parameter format {fmt!r}")
    return buf.getvalue()


def _read_npz(data: bytes) -> tuple[dict[str, np.ndarray], tuple[int, int] | None]:
    d = np.load(io.BytesIO(data), allow_pickle=False)
    if not isinstance(d, np.lib.npyio.NpzFile):
        raise ValueError("not an .npz archive")
    with d:
        arrays = {k: d[k] for k in d.files}
    if "input_size" in arrays and "latent_size" in arrays:
        return arrays, (int(arrays.pop("input_size")), int(arrays.pop("latent_size")))
    return arrays, None


def _read_pt(data: bytes) -> tuple[dict[str, np.ndarray], None]:
    sd = th.load(io.BytesIO(data), map_location="cpu", weights_only=True)
    if not isinstance(sd, dict):
        raise ValueError("not a state dict")
    for k, v in sd.items():
        if not isinstance(v, th.Tensor):
            raise ValueError(f"state dict entry {k!r} is {type(v).__name__}, not a tensor")
    return {k: v.detach().cpu().numpy() for k, v in sd.items()}, None


def load(data: bytes, *, input_size: int | None = None, latent_size: int | None = None, fmt: str = "npz") -> ModelParameters:
    """Decode parameters saved by save().

    Raises ShapeMismatch if the stored tensors disagree with each other or with
    the expected sizes, StorageIOFailure if the bytes cannot be decoded.
    """
    readers = {"npz": _read_npz, "pt": _read_pt}
    if fmt not in readers:
        raise ValueError(f"unknown parameter format {fmt!r}")
    try:
        arrays, stored = readers[fmt](data)
    except (OSError, ValueError, EOFError, RuntimeError, zipfile.BadZipFile, pickle.UnpicklingError) as e:
        raise StorageIOFailure(f"could not decode stored {fmt} parameters: {e}") from e

    params = _to_params(arrays)
    params.validate()
    if stored is not None and stored != (params.input_size, params.latent_size):
        raise ShapeMismatch(
            f"header says input_size={stored[0]} latent_size={stored[1]}, "
            f"tensors are {params.input_size}x{params.latent_size}"
        )
    params.validate(input_size, latent_size)
    return params


def save_file(params: ModelParameters, path: str | os.PathLike) -> None:
    data = save(params, _fmt_for(path))
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise StorageIOFailure(f"could not write {path}: {e}") from e


def load_file(path: str | os.PathLike, *, input_size: int | None = None, latent_size: int | None = None) -> ModelParameters:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise StorageIOFailure(f"could not read {path}: {e}") from e
    return load(data, input_size=input_size, latent_size=latent_size, fmt=_fmt_for(path))
