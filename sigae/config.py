# Central configuration for batch paths, model sizes, training, and runtime.
# Every field is a plain scalar or string so the whole Config round-trips through cfg.json.

from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    # Batch files (written by `python -m sigae.batches`)
    train_batch: str = r"data/processed/train_batch.npz"
    test_batch:  str = r"data/processed/test_batch.npz"

    # Synthetic batch generation
    n_train: int = 10
    n_test:  int = 5

    # Model settings
    input_size:  int = 8
    latent_size: int = 3

    # Training (every step sees the whole train batch)
    lr: float = 0.05
    epochs: int = 2000
    report_every: int = 200

    # Reconstruction -> bits
    threshold: float = 0.5

    # Runtime
    workers: Optional[int] = None   # None -> os.cpu_count()
    seed:    Optional[int] = None
    out_dir: str = r"experiments"
    params_file: str = "params.npz"   # ".pt" saves a torch state dict instead
