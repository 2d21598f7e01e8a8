"""Core typing contracts for DenseNets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Protocol

import numpy as np

Array = np.ndarray


class EpochCallback(Protocol):
    """Observer notified once per training epoch."""

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        """Receive the 1-based ``epoch`` and its aggregated ``metrics``."""


@dataclass(frozen=True)
class ModelDescription:
    """Widths of every stage, input first and output last."""

    layer_dims: List[int]
    activations: List[str]
    loss: str


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`densenets.training.pipelines.run_pipeline`."""

    epochs: int
    final_loss: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    evaluation_path: str = ""
