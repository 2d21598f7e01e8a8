"""Evaluation metrics computed over a whole dataset after training."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

import numpy as np

from ..core.types import Array


def default_metrics(task_type: str) -> List[str]:
    if task_type == "regression":
        return ["mae", "rmse", "r2"]
    if task_type == "binary":
        return ["accuracy", "mae"]
    raise ValueError(f"Unknown task type: {task_type}")


def compute_metric(name: str, predictions: Array, targets: Array) -> float:
    key = name.lower()
    preds = np.asarray(predictions, dtype=np.float64)
    targs = np.asarray(targets, dtype=np.float64)
    if preds.shape != targs.shape:
        raise ValueError(f"predictions {preds.shape} and targets {targs.shape} differ in shape")
    if preds.size == 0:
        return 0.0
    if key == "mae":
        return float(np.mean(np.abs(preds - targs)))
    if key == "rmse":
        return float(np.sqrt(np.mean((preds - targs) ** 2)))
    if key == "r2":
        mean = np.mean(targs, axis=0, keepdims=True)
        ss_res = float(np.sum((targs - preds) ** 2))
        ss_tot = float(np.sum((targs - mean) ** 2))
        return 1.0 if ss_tot == 0 else float(1 - ss_res / ss_tot)
    if key == "accuracy":
        # Outputs are compared against 0/1 targets at a 0.5 threshold.
        return float(np.mean((preds >= 0.5) == (targs >= 0.5)))
    raise KeyError(f"Unknown metric: {name}")


def compute_metrics(names: Iterable[str], predictions: Array, targets: Array) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        results[name.lower()] = compute_metric(name, predictions, targets)
    return results


__all__ = ["compute_metric", "compute_metrics", "default_metrics"]
