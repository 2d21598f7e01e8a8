"""Pure in-memory synthetic datasets."""

from __future__ import annotations

import numpy as np

from .registry import DataSpec, DatasetSpec, register_dataset


@register_dataset("sine")
def make_sine(
    freq: float = 1.0,
    n_points: int = 64,
    noise: float = 0.05,
    seed: int = 0,
) -> DatasetSpec:
    """Samples of ``sin(freq * pi * x)`` on ``[-1, 1]`` with Gaussian noise."""

    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, int(n_points), dtype=np.float32).reshape(-1, 1)
    y = np.sin(freq * np.pi * x) + noise * rng.standard_normal(size=x.shape)
    return DatasetSpec(
        name="sine",
        inputs=x,
        targets=y.astype(np.float32),
        data_spec=DataSpec(input_size=1, output_size=1),
        provenance={"type": "sine", "freq": freq, "n_points": int(n_points), "noise": noise, "seed": seed},
    )


@register_dataset("linear")
def make_linear(
    slope: float = 3.0,
    intercept: float = 0.0,
    n_points: int = 32,
    noise: float = 0.0,
    seed: int = 0,
) -> DatasetSpec:
    """Points on the line ``slope * x + intercept`` for ``x`` in ``[-1, 1]``."""

    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, int(n_points), dtype=np.float32).reshape(-1, 1)
    y = slope * x + intercept + noise * rng.standard_normal(size=x.shape)
    return DatasetSpec(
        name="linear",
        inputs=x,
        targets=y.astype(np.float32),
        data_spec=DataSpec(input_size=1, output_size=1),
        provenance={
            "type": "linear",
            "slope": slope,
            "intercept": intercept,
            "n_points": int(n_points),
            "noise": noise,
            "seed": seed,
        },
    )


@register_dataset("xor")
def make_xor(repeat: int = 1) -> DatasetSpec:
    """The four XOR truth-table rows, tiled ``repeat`` times in a fixed order."""

    if repeat < 1:
        raise ValueError("repeat must be at least 1")
    x = np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float32)
    y = np.array([[0], [1], [1], [0]], dtype=np.float32)
    return DatasetSpec(
        name="xor",
        inputs=np.tile(x, (repeat, 1)),
        targets=np.tile(y, (repeat, 1)),
        data_spec=DataSpec(input_size=2, output_size=1, task_type="binary"),
        provenance={"type": "xor", "repeat": repeat},
    )


__all__ = ["make_linear", "make_sine", "make_xor"]
