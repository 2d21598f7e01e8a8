"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

import numpy as np

from ..core.types import Array

TASK_TYPES = frozenset({"regression", "binary"})


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    input_size:
        Length of every input vector.
    output_size:
        Length of every target vector.
    task_type:
        ``"regression"`` or ``"binary"``; decides the default evaluation metrics.
    """

    input_size: int
    output_size: int
    task_type: str = "regression"


@dataclass(frozen=True)
class DatasetSpec:
    """An in-memory dataset: ``inputs`` is ``(n, input_size)``, ``targets`` is ``(n, output_size)``."""

    name: str
    inputs: Array
    targets: Array
    data_spec: DataSpec
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return int(self.inputs.shape[0])


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("sine")
        def make_sine(**kwargs):
            ...

    or directly::

        register_dataset("sine", make_sine)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown dataset {dataset!r}. Available datasets: {available}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.data_spec.task_type not in TASK_TYPES:
        raise ValueError(f"Invalid task type: {spec.data_spec.task_type}")
    if spec.inputs.ndim != 2 or spec.targets.ndim != 2:
        raise ValueError(f"Dataset {spec.name!r} must provide 2-D inputs and targets")
    if spec.inputs.shape[0] != spec.targets.shape[0]:
        raise ValueError(
            f"Dataset {spec.name!r} has {spec.inputs.shape[0]} inputs but "
            f"{spec.targets.shape[0]} targets"
        )
    if spec.inputs.shape[1] != spec.data_spec.input_size:
        raise ValueError(f"Dataset {spec.name!r} inputs do not match input_size")
    if spec.targets.shape[1] != spec.data_spec.output_size:
        raise ValueError(f"Dataset {spec.name!r} targets do not match output_size")
    if not np.all(np.isfinite(spec.inputs)) or not np.all(np.isfinite(spec.targets)):
        raise ValueError(f"Dataset {spec.name!r} contains non-finite values")


get = get_dataset


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get",
    "get_dataset",
    "register_dataset",
]
