"""Loss strategies comparing a target value with a prediction.

``calculate`` and ``derivative`` take ``(real, predict)`` in that order and
work elementwise on scalars and ``numpy`` arrays. The derivative is taken with
respect to the prediction.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Protocol, runtime_checkable

import numpy as np

from .types import Array


@runtime_checkable
class LossFunction(Protocol):
    """Capability implemented by every loss strategy."""

    name: str

    def calculate(self, real: Array, predict: Array) -> Array:
        """Return the loss of ``predict`` against ``real``."""

    def derivative(self, real: Array, predict: Array) -> Array:
        """Return ``dLoss/dpredict``."""


class MSE:
    """Squared error."""

    name = "mse"

    def calculate(self, real: Array, predict: Array) -> Array:
        return (real - predict) ** 2

    def derivative(self, real: Array, predict: Array) -> Array:
        return 2.0 * (predict - real)

    def __repr__(self) -> str:
        return "MSE()"


class MAE:
    """Absolute error. The derivative is -1 when prediction equals target."""

    name = "mae"

    def calculate(self, real: Array, predict: Array) -> Array:
        return np.abs(real - predict)

    def derivative(self, real: Array, predict: Array) -> Array:
        return np.where(predict > real, 1.0, -1.0)

    def __repr__(self) -> str:
        return "MAE()"


class HuberLoss:
    """Quadratic within ``delta`` of the target, linear beyond it."""

    name = "huber"

    def __init__(self, delta: float = 1.0) -> None:
        self.delta = float(delta)

    def calculate(self, real: Array, predict: Array) -> Array:
        error = np.abs(real - predict)
        return np.where(
            error <= self.delta,
            0.5 * error**2,
            self.delta * (error - 0.5 * self.delta),
        )

    def derivative(self, real: Array, predict: Array) -> Array:
        error = predict - real
        return np.where(np.abs(error) <= self.delta, error, self.delta * np.sign(error))

    def __repr__(self) -> str:
        return f"HuberLoss(delta={self.delta})"


LossFactory = Callable[..., LossFunction]


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, LossFactory] = {}

    def register(self, name: str, factory: LossFactory) -> None:
        self._registry[name] = factory

    def get(self, name: str, **params: Any) -> LossFunction:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name](**params)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, spec: LossFunction | str | Mapping[str, Any]) -> LossFunction:
        if isinstance(spec, str):
            return self.get(spec)
        if isinstance(spec, Mapping):
            params = dict(spec)
            try:
                name = str(params.pop("name"))
            except KeyError as exc:
                raise KeyError("Loss mapping requires a 'name' entry") from exc
            return self.get(name, **params)
        if isinstance(spec, LossFunction):
            return spec
        raise TypeError(f"Cannot build a loss from {spec!r}")


REGISTRY = LossRegistry()
REGISTRY.register("mse", MSE)
REGISTRY.register("mae", MAE)
REGISTRY.register("huber", HuberLoss)


def resolve(spec: LossFunction | str | Mapping[str, Any]) -> LossFunction:
    return REGISTRY.resolve(spec)


__all__ = ["HuberLoss", "LossFunction", "LossRegistry", "MAE", "MSE", "REGISTRY", "resolve"]
