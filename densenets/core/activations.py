"""Activation strategies for DenseNets.

Each strategy works elementwise on scalars and ``numpy`` arrays alike.
``derivative`` takes the *activated* value, not the raw pre-activation, which
is what the layers keep around after a forward pass.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Protocol, runtime_checkable

import numpy as np

from .types import Array


@runtime_checkable
class ActivationFunction(Protocol):
    """Capability implemented by every activation strategy."""

    name: str

    def activate(self, value: Array) -> Array:
        """Return the activated ``value``."""

    def derivative(self, activated: Array) -> Array:
        """Return the slope at the point whose activated value is ``activated``."""


class Linear:
    """Identity activation."""

    name = "linear"

    def activate(self, value: Array) -> Array:
        return value

    def derivative(self, activated: Array) -> Array:
        return np.ones_like(activated)

    def __repr__(self) -> str:
        return "Linear()"


class ReLU:
    """Rectified linear unit."""

    name = "relu"

    def activate(self, value: Array) -> Array:
        return np.maximum(value, 0.0)

    def derivative(self, activated: Array) -> Array:
        return np.where(activated > 0, 1.0, 0.0)

    def __repr__(self) -> str:
        return "ReLU()"


class LeakyReLU:
    """ReLU with a small slope ``alpha`` for negative inputs."""

    name = "leaky_relu"

    def __init__(self, alpha: float = 0.01) -> None:
        self.alpha = float(alpha)

    def activate(self, value: Array) -> Array:
        return np.where(value > 0, value, self.alpha * value)

    def derivative(self, activated: Array) -> Array:
        return np.where(activated > 0, 1.0, self.alpha)

    def __repr__(self) -> str:
        return f"LeakyReLU(alpha={self.alpha})"


class Sigmoid:
    """Logistic activation; very negative inputs may overflow ``exp``."""

    name = "sigmoid"

    def activate(self, value: Array) -> Array:
        return 1.0 / (1.0 + np.exp(-value))

    def derivative(self, activated: Array) -> Array:
        return activated * (1.0 - activated)

    def __repr__(self) -> str:
        return "Sigmoid()"


class Tanh:
    """Hyperbolic tangent activation."""

    name = "tanh"

    def activate(self, value: Array) -> Array:
        return np.tanh(value)

    def derivative(self, activated: Array) -> Array:
        return 1.0 - activated**2

    def __repr__(self) -> str:
        return "Tanh()"


ActivationFactory = Callable[..., ActivationFunction]


class ActivationRegistry:
    """Central registry mapping names to activation factories."""

    def __init__(self) -> None:
        self._registry: Dict[str, ActivationFactory] = {}

    def register(self, name: str, factory: ActivationFactory) -> None:
        self._registry[name] = factory

    def get(self, name: str, **params: Any) -> ActivationFunction:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
        return self._registry[name](**params)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, spec: ActivationFunction | str | Mapping[str, Any]) -> ActivationFunction:
        """Turn an instance, a registered name or a ``{"name": ...}`` mapping into a strategy."""

        if isinstance(spec, str):
            return self.get(spec)
        if isinstance(spec, Mapping):
            params = dict(spec)
            try:
                name = str(params.pop("name"))
            except KeyError as exc:
                raise KeyError("Activation mapping requires a 'name' entry") from exc
            return self.get(name, **params)
        if isinstance(spec, ActivationFunction):
            return spec
        raise TypeError(f"Cannot build an activation from {spec!r}")


REGISTRY = ActivationRegistry()
REGISTRY.register("linear", Linear)
REGISTRY.register("relu", ReLU)
REGISTRY.register("leaky_relu", LeakyReLU)
REGISTRY.register("sigmoid", Sigmoid)
REGISTRY.register("tanh", Tanh)


def resolve(spec: ActivationFunction | str | Mapping[str, Any]) -> ActivationFunction:
    """Shorthand for :meth:`ActivationRegistry.resolve` on the default registry."""

    return REGISTRY.resolve(spec)


__all__ = [
    "ActivationFunction",
    "ActivationRegistry",
    "LeakyReLU",
    "Linear",
    "REGISTRY",
    "ReLU",
    "Sigmoid",
    "Tanh",
    "resolve",
]
