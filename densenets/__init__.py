"""DenseNets public API."""

from .core import activations, losses  # noqa: F401
from .core.errors import ConstructionOrderError, DenseNetError, ShapeMismatchError
from .core.layers import Layer, OutputLayer
from .core.network import Network
from .core.types import RunResult
from .training.pipelines import build_network, load_preset, presets, run_pipeline

__version__ = "0.1.0"

__all__ = [
    "ConstructionOrderError",
    "DenseNetError",
    "Layer",
    "Network",
    "OutputLayer",
    "RunResult",
    "ShapeMismatchError",
    "activations",
    "build_network",
    "load_preset",
    "losses",
    "presets",
    "run_pipeline",
]
