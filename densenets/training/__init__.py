"""Config-driven training pipelines for DenseNets."""

from . import metrics, pipelines
from .pipelines import build_network, load_preset, presets, run_pipeline

__all__ = ["build_network", "load_preset", "metrics", "pipelines", "presets", "run_pipeline"]
