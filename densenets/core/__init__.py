"""Core numerical primitives for DenseNets."""

from . import activations, blas, errors, layers, losses, network, types

__all__ = ["activations", "blas", "errors", "layers", "losses", "network", "types"]
