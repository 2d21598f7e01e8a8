"""Command line interface for DenseNets."""
