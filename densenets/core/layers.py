"""Fully connected layers with in-place forward, backward and update steps."""

from __future__ import annotations

import numpy as np

from . import blas
from .activations import ActivationFunction
from .errors import ShapeMismatchError
from .losses import LossFunction
from .types import Array


def _as_vector(values, dtype: np.dtype, what: str, expected: int) -> Array:
    vector = np.asarray(values, dtype=dtype).reshape(-1)
    if vector.size != expected:
        raise ShapeMismatchError(what, expected, vector.size)
    return vector


class Layer:
    """One dense stage mapping ``input_size`` values to ``perceptron_size`` values.

    The layer owns every buffer it touches. ``weights`` is a flat row-major
    ``perceptron_size x input_size`` matrix whose row ``i`` holds neuron
    ``i``'s input weights; ``activations`` holds the post-activation output of
    the most recent :meth:`forward`. Gradient buffers are written by
    :meth:`backward` and cleared by :meth:`update`.
    """

    def __init__(
        self,
        perceptron_size: int,
        input_size: int,
        activation: ActivationFunction,
        *,
        rng: np.random.Generator | None = None,
        dtype: np.dtype | type = np.float32,
    ) -> None:
        if perceptron_size <= 0 or input_size <= 0:
            raise ValueError(
                f"Layer sizes must be positive, got perceptron_size={perceptron_size}, "
                f"input_size={input_size}"
            )
        rng = rng if rng is not None else np.random.default_rng()
        self.perceptron_size = int(perceptron_size)
        self.input_size = int(input_size)
        self.activation = activation
        self.dtype = np.dtype(dtype)

        size = self.perceptron_size * self.input_size
        self.weights = rng.random(size, dtype=self.dtype) * 2 - 1
        self.biases = np.zeros(self.perceptron_size, dtype=self.dtype)
        self.activations = np.zeros(self.perceptron_size, dtype=self.dtype)

        self.error_gradient = np.zeros(self.perceptron_size, dtype=self.dtype)
        self.weight_gradient = np.zeros(size, dtype=self.dtype)
        self.bias_gradient = np.zeros(self.perceptron_size, dtype=self.dtype)

    @property
    def weight_matrix(self) -> Array:
        """``(perceptron_size, input_size)`` view onto :attr:`weights`."""

        return self.weights.reshape(self.perceptron_size, self.input_size)

    def parameter_count(self) -> int:
        return int(self.weights.size + self.biases.size)

    def forward(self, inputs) -> Array:
        """Compute ``activation(W @ inputs + b)`` into :attr:`activations` and return it."""

        x = _as_vector(inputs, self.dtype, "layer input", self.input_size)
        blas.gemv(False, self.perceptron_size, self.input_size, 1.0, self.weights, x, 0.0, self.activations)
        self.activations[:] = self.activation.activate(self.activations + self.biases)
        return self.activations

    def backward(self, next_layer: "Layer | OutputLayer", inputs) -> "Layer":
        """Pull the error of ``next_layer`` back through its weights into this layer.

        ``inputs`` is whatever this layer consumed on the forward pass: the
        previous layer's activations, or the network input for the first layer.
        """

        x = _as_vector(inputs, self.dtype, "layer input", self.input_size)
        if next_layer.input_size != self.perceptron_size:
            raise ShapeMismatchError("next layer input", self.perceptron_size, next_layer.input_size)

        blas.gemv(
            True,
            next_layer.perceptron_size,
            next_layer.input_size,
            1.0,
            next_layer.weights,
            next_layer.error_gradient,
            0.0,
            self.error_gradient,
        )
        slope = np.broadcast_to(self.activation.derivative(self.activations), self.activations.shape)
        blas.vmul(self.perceptron_size, slope, self.error_gradient, self.error_gradient)
        self.accumulate_gradients(x)
        return self

    def accumulate_gradients(self, inputs: Array) -> None:
        """Derive ``dW`` and ``dB`` from the current error gradient.

        ``dW`` is overwritten with the outer product ``dE ⊗ inputs`` while
        ``dB`` accumulates ``dE``.
        """

        blas.gemm(
            False,
            False,
            self.perceptron_size,
            self.input_size,
            1,
            1.0,
            self.error_gradient,
            inputs,
            0.0,
            self.weight_gradient,
        )
        blas.axpy(self.perceptron_size, 1.0, self.error_gradient, self.bias_gradient)

    def update(self, learning_rate: float) -> None:
        """Take one gradient-descent step and clear every gradient buffer."""

        blas.axpy(self.weights.size, -learning_rate, self.weight_gradient, self.weights)
        blas.axpy(self.biases.size, -learning_rate, self.bias_gradient, self.biases)
        self.reset_gradients()

    def reset_gradients(self) -> None:
        self.weight_gradient.fill(0)
        self.bias_gradient.fill(0)
        self.error_gradient.fill(0)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(perceptron_size={self.perceptron_size}, "
            f"input_size={self.input_size}, activation={self.activation!r})"
        )


class OutputLayer:
    """Terminal stage: a :class:`Layer` plus a loss that seeds backpropagation."""

    def __init__(
        self,
        perceptron_size: int,
        input_size: int,
        activation: ActivationFunction,
        loss_function: LossFunction,
        *,
        rng: np.random.Generator | None = None,
        dtype: np.dtype | type = np.float32,
    ) -> None:
        self.layer = Layer(perceptron_size, input_size, activation, rng=rng, dtype=dtype)
        self.loss_function = loss_function
        self.loss = np.zeros(self.layer.perceptron_size, dtype=self.layer.dtype)

    # The wrapped layer's sizes and buffers, so a hidden layer can treat the
    # output stage as its ``next_layer``.

    @property
    def perceptron_size(self) -> int:
        return self.layer.perceptron_size

    @property
    def input_size(self) -> int:
        return self.layer.input_size

    @property
    def activation(self) -> ActivationFunction:
        return self.layer.activation

    @property
    def dtype(self) -> np.dtype:
        return self.layer.dtype

    @property
    def weights(self) -> Array:
        return self.layer.weights

    @property
    def weight_matrix(self) -> Array:
        return self.layer.weight_matrix

    @property
    def biases(self) -> Array:
        return self.layer.biases

    @property
    def activations(self) -> Array:
        return self.layer.activations

    @property
    def error_gradient(self) -> Array:
        return self.layer.error_gradient

    @property
    def weight_gradient(self) -> Array:
        return self.layer.weight_gradient

    @property
    def bias_gradient(self) -> Array:
        return self.layer.bias_gradient

    def parameter_count(self) -> int:
        return self.layer.parameter_count()

    def forward(self, inputs) -> Array:
        return self.layer.forward(inputs)

    def backward(self, inputs, targets) -> "OutputLayer":
        """Seed the error gradient from ``targets`` and derive parameter gradients.

        Fills :attr:`loss` with the per-neuron loss of the last forward pass.
        """

        layer = self.layer
        x = _as_vector(inputs, layer.dtype, "layer input", layer.input_size)
        real = _as_vector(targets, layer.dtype, "targets", layer.perceptron_size)
        predicted = layer.activations

        self.loss[:] = self.loss_function.calculate(real, predicted)
        layer.error_gradient[:] = self.loss_function.derivative(
            real, predicted
        ) * layer.activation.derivative(predicted)
        layer.accumulate_gradients(x)
        return self

    def update(self, learning_rate: float) -> None:
        self.layer.update(learning_rate)

    def __repr__(self) -> str:
        return (
            f"OutputLayer(perceptron_size={self.perceptron_size}, input_size={self.input_size}, "
            f"activation={self.activation!r}, loss_function={self.loss_function!r})"
        )


__all__ = ["Layer", "OutputLayer"]
