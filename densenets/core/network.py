"""Network orchestration: build order, forward/backward passes and online training."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Mapping, Sequence

import numpy as np

from . import activations as activation_registry
from . import losses as loss_registry
from .activations import ActivationFunction
from .errors import ConstructionOrderError, ShapeMismatchError
from .layers import Layer, OutputLayer
from .losses import LossFunction
from .types import Array, EpochCallback, ModelDescription


def _strategy_name(strategy: object) -> str:
    return str(getattr(strategy, "name", type(strategy).__name__))


class Network:
    """An ordered stack of hidden :class:`Layer` objects topped by one :class:`OutputLayer`.

    Build it in order: :meth:`add_hidden` any number of times, then
    :meth:`initialize_output` exactly once. Weight initialisation draws from
    ``rng`` (or a generator seeded with ``seed``) so runs are reproducible.
    With ``workers > 1`` the hidden layers are updated on a thread pool.
    :meth:`train` releases the pool when it returns; callers driving
    :meth:`update` directly should use the network as a context manager or
    call :meth:`close`.
    """

    def __init__(
        self,
        input_size: int,
        output_size: int,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        dtype: np.dtype | type = np.float32,
        workers: int = 1,
    ) -> None:
        if input_size <= 0 or output_size <= 0:
            raise ValueError(
                f"Network sizes must be positive, got input_size={input_size}, "
                f"output_size={output_size}"
            )
        self.input_size = int(input_size)
        self.output_size = int(output_size)
        self.dtype = np.dtype(dtype)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.workers = max(1, int(workers))
        self.hidden_layers: List[Layer] = []
        self.output_layer: OutputLayer | None = None
        self.output_initialized = False
        self._input: Array | None = None
        self._executor: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    # Construction

    def add_hidden(
        self,
        perceptron_size: int,
        activation: ActivationFunction | str | Mapping[str, Any],
    ) -> Layer:
        if self.output_initialized:
            raise ConstructionOrderError("Add hidden layers before initializing the output layer")
        layer = Layer(
            perceptron_size,
            self._last_width(),
            activation_registry.resolve(activation),
            rng=self.rng,
            dtype=self.dtype,
        )
        self.hidden_layers.append(layer)
        return layer

    def initialize_output(
        self,
        activation: ActivationFunction | str | Mapping[str, Any],
        loss: LossFunction | str | Mapping[str, Any],
    ) -> OutputLayer:
        if self.output_initialized:
            raise ConstructionOrderError("The output layer is already initialized")
        self.output_layer = OutputLayer(
            self.output_size,
            self._last_width(),
            activation_registry.resolve(activation),
            loss_registry.resolve(loss),
            rng=self.rng,
            dtype=self.dtype,
        )
        self.output_initialized = True
        return self.output_layer

    def _last_width(self) -> int:
        return self.hidden_layers[-1].perceptron_size if self.hidden_layers else self.input_size

    def _require_output(self) -> OutputLayer:
        if not self.output_initialized or self.output_layer is None:
            raise ConstructionOrderError("Initialize the output layer before running the network")
        return self.output_layer

    # ------------------------------------------------------------------
    # Passes

    def forward(self, input) -> Array:
        """Run ``input`` through every layer and return the output activations.

        The returned array is the output layer's own buffer; copy it if it
        must survive the next pass.
        """

        output_layer = self._require_output()
        x = np.array(input, dtype=self.dtype).reshape(-1)
        if x.size != self.input_size:
            raise ShapeMismatchError("network input", self.input_size, x.size)
        self._input = x
        output = x
        for layer in self.hidden_layers:
            output = layer.forward(output)
        return output_layer.forward(output)

    def backward(self, targets) -> Array:
        """Backpropagate the error against ``targets``; return the per-neuron loss buffer."""

        output_layer = self._require_output()
        if self._input is None:
            raise ConstructionOrderError("Run forward before backward")
        real = np.asarray(targets, dtype=self.dtype).reshape(-1)
        if real.size != self.output_size:
            raise ShapeMismatchError("targets", self.output_size, real.size)

        hidden = self.hidden_layers
        last_input = hidden[-1].activations if hidden else self._input
        next_layer: Layer | OutputLayer = output_layer.backward(last_input, real)
        for idx in range(len(hidden) - 1, -1, -1):
            inputs = hidden[idx - 1].activations if idx > 0 else self._input
            next_layer = hidden[idx].backward(next_layer, inputs)
        return output_layer.loss

    def update(self, learning_rate: float = 0.001) -> None:
        """Apply and clear the gradients of every layer."""

        output_layer = self._require_output()
        if self.workers > 1 and len(self.hidden_layers) > 1:
            executor = self._pool()
            futures = [executor.submit(layer.update, learning_rate) for layer in self.hidden_layers]
            for future in futures:
                future.result()
        else:
            for layer in self.hidden_layers:
                layer.update(learning_rate)
        output_layer.update(learning_rate)

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="densenets-update"
            )
        return self._executor

    # ------------------------------------------------------------------
    # Training and inference

    def train(
        self,
        inputs: Sequence,
        targets: Sequence,
        epochs: int,
        learning_rate: float,
        report_progress: bool = False,
        callbacks: Sequence[EpochCallback] | None = None,
    ) -> List[float]:
        """Online gradient descent over ``inputs`` in their given order.

        Every sample runs forward, backward and update. Returns the mean
        per-sample loss (summed over output neurons) of each epoch, which is
        also handed to each callback's ``on_epoch``.
        """

        if len(inputs) != len(targets):
            raise ShapeMismatchError("targets", len(inputs), len(targets))
        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")
        self._require_output()

        observers = list(callbacks or [])
        if report_progress:
            from ..reporting.progress import ConsoleProgress

            observers.append(ConsoleProgress(epochs))

        n_samples = len(inputs)
        history: List[float] = []
        try:
            for epoch in range(1, epochs + 1):
                total_loss = 0.0
                for sample, target in zip(inputs, targets):
                    self.forward(sample)
                    total_loss += float(np.sum(self.backward(target)))
                    self.update(learning_rate)
                mean_loss = total_loss / n_samples if n_samples else 0.0
                history.append(mean_loss)
                metrics = {"loss": mean_loss, "total_loss": total_loss}
                for callback in observers:
                    callback.on_epoch(epoch, metrics)
        finally:
            self.close()
        return history

    def predict(self, inputs: Sequence) -> Array:
        """Forward every sample and stack the outputs into ``(n_samples, output_size)``."""

        self._require_output()
        outputs = [self.forward(sample).copy() for sample in inputs]
        if not outputs:
            return np.zeros((0, self.output_size), dtype=self.dtype)
        return np.stack(outputs)

    # ------------------------------------------------------------------
    # Introspection

    @property
    def layers(self) -> List[Layer | OutputLayer]:
        stack: List[Layer | OutputLayer] = list(self.hidden_layers)
        if self.output_layer is not None:
            stack.append(self.output_layer)
        return stack

    def parameter_count(self) -> int:
        return int(sum(layer.parameter_count() for layer in self.layers))

    def describe(self) -> ModelDescription:
        output_layer = self._require_output()
        return ModelDescription(
            layer_dims=[self.input_size] + [layer.perceptron_size for layer in self.layers],
            activations=[_strategy_name(layer.activation) for layer in self.layers],
            loss=_strategy_name(output_layer.loss_function),
        )

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["Network"]
