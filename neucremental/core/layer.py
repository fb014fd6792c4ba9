"""A single dense layer with its per-pass caches."""

from __future__ import annotations

import numpy as np

from .activations import Activation
from .errors import InvalidTopology, ShapeMismatch
from .types import Array, LayerSnapshot, Row

INIT_RANGE = 0.5


def positive_width(value: object, what: str = "layer width") -> int:
    """Return ``value`` as an int, rejecting non-integral and non-positive widths."""

    if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)):
        raise InvalidTopology(f"{what} must be an integer, got {value!r}")
    if not float(value).is_integer() or value < 1:
        raise InvalidTopology(f"{what} must be a positive integer, got {value!r}")
    return int(value)


class Layer:
    """Dense layer of ``num_nodes`` nodes fed by ``num_inputs`` values.

    ``weights[i, j]`` connects input ``j`` to node ``i``.  The ``last_*``
    arrays hold the most recent forward pass and the gradient arrays the most
    recent backward pass; both are single-slot caches overwritten by every
    call, not a history.
    """

    weights: Array                 # (num_nodes, num_inputs)
    biases: Array                  # (num_nodes,)

    last_inputs: Array             # (num_inputs,)
    last_weighted_sums: Array      # (num_nodes,)
    last_outputs: Array            # (num_nodes,)

    output_error_terms: Array      # (num_nodes,)
    weight_gradients: Array        # (num_nodes, num_inputs)
    bias_gradients: Array          # (num_nodes,)

    def __init__(
        self,
        num_inputs: int,
        num_nodes: int,
        activation: Activation | str = Activation.SIGMOID,
        rng: np.random.Generator | None = None,
    ) -> None:
        self._num_inputs = positive_width(num_inputs, "input width")
        self._num_nodes = positive_width(num_nodes, "node count")
        self.activation = Activation.resolve(activation)

        rng = rng if rng is not None else np.random.default_rng()
        self.weights = rng.uniform(-INIT_RANGE, INIT_RANGE, size=(self._num_nodes, self._num_inputs))
        self.biases = rng.uniform(-INIT_RANGE, INIT_RANGE, size=self._num_nodes)

        self.last_inputs = np.zeros(self._num_inputs)
        self.last_weighted_sums = np.zeros(self._num_nodes)
        self.last_outputs = np.zeros(self._num_nodes)

        self.output_error_terms = np.zeros(self._num_nodes)
        self.weight_gradients = np.zeros_like(self.weights)
        self.bias_gradients = np.zeros_like(self.biases)

    def __repr__(self) -> str:
        return (
            f"<Layer num_inputs={self._num_inputs}, num_nodes={self._num_nodes}, "
            f"activation={self.activation.value}>"
        )

    @property
    def num_inputs(self) -> int:
        return self._num_inputs

    @property
    def num_nodes(self) -> int:
        return self._num_nodes

    def forward(self, input_vector: Row) -> Array:
        """Return the activations of every node for ``input_vector``."""

        x = np.asarray(input_vector, dtype=np.float64)
        if x.shape != (self._num_inputs,):
            raise ShapeMismatch(
                f"layer expects {self._num_inputs} inputs, got shape {x.shape}"
            )
        weighted_sums = self.weights @ x + self.biases
        self.last_inputs = x
        self.last_weighted_sums = weighted_sums
        self.last_outputs = self.activation(weighted_sums)
        return self.last_outputs.copy()

    def local_derivative(self) -> Array:
        """Derivative of each node's output w.r.t. its weighted sum, last pass."""

        return self.activation.derivative(self.last_weighted_sums, self.last_outputs)

    def reset_gradients(self) -> None:
        self.weight_gradients = np.zeros_like(self.weights)
        self.bias_gradients = np.zeros_like(self.biases)

    def reset_error_terms(self) -> None:
        self.output_error_terms = np.zeros(self._num_nodes)

    def apply_gradients(self, learning_rate: float) -> None:
        """Step every parameter against its gradient, scaled by ``learning_rate``."""

        self.weights -= self.weight_gradients * learning_rate
        self.biases -= self.bias_gradients * learning_rate

    def parameter_count(self) -> int:
        return int(self.weights.size + self.biases.size)

    def snapshot(self) -> LayerSnapshot:
        return LayerSnapshot(
            weights=self.weights.copy(),
            biases=self.biases.copy(),
            last_inputs=self.last_inputs.copy(),
            last_outputs=self.last_outputs.copy(),
        )


__all__ = ["INIT_RANGE", "Layer", "positive_width"]
