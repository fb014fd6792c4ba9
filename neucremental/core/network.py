"""Layered feed-forward network with hand-written backpropagation.

The network is a linear stack of :class:`~neucremental.core.layer.Layer`
objects.  Training works on whole sets of rows at once: ``backpropagate``
averages the gradient of the cost over every row it is given, and
``apply_gradients`` takes one descent step with it.  ``learn`` does both and
is the entry point a training driver is expected to call.

For a single row the cost is the summed squared error over the output nodes,
and the cost of a set of rows is the mean of that over the rows::

    cost = mean_i sum_j (output_ij - expected_ij) ** 2

Every call that runs a forward pass overwrites the per-layer caches
(``last_inputs``, ``last_outputs``, ...), so readers such as renderers must
consume them right after the call that produced them.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .activations import Activation
from .errors import InvalidTopology, ShapeMismatch
from .layer import Layer, positive_width
from .types import Array, LayerSnapshot, Row, Rows


class Network:
    """Feed-forward network built from a list of layer sizes.

    ``layer_sizes[0]`` is the input width and ``layer_sizes[-1]`` the output
    width; every size in between becomes a hidden layer.  Layer ``k`` is fed
    ``layer_sizes[k]`` values and has ``layer_sizes[k + 1]`` nodes, so
    consecutive layers always agree on their shared width.
    """

    layers: List[Layer]

    def __init__(
        self,
        layer_sizes: Sequence[int],
        activation: Activation | str | Sequence[Activation | str] = Activation.SIGMOID,
        *,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        raw_sizes = list(layer_sizes)
        if len(raw_sizes) < 2:
            raise InvalidTopology(
                f"a network needs at least two layer sizes, got {len(raw_sizes)}"
            )
        sizes = [positive_width(size, f"layer size {idx}") for idx, size in enumerate(raw_sizes)]

        num_layers = len(sizes) - 1
        if isinstance(activation, (str, Activation)):
            activations = [Activation.resolve(activation)] * num_layers
        else:
            activations = [Activation.resolve(item) for item in activation]
            if len(activations) != num_layers:
                raise InvalidTopology(
                    f"expected {num_layers} activations for layer sizes {sizes}, "
                    f"got {len(activations)}"
                )

        if rng is None:
            rng = np.random.default_rng(seed)
        self.layers = [
            Layer(n_in, n_out, activation=act, rng=rng)
            for n_in, n_out, act in zip(sizes[:-1], sizes[1:], activations)
        ]

    @classmethod
    def create(
        cls,
        layer_sizes: Sequence[int],
        activation: Activation | str | Sequence[Activation | str] = Activation.SIGMOID,
        *,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> "Network":
        """Build a randomly initialised network for ``layer_sizes``."""

        return cls(layer_sizes, activation, rng=rng, seed=seed)

    def __repr__(self) -> str:
        return f"<Network layer_sizes={self.layer_sizes}>"

    # ------------------------------------------------------------------
    # Introspection

    @property
    def layer_sizes(self) -> List[int]:
        return [self.layers[0].num_inputs] + [layer.num_nodes for layer in self.layers]

    @property
    def num_inputs(self) -> int:
        return self.layers[0].num_inputs

    @property
    def num_outputs(self) -> int:
        return self.layers[-1].num_nodes

    def parameter_count(self) -> int:
        return sum(layer.parameter_count() for layer in self.layers)

    def snapshot(self) -> List[LayerSnapshot]:
        return [layer.snapshot() for layer in self.layers]

    # ------------------------------------------------------------------
    # Evaluation

    def forward(self, input_vector: Row) -> Array:
        """Feed ``input_vector`` through every layer and return the outputs."""

        x = self._as_row(input_vector, self.num_inputs, "input")
        for layer in self.layers:
            x = layer.forward(x)
        return x

    def predict(self, training_inputs: Rows) -> Array:
        """Return the outputs for every row of ``training_inputs``, one row each."""

        rows = self._as_rows(training_inputs, self.num_inputs, "input")
        return np.array([self.forward(row) for row in rows]).reshape(len(rows), self.num_outputs)

    def cost(self, training_inputs: Rows, expected_outputs: Rows) -> float:
        """Mean over rows of the summed squared error of the outputs."""

        inputs, expected = self._validate(training_inputs, expected_outputs)
        total = 0.0
        for x, y in zip(inputs, expected):
            diff = self.forward(x) - y
            total += float(np.dot(diff, diff))
        return total / len(inputs)

    # ------------------------------------------------------------------
    # Training

    def backpropagate(self, training_inputs: Rows, expected_outputs: Rows) -> None:
        """Fill every layer's gradients with the batch-mean gradient of the cost.

        For each row the output error ``output - expected`` is pushed from the
        last layer to the first.  At every node the error is scaled by
        ``2 * derivative`` before it is credited to the node's bias, its
        incoming weights and, through those weights, to the error terms of the
        previous layer.  The scaled error therefore carries a factor of two
        into every hidden layer below the output.
        """

        inputs, expected = self._validate(training_inputs, expected_outputs)

        for layer in self.layers:
            layer.reset_gradients()

        last_idx = len(self.layers) - 1
        for x, y in zip(inputs, expected):
            self.forward(x)
            for layer in self.layers:
                layer.reset_error_terms()

            last = self.layers[last_idx]
            last.output_error_terms = last.last_outputs - y

            for idx in reversed(range(len(self.layers))):
                layer = self.layers[idx]
                scaled = 2.0 * layer.output_error_terms * layer.local_derivative()
                layer.bias_gradients += scaled
                if idx > 0:
                    previous = self.layers[idx - 1]
                    previous.output_error_terms += layer.weights.T @ scaled
                    feeding = previous.last_outputs
                else:
                    feeding = x
                layer.weight_gradients += np.outer(scaled, feeding)

        count = len(inputs)
        for layer in self.layers:
            layer.weight_gradients /= count
            layer.bias_gradients /= count

    def apply_gradients(self, learning_rate: float = 1.0) -> None:
        for layer in self.layers:
            layer.apply_gradients(learning_rate)

    def learn(
        self,
        training_inputs: Rows,
        expected_outputs: Rows,
        learning_rate: float = 1.0,
    ) -> None:
        """Run one gradient-descent step on the given rows."""

        self.backpropagate(training_inputs, expected_outputs)
        self.apply_gradients(learning_rate)

    def numerical_gradient(
        self,
        training_inputs: Rows,
        expected_outputs: Rows,
        epsilon: float = 0.1,
    ) -> None:
        """Estimate the gradients by finite differences.

        Each parameter is nudged by ``epsilon`` in turn and the change in cost
        is written to the matching gradient entry.  This costs one full cost
        evaluation per parameter and is meant for checking ``backpropagate``,
        not for training.
        """

        inputs, expected = self._validate(training_inputs, expected_outputs)
        base = self.cost(inputs, expected)
        for layer in self.layers:
            for i in range(layer.num_nodes):
                for j in range(layer.num_inputs):
                    saved = layer.weights[i, j]
                    layer.weights[i, j] = saved + epsilon
                    layer.weight_gradients[i, j] = (self.cost(inputs, expected) - base) / epsilon
                    # restore the saved value; subtracting epsilon would drift
                    layer.weights[i, j] = saved
                saved = layer.biases[i]
                layer.biases[i] = saved + epsilon
                layer.bias_gradients[i] = (self.cost(inputs, expected) - base) / epsilon
                layer.biases[i] = saved

    # ------------------------------------------------------------------
    # Validation helpers

    def _validate(self, training_inputs: Rows, expected_outputs: Rows) -> Tuple[Array, Array]:
        if len(training_inputs) != len(expected_outputs):
            raise ShapeMismatch(
                f"got {len(training_inputs)} input rows but "
                f"{len(expected_outputs)} expected-output rows"
            )
        if len(training_inputs) == 0:
            raise ShapeMismatch("at least one training row is required")
        inputs = self._as_rows(training_inputs, self.num_inputs, "input")
        expected = self._as_rows(expected_outputs, self.num_outputs, "expected-output")
        return inputs, expected

    @staticmethod
    def _as_row(row: Row, width: int, kind: str) -> Array:
        arr = np.asarray(row, dtype=np.float64)
        if arr.shape != (width,):
            raise ShapeMismatch(f"{kind} row must have {width} values, got shape {arr.shape}")
        return arr

    @classmethod
    def _as_rows(cls, rows: Rows, width: int, kind: str) -> Array:
        out = np.empty((len(rows), width), dtype=np.float64)
        for idx, row in enumerate(rows):
            try:
                out[idx] = cls._as_row(row, width, kind)
            except ShapeMismatch as exc:
                raise ShapeMismatch(f"row {idx}: {exc}") from None
        return out


__all__ = ["Network"]
