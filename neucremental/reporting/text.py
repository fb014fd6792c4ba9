"""Plain-text dumps of a network's parameters, gradients and predictions."""

from __future__ import annotations

from typing import List

import numpy as np

from ..core.network import Network
from ..core.types import Array, Rows


def _format_layers(weights: List[Array], biases: List[Array], title: str) -> str:
    lines: List[str] = []
    for n, (W, b) in enumerate(zip(weights, biases), start=1):
        lines.append(f"layer {n}{title}:")
        for i in range(W.shape[0]):
            cells = [f"w{i + 1}{j + 1}: {W[i, j]:.4f}" for j in range(W.shape[1])]
            cells.append(f"b{i + 1}: {b[i]:.4f}")
            lines.append("     " + ", ".join(cells))
    return "\n".join(lines)


def format_parameters(network: Network) -> str:
    """One line per node listing its incoming weights and its bias."""

    return _format_layers(
        [layer.weights for layer in network.layers],
        [layer.biases for layer in network.layers],
        "",
    )


def format_gradients(network: Network) -> str:
    return _format_layers(
        [layer.weight_gradients for layer in network.layers],
        [layer.bias_gradients for layer in network.layers],
        " (gradients)",
    )


def format_predictions(network: Network, training_inputs: Rows, expected_outputs: Rows) -> str:
    """Table with the inputs (x), expected outputs (e) and network outputs (o) per row."""

    inputs = np.asarray(training_inputs, dtype=np.float64)
    expected = np.asarray(expected_outputs, dtype=np.float64)
    outputs = network.predict(inputs)
    keys = (
        [f" x{i + 1} " for i in range(inputs.shape[1])]
        + [f" e{i + 1} " for i in range(expected.shape[1])]
        + [f" o{i + 1} " for i in range(outputs.shape[1])]
    )
    lines = ["|" + "|".join(keys) + "|"]
    for row in np.hstack([inputs, expected, outputs]):
        lines.append("|" + "|".join(f"{value:.2f}" for value in row) + "|")
    return "\n".join(lines)


__all__ = ["format_gradients", "format_parameters", "format_predictions"]
