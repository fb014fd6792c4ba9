"""Two-input logic gate truth tables.

A network with two inputs and no hidden layer learns AND, NAND and OR but
never XOR, which is not linearly separable; one hidden layer of two nodes is
enough for XOR.
"""

from __future__ import annotations

from typing import Dict

import numpy as np

from .registry import DatasetSpec, register_dataset

GATE_INPUTS = np.array(
    [
        [0.0, 0.0],
        [0.0, 1.0],
        [1.0, 0.0],
        [1.0, 1.0],
    ]
)

GATE_OUTPUTS: Dict[str, np.ndarray] = {
    "xor": np.array([[0.0], [1.0], [1.0], [0.0]]),
    "and": np.array([[0.0], [0.0], [0.0], [1.0]]),
    "or": np.array([[0.0], [1.0], [1.0], [1.0]]),
    "nand": np.array([[1.0], [1.0], [1.0], [0.0]]),
}


def truth_table(gate: str) -> tuple[np.ndarray, np.ndarray]:
    """Return fresh ``(inputs, expected)`` copies for ``gate``."""

    key = gate.lower()
    if key not in GATE_OUTPUTS:
        available = ", ".join(sorted(GATE_OUTPUTS))
        raise KeyError(f"Unknown gate {gate!r}. Available gates: {available}")
    return GATE_INPUTS.copy(), GATE_OUTPUTS[key].copy()


def _factory(gate: str = "xor", **_: object) -> DatasetSpec:
    inputs, expected = truth_table(gate)
    return DatasetSpec(
        name="gates",
        inputs=inputs,
        expected=expected,
        provenance={"type": "gates", "gate": gate.lower()},
    )


register_dataset("gates", _factory)


__all__ = ["GATE_INPUTS", "GATE_OUTPUTS", "truth_table"]
