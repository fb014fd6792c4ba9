"""Activation functions paired with their derivatives."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Tuple

import numpy as np

from .types import Array

LEAKY_SLOPE = 0.01


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid of ``x``."""

    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-x))


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def leaky_relu(x: Array) -> Array:
    return np.where(x > 0.0, x, x * LEAKY_SLOPE)


def tanh(x: Array) -> Array:
    return np.tanh(x)


def identity(x: Array) -> Array:
    return np.asarray(x, dtype=np.float64).copy()


# Derivatives take both the weighted sums and the outputs so that each one can
# use whichever form is exact.  The sigmoid derivative is written in terms of
# the node output, a * (1 - a).
def _sigmoid_deriv(weighted_sums: Array, outputs: Array) -> Array:
    return outputs * (1.0 - outputs)


def _relu_deriv(weighted_sums: Array, outputs: Array) -> Array:
    return (weighted_sums > 0.0).astype(np.float64)


def _leaky_relu_deriv(weighted_sums: Array, outputs: Array) -> Array:
    return np.where(weighted_sums >= 0.0, 1.0, LEAKY_SLOPE)


def _tanh_deriv(weighted_sums: Array, outputs: Array) -> Array:
    return 1.0 - outputs**2


def _identity_deriv(weighted_sums: Array, outputs: Array) -> Array:
    return np.ones_like(weighted_sums, dtype=np.float64)


class Activation(str, Enum):
    """Closed set of activations; each member knows its own derivative."""

    SIGMOID = "sigmoid"
    RELU = "relu"
    LEAKY_RELU = "leaky_relu"
    TANH = "tanh"
    IDENTITY = "identity"

    def __call__(self, weighted_sums: Array) -> Array:
        forward, _ = _TABLE[self]
        return forward(weighted_sums)

    def derivative(self, weighted_sums: Array, outputs: Array) -> Array:
        """Return d(output)/d(weighted sum) for every node."""

        _, deriv = _TABLE[self]
        return deriv(weighted_sums, outputs)

    @classmethod
    def resolve(cls, value: "Activation | str") -> "Activation":
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower().replace("-", "_")
        try:
            return cls(name)
        except ValueError as exc:
            available = ", ".join(member.value for member in cls)
            raise KeyError(
                f"Unknown activation {value!r}. Available activations: {available}"
            ) from exc


_Pair = Tuple[Callable[[Array], Array], Callable[[Array, Array], Array]]

_TABLE: Dict[Activation, _Pair] = {
    Activation.SIGMOID: (sigmoid, _sigmoid_deriv),
    Activation.RELU: (relu, _relu_deriv),
    Activation.LEAKY_RELU: (leaky_relu, _leaky_relu_deriv),
    Activation.TANH: (tanh, _tanh_deriv),
    Activation.IDENTITY: (identity, _identity_deriv),
}


__all__ = [
    "Activation",
    "LEAKY_SLOPE",
    "identity",
    "leaky_relu",
    "relu",
    "sigmoid",
    "tanh",
]
