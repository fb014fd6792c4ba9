"""Core typing contracts for Neucremental."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

Array = np.ndarray

# A single input or expected-output row, and a set of such rows.
Row = Union[Sequence[float], Array]
Rows = Union[Sequence[Row], Array]


@dataclass(frozen=True)
class Batch:
    """A single mini-batch of training rows."""

    inputs: Rows
    expected: Rows

    def __len__(self) -> int:
        return len(self.inputs)


@dataclass(frozen=True)
class LayerSnapshot:
    """Read-only copy of one layer's parameters and last forward pass."""

    weights: Array
    biases: Array
    last_inputs: Array
    last_outputs: Array


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`neucremental.training.pipelines.run_pipeline`."""

    steps: int
    final_cost: float
    metrics_path: str
    config_path: str
    plot_path: str = ""
