"""Minibatch training driver for :class:`~neucremental.core.network.Network`."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..core.errors import LengthMismatch, ShapeMismatch
from ..core.network import Network
from ..core.types import Array, Batch, Rows
from ..data.batching import partition_into_batches, shuffle_each_batch, shuffle_parallel

logger = logging.getLogger(__name__)


def _as_matrix(rows: Rows, width: int, kind: str) -> Array:
    """Copy ``rows`` into a float matrix, rejecting ragged rows and wrong widths."""

    try:
        matrix = np.array(rows, dtype=np.float64)
    except ValueError as exc:
        raise ShapeMismatch(f"{kind} rows must all have {width} values") from exc
    if matrix.ndim != 2 or matrix.shape[1] != width:
        raise ShapeMismatch(
            f"{kind} rows must have {width} values, got shape {matrix.shape}"
        )
    return matrix


@dataclass
class CostTracker:
    """Running average of per-step cost samples and its highest value so far."""

    history: List[float] = field(default_factory=list)
    total: float = 0.0
    samples: int = 0
    peak: float = -math.inf

    def record(self, cost: float) -> float:
        self.samples += 1
        self.total += float(cost)
        average = self.total / self.samples
        self.history.append(average)
        if average > self.peak:
            self.peak = average
        return average

    @property
    def average(self) -> float:
        return self.total / self.samples if self.samples else 0.0


class Trainer:
    """Drive stochastic gradient descent over a fixed sequence of minibatches.

    The dataset is cut once into ``batch_count`` contiguous batches.  Each
    :meth:`step` trains on the next batch in the sequence; whenever the
    sequence starts over, the batch order is shuffled and then the rows
    inside every batch.  With ``batch_count=None`` every step trains on the
    whole dataset and nothing is shuffled.

    After every step the cost of one randomly drawn row is folded into a
    :class:`CostTracker`, a cheap running estimate of how training is going.
    """

    def __init__(
        self,
        network: Network,
        training_inputs: Rows,
        expected_outputs: Rows,
        *,
        batch_count: int | None = None,
        learning_rate: float = 1.0,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        self.network = network
        self.learning_rate = float(learning_rate)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        if len(training_inputs) != len(expected_outputs):
            raise LengthMismatch(
                f"got {len(training_inputs)} input rows but "
                f"{len(expected_outputs)} expected-output rows"
            )
        if len(training_inputs) == 0:
            raise ShapeMismatch("at least one training row is required")
        self.inputs: Array = _as_matrix(training_inputs, network.num_inputs, "input")
        self.expected: Array = _as_matrix(expected_outputs, network.num_outputs, "expected-output")
        self.iterations = 0
        self.tracker = CostTracker()

        self.batch_count = batch_count
        if batch_count is None:
            self.input_batches: List[Array] = [self.inputs]
            self.expected_batches: List[Array] = [self.expected]
        else:
            self.input_batches, self.expected_batches = partition_into_batches(
                batch_count, self.inputs, self.expected
            )
            shuffle_each_batch(self.input_batches, self.expected_batches, rng=self.rng)

    def __len__(self) -> int:
        return len(self.input_batches)

    @property
    def shuffles(self) -> bool:
        return self.batch_count is not None

    def next_batch(self) -> Batch:
        """Return the batch the next step trains on, reshuffling at the start of a pass."""

        idx = self.iterations % len(self.input_batches)
        if idx == 0 and self.shuffles:
            shuffle_parallel(self.input_batches, self.expected_batches, rng=self.rng)
            shuffle_each_batch(self.input_batches, self.expected_batches, rng=self.rng)
        return Batch(inputs=self.input_batches[idx], expected=self.expected_batches[idx])

    def step(self) -> Batch:
        batch = self.next_batch()
        self.network.learn(batch.inputs, batch.expected, self.learning_rate)
        self.iterations += 1
        return batch

    def sample_cost(self) -> float:
        """Cost of one random row of the full dataset."""

        idx = int(self.rng.integers(0, self.inputs.shape[0]))
        return self.network.cost(self.inputs[idx : idx + 1], self.expected[idx : idx + 1])

    def cost(self) -> float:
        return self.network.cost(self.inputs, self.expected)

    def run(
        self,
        steps: int,
        callbacks: Sequence[object] = (),
        *,
        log_every: int = 0,
    ) -> float:
        """Run ``steps`` training steps and return the cost over the full dataset."""

        if steps < 0:
            raise ValueError(f"steps must be non-negative, got {steps}")
        for _ in range(steps):
            batch = self.step()
            sampled = self.sample_cost()
            average = self.tracker.record(sampled)
            metrics = {
                "sample_cost": sampled,
                "average_cost": average,
                "batch_rows": float(len(batch)),
            }
            for callback in callbacks:
                if hasattr(callback, "on_step"):
                    callback.on_step(self.iterations, metrics)  # type: ignore[attr-defined]
                elif callable(callback):
                    callback(self.iterations, metrics)
            if log_every and self.iterations % log_every == 0:
                logger.info(
                    "step %d/%d | average cost %.5f", self.iterations, steps, average
                )
        final = self.cost()
        logger.debug("finished %d steps, cost %.5f", self.iterations, final)
        return final


__all__ = ["CostTracker", "Trainer"]
