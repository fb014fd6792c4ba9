"""Minibatch partitioning and synchronised shuffling of parallel datasets.

Datasets are kept as two parallel sequences, the training inputs and the
expected outputs, where row ``i`` of one belongs to row ``i`` of the other.
The helpers here never break that pairing: shuffles apply the same swap to
both sequences, and partitions cut both at the same boundaries.

Shuffles work in place on Python lists and on numpy arrays alike.
"""

from __future__ import annotations

from typing import Any, List, MutableSequence, Sequence, Tuple

import numpy as np

from ..core.errors import InvalidBatchCount, LengthMismatch


def _check_lengths(data_a: Sequence[Any], data_b: Sequence[Any] | None, what: str) -> None:
    if data_b is not None and len(data_a) != len(data_b):
        raise LengthMismatch(
            f"can only {what} two arrays of equal length, got {len(data_a)} and {len(data_b)}"
        )


def _batch_bounds(n_rows: int, batch_count: int) -> List[Tuple[int, int]]:
    step = n_rows // batch_count
    if step == 0:
        # fewer rows than batches: one row per batch
        return [(idx, idx + 1) for idx in range(n_rows)]
    bounds: List[Tuple[int, int]] = []
    start = 0
    while start < n_rows:
        end = start + step
        if n_rows - end < step or len(bounds) == batch_count - 1:
            end = n_rows
        bounds.append((start, end))
        start = end
    return bounds


def partition_into_batches(
    batch_count: int,
    data_a: Sequence[Any],
    data_b: Sequence[Any] | None = None,
):
    """Cut ``data_a`` (and ``data_b``) into at most ``batch_count`` contiguous batches.

    Every batch holds ``len(data_a) // batch_count`` rows except the last,
    which absorbs whatever remains.  Batches keep the original row order and
    together cover every row exactly once.  Returns the list of batches for
    ``data_a``, or a ``(batches_a, batches_b)`` pair when ``data_b`` is given.
    """

    if isinstance(batch_count, bool) or not isinstance(batch_count, (int, np.integer)):
        raise InvalidBatchCount(f"batch count must be an integer, got {batch_count!r}")
    if batch_count <= 1:
        raise InvalidBatchCount(f"batch count must be greater than 1, got {batch_count}")
    _check_lengths(data_a, data_b, "partition")

    bounds = _batch_bounds(len(data_a), int(batch_count))
    batches_a = [data_a[start:end] for start, end in bounds]
    if data_b is None:
        return batches_a
    batches_b = [data_b[start:end] for start, end in bounds]
    return batches_a, batches_b


def _swap(data: MutableSequence[Any], i: int, j: int) -> None:
    if isinstance(data, np.ndarray):
        data[[i, j]] = data[[j, i]]
    else:
        data[i], data[j] = data[j], data[i]


def shuffle_parallel(
    data_a: MutableSequence[Any],
    data_b: MutableSequence[Any] | None = None,
    rng: np.random.Generator | None = None,
) -> None:
    """Fisher-Yates shuffle of ``data_a`` in place, mirroring each swap in ``data_b``."""

    _check_lengths(data_a, data_b, "shuffle")
    rng = rng if rng is not None else np.random.default_rng()
    n_rows = len(data_a)
    for i in range(n_rows):
        j = int(rng.integers(i, n_rows))
        _swap(data_a, i, j)
        if data_b is not None:
            _swap(data_b, i, j)


def shuffle_each_batch(
    batches_a: Sequence[MutableSequence[Any]],
    batches_b: Sequence[MutableSequence[Any]] | None = None,
    rng: np.random.Generator | None = None,
) -> None:
    """Shuffle the rows inside every batch; rows never move between batches."""

    _check_lengths(batches_a, batches_b, "shuffle")
    pairs = [
        (batch_a, batches_b[idx] if batches_b is not None else None)
        for idx, batch_a in enumerate(batches_a)
    ]
    # every pair is checked before the first one is touched
    for batch_a, batch_b in pairs:
        _check_lengths(batch_a, batch_b, "shuffle")
    rng = rng if rng is not None else np.random.default_rng()
    for batch_a, batch_b in pairs:
        shuffle_parallel(batch_a, batch_b, rng=rng)


__all__ = ["partition_into_batches", "shuffle_each_batch", "shuffle_parallel"]
