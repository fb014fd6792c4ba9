"""Datasets and batching helpers for Neucremental."""

from . import csv_generic as _csv_generic  # noqa: F401
from . import gates as _gates  # noqa: F401
from . import mnist as _mnist  # noqa: F401
from .batching import partition_into_batches, shuffle_each_batch, shuffle_parallel
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset

__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "partition_into_batches",
    "register_dataset",
    "shuffle_each_batch",
    "shuffle_parallel",
]
