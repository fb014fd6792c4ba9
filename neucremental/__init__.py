"""Neucremental public API."""

from .core import activations  # noqa: F401
from .core import errors  # noqa: F401
from .core import types  # noqa: F401
from .core.activations import Activation
from .core.errors import InvalidBatchCount, InvalidTopology, LengthMismatch, ShapeMismatch
from .core.layer import Layer
from .core.network import Network
from .data.batching import partition_into_batches, shuffle_each_batch, shuffle_parallel
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "Activation",
    "InvalidBatchCount",
    "InvalidTopology",
    "Layer",
    "LengthMismatch",
    "Network",
    "ShapeMismatch",
    "Trainer",
    "activations",
    "errors",
    "load_preset",
    "partition_into_batches",
    "presets",
    "run_pipeline",
    "shuffle_each_batch",
    "shuffle_parallel",
    "types",
]
