"""Error taxonomy for the network engine.

Every error is a precondition violation raised before any parameter or
gradient is touched.
"""

from __future__ import annotations


class NeucrementalError(ValueError):
    """Base class for invalid arguments passed to the engine."""


class InvalidTopology(NeucrementalError):
    """Raised when a network is built from fewer than two layer sizes."""


class ShapeMismatch(NeucrementalError):
    """Raised when training rows do not fit the network's input/output widths."""


class InvalidBatchCount(NeucrementalError):
    """Raised when a batch count is not an integer greater than one."""


class LengthMismatch(NeucrementalError):
    """Raised when two parallel arrays differ in length."""


__all__ = [
    "NeucrementalError",
    "InvalidTopology",
    "ShapeMismatch",
    "InvalidBatchCount",
    "LengthMismatch",
]
