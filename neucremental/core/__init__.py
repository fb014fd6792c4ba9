"""Core numerical primitives for Neucremental."""

from . import activations, errors, types
from .activations import Activation
from .layer import Layer
from .network import Network

__all__ = ["Activation", "Layer", "Network", "activations", "errors", "types"]
