"""Training driver and pipelines for Neucremental."""

from .pipelines import load_preset, presets, run_pipeline
from .trainer import CostTracker, Trainer

__all__ = ["CostTracker", "Trainer", "load_preset", "presets", "run_pipeline"]
