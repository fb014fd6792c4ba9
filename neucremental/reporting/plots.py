"""Headless-safe plotting adapters."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple


class PlotAdapter:
    """Collect the running-average cost and optionally emit a matplotlib figure."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.plot_path = self.run_dir / "cost.png"
        self._history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_step(self, step: int, metrics):
        if not self.enable_plots:
            return
        self._history.append((step, float(metrics.get("average_cost", 0.0))))

    def close(self) -> str:
        """Write the figure if plotting is enabled; return its path or ``""``."""

        if not self.enable_plots or not self._history:
            return ""
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        steps, costs = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(steps, costs)
        ax.set_ylim(bottom=0.0)
        ax.set_xlabel("Step")
        ax.set_ylabel("Average cost")
        ax.set_title("Training Cost")
        fig.savefig(self.plot_path)
        plt.close(fig)
        return str(self.plot_path)

    __call__ = on_step
