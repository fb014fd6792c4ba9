"""Metrics sinks for training runs."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List, Mapping


class JsonlSink:
    """Append-only JSONL writer for per-step metrics."""

    def __init__(self, path: str | Path, *, seed: int | None = None) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.seed = seed

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        record = {"step": int(step), "seed": self.seed}
        record.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_step


class CsvSink:
    """Write metrics to CSV; the columns are fixed by the first row written."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self._fieldnames: List[str] | None = None

    def on_step(self, step: int, metrics: Mapping[str, float]) -> None:
        row = {"step": int(step)}
        row.update({k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            if self._fieldnames is None:
                self._fieldnames = ["step"] + sorted(k for k in row if k != "step")
            writer = csv.DictWriter(
                handle, fieldnames=self._fieldnames, extrasaction="ignore", restval=""
            )
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_step
