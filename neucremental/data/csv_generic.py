"""Generic CSV loader splitting columns into input and expected rows."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from .registry import DatasetSpec, register_dataset


def _scale_unit(array: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Min-max scale each column to ``[0, 1]``; constant columns map to 0."""

    low = array.min(axis=0, keepdims=True)
    span = array.max(axis=0, keepdims=True) - low
    span = np.where(span == 0, 1.0, span)
    return (array - low) / span, low, span


@register_dataset("csv")
def load_csv(
    *,
    csv_path: str | Path,
    target_cols: Sequence[str] | str = ("target",),
    input_cols: Sequence[str] | None = None,
    scale_inputs: bool = False,
    **_: object,
) -> DatasetSpec:
    """Load a CSV file; ``target_cols`` become expected outputs, the rest inputs."""

    path = Path(csv_path)
    df = pd.read_csv(path)
    targets = [target_cols] if isinstance(target_cols, str) else list(target_cols)
    missing = [col for col in targets if col not in df.columns]
    if missing:
        raise KeyError(f"Target columns {missing} not found in {path.name}")
    if input_cols is None:
        inputs = [col for col in df.columns if col not in targets]
    else:
        inputs = list(input_cols)
        missing = [col for col in inputs if col not in df.columns]
        if missing:
            raise KeyError(f"Input columns {missing} not found in {path.name}")
    if not inputs:
        raise ValueError(f"{path.name} has no input columns left after removing targets")

    X = df[inputs].to_numpy(dtype=np.float64)
    y = df[targets].to_numpy(dtype=np.float64)

    provenance: dict[str, object] = {
        "type": "csv",
        "path": str(path),
        "input_cols": inputs,
        "target_cols": targets,
    }
    if scale_inputs:
        X, low, span = _scale_unit(X)
        provenance["scaling"] = {
            "low": low.flatten().tolist(),
            "span": span.flatten().tolist(),
        }

    return DatasetSpec(name="csv", inputs=X, expected=y, provenance=provenance)


__all__ = ["load_csv"]
