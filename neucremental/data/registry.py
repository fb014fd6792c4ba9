"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

import numpy as np

from ..core.types import Array


@dataclass(frozen=True)
class DatasetSpec:
    """A loaded dataset as two parallel row arrays.

    Attributes
    ----------
    name:
        Registry name the dataset was loaded under.
    inputs:
        Training inputs, one row per example, shape ``(n, d_in)``.
    expected:
        Expected outputs aligned with ``inputs``, shape ``(n, d_out)``.
    provenance:
        Free-form metadata describing where the rows came from (file paths,
        fixture mode, options).  Written next to run artifacts.
    """

    name: str
    inputs: Array
    expected: Array
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    @property
    def d_in(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def d_out(self) -> int:
        return int(self.expected.shape[1])


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("gates")
        def make_gates(**kwargs):
            ...

    or directly::

        register_dataset("gates", make_gates)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Load ``dataset`` through its registered factory."""

    if dataset not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown dataset {dataset!r}. Available datasets: {available}")

    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if np.ndim(spec.inputs) != 2 or np.ndim(spec.expected) != 2:
        raise ValueError(f"Dataset {spec.name!r} must provide 2-D input and expected arrays")
    if spec.inputs.shape[0] != spec.expected.shape[0]:
        raise ValueError(
            f"Dataset {spec.name!r} has {spec.inputs.shape[0]} input rows but "
            f"{spec.expected.shape[0]} expected rows"
        )


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
