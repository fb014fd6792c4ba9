"""MNIST loader for the IDX file format.

The IDX files start with a big-endian header: a magic number (2051 for
images, 2049 for labels), the item count and, for images, the row and column
counts.  Pixel bytes follow row by row.  Pixels are scaled to ``[0, 1]`` and
labels are one-hot encoded, so every image becomes a 784-wide input row and
every label a 10-wide expected row.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import BinaryIO

import numpy as np

from .registry import DatasetSpec, register_dataset

logger = logging.getLogger(__name__)

IMAGES_MAGIC = 2051
LABELS_MAGIC = 2049
NUM_CLASSES = 10

IMAGES_FILE = "t10k-images.idx3-ubyte"
LABELS_FILE = "t10k-labels.idx1-ubyte"

DEFAULT_CACHE_DIR = Path(".cache") / "neucremental"


def resolve_cache_dir(cache_dir: str | Path | None = None) -> Path:
    """Resolve the effective cache directory for generated fixtures."""

    env_dir = os.environ.get("NEUCREMENTAL_CACHE_DIR")
    return Path(cache_dir or env_dir or DEFAULT_CACHE_DIR)


def _read_header(handle: BinaryIO, words: int, expected_magic: int, path: Path) -> np.ndarray:
    raw = handle.read(4 * words)
    if len(raw) != 4 * words:
        raise ValueError(f"{path} is too short to hold an IDX header")
    header = np.frombuffer(raw, dtype=">u4").astype(np.int64)
    if header[0] != expected_magic:
        raise ValueError(
            f"{path} has magic number {header[0]}, expected {expected_magic}"
        )
    return header


def read_idx_images(path: str | Path, max_items: int | None = None) -> np.ndarray:
    """Return images as ``(n, rows * cols)`` floats in ``[0, 1]``."""

    path = Path(path)
    with path.open("rb") as handle:
        _, count, rows, cols = _read_header(handle, 4, IMAGES_MAGIC, path)
        if max_items is not None:
            count = min(count, int(max_items))
        size = int(rows * cols)
        raw = handle.read(int(count) * size)
    if len(raw) != count * size:
        raise ValueError(f"{path} ended before {count} images could be read")
    pixels = np.frombuffer(raw, dtype=np.uint8).reshape(int(count), size)
    return pixels.astype(np.float64) / 255.0


def read_idx_labels(path: str | Path, max_items: int | None = None) -> np.ndarray:
    """Return labels as a 1-D integer array."""

    path = Path(path)
    with path.open("rb") as handle:
        _, count = _read_header(handle, 2, LABELS_MAGIC, path)
        if max_items is not None:
            count = min(count, int(max_items))
        raw = handle.read(int(count))
    if len(raw) != count:
        raise ValueError(f"{path} ended before {count} labels could be read")
    return np.frombuffer(raw, dtype=np.uint8).astype(np.int64)


def one_hot(labels: np.ndarray, num_classes: int = NUM_CLASSES) -> np.ndarray:
    if labels.size and (labels.min() < 0 or labels.max() >= num_classes):
        raise ValueError(f"labels must lie in [0, {num_classes})")
    return np.eye(num_classes, dtype=np.float64)[labels]


def write_idx_images(path: str | Path, images: np.ndarray) -> None:
    """Write ``(n, rows, cols)`` uint8 images in IDX format."""

    images = np.asarray(images, dtype=np.uint8)
    count, rows, cols = images.shape
    header = np.array([IMAGES_MAGIC, count, rows, cols], dtype=">u4")
    Path(path).write_bytes(header.tobytes() + images.tobytes())


def write_idx_labels(path: str | Path, labels: np.ndarray) -> None:
    labels = np.asarray(labels, dtype=np.uint8)
    header = np.array([LABELS_MAGIC, labels.shape[0]], dtype=">u4")
    Path(path).write_bytes(header.tobytes() + labels.tobytes())


def _build_offline_fixture(directory: Path) -> None:
    """Write a deterministic MNIST-shaped pair of IDX files into ``directory``."""

    # Derived from integer sequences so the bytes are identical across NumPy
    # releases.
    images = (np.arange(256 * 28 * 28, dtype=np.uint32) % 256).reshape(256, 28, 28)
    labels = np.arange(256, dtype=np.uint32) % NUM_CLASSES
    directory.mkdir(parents=True, exist_ok=True)
    write_idx_images(directory / IMAGES_FILE, images)
    write_idx_labels(directory / LABELS_FILE, labels)


def _factory(
    data_dir: str | Path | None = None,
    images_file: str = IMAGES_FILE,
    labels_file: str = LABELS_FILE,
    max_items: int | None = None,
    *,
    offline: bool = True,
    cache_dir: str | Path | None = None,
    **_: object,
) -> DatasetSpec:
    mode = "files"
    directory = Path(data_dir) if data_dir is not None else None
    images_path = directory / images_file if directory is not None else None
    labels_path = directory / labels_file if directory is not None else None

    if images_path is None or not images_path.exists() or not labels_path.exists():
        if not offline:
            raise FileNotFoundError(
                f"MNIST files {images_file!r} and {labels_file!r} not found in {data_dir}"
            )
        directory = resolve_cache_dir(cache_dir) / "offline" / "mnist"
        images_path = directory / IMAGES_FILE
        labels_path = directory / LABELS_FILE
        if not images_path.exists() or not labels_path.exists():
            logger.warning("MNIST files unavailable, building offline fixture in %s", directory)
            _build_offline_fixture(directory)
        mode = "offline-fixture"

    images = read_idx_images(images_path, max_items=max_items)
    labels = read_idx_labels(labels_path, max_items=max_items)
    if images.shape[0] != labels.shape[0]:
        raise ValueError(
            f"{images_path} holds {images.shape[0]} images but "
            f"{labels_path} holds {labels.shape[0]} labels"
        )
    logger.info("Loaded %d MNIST samples from %s", images.shape[0], directory)

    return DatasetSpec(
        name="mnist",
        inputs=images,
        expected=one_hot(labels),
        provenance={
            "type": "mnist",
            "mode": mode,
            "images": str(images_path),
            "labels": str(labels_path),
            "max_items": max_items,
        },
    )


register_dataset("mnist", _factory)


__all__ = [
    "IMAGES_FILE",
    "LABELS_FILE",
    "one_hot",
    "read_idx_images",
    "read_idx_labels",
    "write_idx_images",
    "write_idx_labels",
]
