"""Pipeline assembly: presets, config files and single training runs."""

from __future__ import annotations

import json
import logging
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.layer import positive_width
from ..core.network import Network
from ..core.types import RunResult
from ..data import registry
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.text import format_parameters, format_predictions
from .trainer import Trainer

logger = logging.getLogger(__name__)

# Above this many rows the prediction table is left out of network.txt.
MAX_REPORT_ROWS = 16

_GATE_TRAIN = {
    "steps": 2000,
    "learning_rate": 1.0,
    "batch_count": None,
    "seed": 0,
    "log_every": 500,
    "enable_plots": False,
}

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "gates", "options": {"gate": "xor"}},
        "model": {"layer_sizes": [2, 2, 1], "activation": "sigmoid"},
        "train": dict(_GATE_TRAIN, steps=10000, log_every=1000, run_dir="runs/xor"),
    },
    "xor-linear": {
        "data": {"name": "gates", "options": {"gate": "xor"}},
        "model": {"layer_sizes": [2, 1], "activation": "sigmoid"},
        "train": dict(_GATE_TRAIN, steps=10000, log_every=1000, run_dir="runs/xor-linear"),
    },
    "and": {
        "data": {"name": "gates", "options": {"gate": "and"}},
        "model": {"layer_sizes": [2, 1], "activation": "sigmoid"},
        "train": dict(_GATE_TRAIN, run_dir="runs/and"),
    },
    "or": {
        "data": {"name": "gates", "options": {"gate": "or"}},
        "model": {"layer_sizes": [2, 1], "activation": "sigmoid"},
        "train": dict(_GATE_TRAIN, run_dir="runs/or"),
    },
    "nand": {
        "data": {"name": "gates", "options": {"gate": "nand"}},
        "model": {"layer_sizes": [2, 1], "activation": "sigmoid"},
        "train": dict(_GATE_TRAIN, run_dir="runs/nand"),
    },
    "mnist": {
        "data": {"name": "mnist", "options": {"max_items": 10000, "offline": True}},
        "model": {"layer_sizes": [784, 16, 16, 10], "activation": "sigmoid"},
        "train": {
            "steps": 2000,
            "learning_rate": 1.0,
            "batch_count": 500,
            "seed": 0,
            "log_every": 100,
            "enable_plots": False,
            "run_dir": "runs/mnist",
        },
    },
}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Mapping[str, object]:
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(_PRESETS))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


def load_config_file(path: str | Path) -> dict:
    """Read a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return dict(data)


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into ``base`` and return ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Load the dataset, build the network, train it and write run artifacts."""

    missing = {"data", "model", "train"} - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")

    data_cfg = dict(config["data"])
    model_cfg = dict(config["model"])
    train_cfg = dict(config["train"])

    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))

    sizes = _build_sizes(model_cfg, dataset.d_in, dataset.d_out)
    seed = int(train_cfg.get("seed", 0))
    network = Network.create(sizes, model_cfg.get("activation", "sigmoid"), seed=seed)

    batch_count = train_cfg.get("batch_count")
    trainer = Trainer(
        network,
        dataset.inputs,
        dataset.expected,
        batch_count=int(batch_count) if batch_count is not None else None,
        learning_rate=float(train_cfg.get("learning_rate", 1.0)),
        seed=seed + 1,
    )

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)
    steps = int(train_cfg.get("steps", 1000))

    _print_startup_summary(
        dataset_name=dataset.name,
        rows=len(dataset),
        sizes=sizes,
        activation=_activation_label(network),
        batches=len(trainer),
        steps=steps,
        learning_rate=trainer.learning_rate,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    started = time.perf_counter()
    final_cost = trainer.run(
        steps,
        callbacks=[jsonl, csv_sink, plots],
        log_every=int(train_cfg.get("log_every", 0)),
    )
    logger.info(
        "trained %s for %d steps in %.2fs, final cost %.5f",
        dataset.name,
        steps,
        time.perf_counter() - started,
        final_cost,
    )
    plot_path = plots.close()

    report = [format_parameters(network)]
    if len(dataset) <= MAX_REPORT_ROWS:
        report.append(format_predictions(network, dataset.inputs, dataset.expected))
    (run_dir / "network.txt").write_text("\n\n".join(report) + "\n")

    config_path = run_dir / "config.json"
    resolved = json.loads(json.dumps(config))
    resolved["model"]["layer_sizes"] = sizes
    resolved["dataset"] = dataset.provenance
    resolved["final_cost"] = final_cost
    config_path.write_text(json.dumps(resolved, indent=2, default=str))

    return RunResult(
        steps=steps,
        final_cost=final_cost,
        metrics_path=str(jsonl.path),
        config_path=str(config_path),
        plot_path=plot_path,
    )


def _build_sizes(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> List[int]:
    if "layer_sizes" in model_cfg:
        sizes = [positive_width(size) for size in model_cfg["layer_sizes"]]  # type: ignore[union-attr]
    else:
        hidden = [positive_width(h) for h in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
        sizes = [d_in, *hidden, d_out]
    if sizes and sizes[0] != d_in:
        raise ValueError(f"Configured input width {sizes[0]} but dataset rows have {d_in}")
    if sizes and sizes[-1] != d_out:
        raise ValueError(f"Configured output width {sizes[-1]} but dataset rows have {d_out}")
    return sizes


def _activation_label(network: Network) -> str:
    names = [layer.activation.value for layer in network.layers]
    if len(set(names)) == 1:
        return names[0]
    return ", ".join(names)


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if train_cfg.get("run_dir"):
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _print_startup_summary(
    *,
    dataset_name: str,
    rows: int,
    sizes: Sequence[int],
    activation: str,
    batches: int,
    steps: int,
    learning_rate: float,
    param_count: int,
) -> None:
    print("=== Neucremental run ===")
    print(f"Dataset       : {dataset_name} ({rows} rows)")
    print(f"Layer sizes   : {sizes}")
    print(f"Activation    : {activation}")
    print(f"Batches       : {batches}")
    print(f"Steps         : {steps}")
    print(f"Learning rate : {learning_rate}")
    print(f"Parameters    : {param_count}")
    print("========================")


__all__ = ["load_config_file", "load_preset", "merge_config", "presets", "run_pipeline"]
