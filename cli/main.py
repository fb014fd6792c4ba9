"""Command line entry point for Neucremental training runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from neucremental.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "final_cost": result.final_cost,
        "metrics": result.metrics_path,
        "config": result.config_path,
    }
    if getattr(result, "plot_path", ""):
        payload["plot"] = result.plot_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="xor",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument("--steps", type=int, help="Number of training steps")
    parser.add_argument(
        "--learning-rate", type=float, help="Gradient descent step size"
    )
    parser.add_argument(
        "--batch-count",
        type=int,
        help="Split the dataset into this many minibatches (default: preset)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed used for initialisation and shuffling",
    )
    parser.add_argument("--run-dir", help="Directory for run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a cost plot"
    )
    parser.add_argument(
        "--show-network",
        action="store_true",
        help="Print the trained parameters after the run",
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress (-v) or debug output (-vv)",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = pipelines.load_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    train_cfg = config.setdefault("train", {})
    if args.steps is not None:
        train_cfg["steps"] = int(args.steps)
    if args.learning_rate is not None:
        train_cfg["learning_rate"] = float(args.learning_rate)
    if args.batch_count is not None:
        train_cfg["batch_count"] = int(args.batch_count)
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.run_dir:
        train_cfg["run_dir"] = args.run_dir
    if args.enable_plots:
        train_cfg["enable_plots"] = True

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))

    if args.show_network:
        print(Path(result.config_path).with_name("network.txt").read_text())


if __name__ == "__main__":
    main()
