import json
from pathlib import Path

import pytest

from neucremental.training import pipelines


def _gate_config(run_dir, steps=50):
    config = pipelines.load_preset("and")
    config["train"].update({"steps": steps, "seed": 7, "run_dir": str(run_dir), "log_every": 0})
    return config


def test_pipeline_writes_run_artifacts(tmp_path, capsys):
    result = pipelines.run_pipeline(_gate_config(tmp_path / "run"))

    assert "=== Neucremental run ===" in capsys.readouterr().out
    assert result.steps == 50
    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert len(records) == 50
    assert records[-1]["step"] == 50
    assert {"sample_cost", "average_cost", "seed"} <= set(records[0])
    assert (tmp_path / "run" / "metrics.csv").exists()

    resolved = json.loads(Path(result.config_path).read_text())
    assert resolved["model"]["layer_sizes"] == [2, 1]
    assert resolved["dataset"] == {"type": "gates", "gate": "and"}
    assert resolved["final_cost"] == pytest.approx(result.final_cost)

    report = (tmp_path / "run" / "network.txt").read_text()
    assert report.startswith("layer 1:")
    assert "| x1 | x2 | e1 | o1 |" in report
    assert result.plot_path == ""


def test_pipeline_determinism(tmp_path):
    first = pipelines.run_pipeline(_gate_config(tmp_path / "a"))
    second = pipelines.run_pipeline(_gate_config(tmp_path / "b"))
    assert Path(first.metrics_path).read_text() == Path(second.metrics_path).read_text()
    assert first.final_cost == second.final_cost


def test_pipeline_hidden_layers_from_dataset_widths(tmp_path):
    config = _gate_config(tmp_path / "hidden", steps=5)
    config["model"] = {"hidden": [3], "activation": "tanh"}
    result = pipelines.run_pipeline(config)
    resolved = json.loads(Path(result.config_path).read_text())
    assert resolved["model"]["layer_sizes"] == [2, 3, 1]


def test_pipeline_minibatches_on_offline_mnist(tmp_path, monkeypatch):
    monkeypatch.setenv("NEUCREMENTAL_CACHE_DIR", str(tmp_path / "cache"))
    config = pipelines.load_preset("mnist")
    config["data"]["options"]["max_items"] = 40
    config["model"]["layer_sizes"] = [784, 8, 10]
    config["train"].update({"steps": 6, "batch_count": 4, "run_dir": str(tmp_path / "mnist")})

    result = pipelines.run_pipeline(config)
    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [r["batch_rows"] for r in records] == [10.0] * 6
    resolved = json.loads(Path(result.config_path).read_text())
    assert resolved["dataset"]["mode"] == "offline-fixture"
    # predictions table is left out for large datasets
    assert "| x1 |" not in (tmp_path / "mnist" / "network.txt").read_text()


def test_pipeline_rejects_bad_configs(tmp_path):
    config = _gate_config(tmp_path / "bad")
    config["model"]["layer_sizes"] = [3, 1]
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)

    with pytest.raises(KeyError):
        pipelines.run_pipeline({"data": {"name": "gates"}, "model": {}})

    with pytest.raises(KeyError):
        pipelines.load_preset("missing")


def test_config_files_merge_into_presets(tmp_path):
    path = tmp_path / "override.yaml"
    path.write_text("train:\n  steps: 12\n  learning_rate: 0.5\n")
    merged = pipelines.merge_config(pipelines.load_preset("or"), pipelines.load_config_file(path))
    assert merged["train"]["steps"] == 12
    assert merged["train"]["learning_rate"] == 0.5
    assert merged["data"]["options"]["gate"] == "or"

    toml = tmp_path / "config.toml"
    toml.write_text("[train]\n")
    with pytest.raises(ValueError):
        pipelines.load_config_file(toml)


def test_startup_summary_names_per_layer_activations(tmp_path, capsys):
    config = _gate_config(tmp_path / "mixed", steps=3)
    config["model"] = {"hidden": [3], "activation": ["tanh", "sigmoid"]}
    pipelines.run_pipeline(config)
    out = capsys.readouterr().out
    assert "Activation    : tanh, sigmoid" in out
    assert "[" not in out.split("Activation    :")[1].splitlines()[0]


def test_pipeline_rejects_fractional_layer_sizes(tmp_path):
    config = _gate_config(tmp_path / "fractional", steps=3)
    config["model"] = {"hidden": [2.5]}
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)
