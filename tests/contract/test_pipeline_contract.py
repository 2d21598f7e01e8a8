import json
from pathlib import Path

import numpy as np
import pytest

from densenets.core.activations import LeakyReLU
from densenets.training import pipelines


def _config(run_dir, **train):
    config = {
        "data": {"name": "linear", "options": {"slope": 3.0, "n_points": 16}},
        "model": {
            "input_size": 1,
            "output_size": 1,
            "hidden": [],
            "output_activation": "linear",
            "loss": "mse",
        },
        "train": {
            "epochs": 5,
            "lr": 0.05,
            "seed": 0,
            "run_dir": str(run_dir),
            "enable_plots": False,
        },
    }
    config["train"].update(train)
    return config


def test_pipeline_produces_artifacts(tmp_path, capsys):
    result = pipelines.run_pipeline(_config(tmp_path / "run"))
    run_dir = tmp_path / "run"
    for name in (
        "metrics_train.jsonl",
        "metrics_train.csv",
        "metrics.jsonl",
        "evaluation.json",
        "summary.json",
        "manifest.json",
        "config.json",
    ):
        assert (run_dir / name).exists(), name

    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2, 3, 4, 5]
    assert all(r["split"] == "train" and r["seed"] == 0 for r in records)
    assert records[-1]["loss"] < records[0]["loss"]
    assert result.final_loss == pytest.approx(records[-1]["loss"])
    assert result.epochs == 5

    evaluation = json.loads(Path(result.evaluation_path).read_text())
    assert {"loss", "mae", "rmse", "r2"} <= set(evaluation)

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["train"]["seed"] == 0
    assert manifest["dataset"]["type"] == "linear"
    assert manifest["model"]["layer_dims"] == [1, 1]
    assert manifest["model"]["parameters"] == 2

    banner = capsys.readouterr().out
    assert "=== DenseNets run ===" in banner
    assert "Dimensions    : [1, 1]" in banner


def test_pipeline_is_deterministic(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path / "a"))
    second = pipelines.run_pipeline(_config(tmp_path / "b"))
    assert Path(first.metrics_path).read_bytes() == Path(second.metrics_path).read_bytes()
    assert Path(first.summary_path).read_bytes() == Path(second.summary_path).read_bytes()


def test_pipeline_sweep_runs_every_combination(tmp_path):
    config = _config(tmp_path / "sweep", epochs=2)
    config["sweep"] = {"lrs": [0.01, 0.05], "seeds": [0, 1]}
    results = pipelines.run_pipeline(config)
    assert len(results) == 4
    run_dirs = {Path(r.metrics_path).parent for r in results}
    assert len(run_dirs) == 4
    assert all(d.parent == tmp_path / "sweep" for d in run_dirs)
    saved = json.loads((tmp_path / "sweep" / "lr0.05_seed1" / "config.json").read_text())
    assert saved["train"]["lr"] == 0.05 and saved["train"]["seed"] == 1
    assert "sweep" not in saved


def test_pipeline_rejects_mismatched_dimensions(tmp_path):
    config = _config(tmp_path / "run")
    config["model"]["input_size"] = 2
    with pytest.raises(ValueError, match="input_size"):
        pipelines.run_pipeline(config)


def test_pipeline_requires_all_sections():
    with pytest.raises(KeyError, match="train"):
        pipelines.run_pipeline({"data": {}, "model": {}})


def test_pipeline_fills_sizes_from_dataset(tmp_path):
    config = _config(tmp_path / "run", epochs=1)
    del config["model"]["input_size"]
    del config["model"]["output_size"]
    config["data"] = {"name": "xor"}
    config["model"]["hidden"] = [3]
    config["model"]["output_activation"] = "sigmoid"
    result = pipelines.run_pipeline(config)
    evaluation = json.loads(Path(result.evaluation_path).read_text())
    assert 0.0 <= evaluation["accuracy"] <= 1.0
    saved = json.loads((tmp_path / "run" / "config.json").read_text())
    assert saved["model"]["input_size"] == 2
    assert saved["model"]["hidden"] == [{"size": 3, "activation": "tanh"}]


@pytest.mark.slow
def test_xor_preset_learns(tmp_path):
    config = pipelines.load_preset("xor-sigmoid")
    config["train"]["run_dir"] = str(tmp_path / "xor")
    result = pipelines.run_pipeline(config)
    records = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert records[-1]["loss"] < records[0]["loss"]


def test_build_network_from_model_section():
    network = pipelines.build_network(
        {
            "input_size": 2,
            "output_size": 3,
            "hidden": [4, {"size": 5, "activation": {"name": "leaky_relu", "alpha": 0.3}}],
            "activation": "relu",
            "output_activation": "sigmoid",
            "loss": {"name": "huber", "delta": 0.5},
            "dtype": "float64",
        },
        seed=2,
    )
    assert [layer.perceptron_size for layer in network.layers] == [4, 5, 3]
    assert network.hidden_layers[0].activation.name == "relu"
    assert isinstance(network.hidden_layers[1].activation, LeakyReLU)
    assert network.output_layer.loss_function.delta == pytest.approx(0.5)
    assert network.dtype == np.float64
    assert network.output_initialized


def test_build_network_validation():
    with pytest.raises(KeyError):
        pipelines.build_network({"output_size": 1})
    with pytest.raises(KeyError):
        pipelines.build_network({"input_size": 1, "output_size": 1, "hidden": [{"activation": "relu"}]})
    with pytest.raises(ValueError):
        pipelines.build_network({"input_size": 1, "output_size": 1, "dtype": "int32"})


def test_presets_include_builtin_and_file_presets():
    available = pipelines.presets()
    assert {"linear-single", "sine-tanh", "xor-sigmoid", "sine-lr-sweep", "xor-relu"} <= set(available)
    preset = pipelines.load_preset("sine-tanh")
    preset["train"]["epochs"] = 0
    assert pipelines.load_preset("sine-tanh")["train"]["epochs"] == 40
    with pytest.raises(KeyError, match="Unknown preset"):
        pipelines.load_preset("nope")


def test_file_presets_require_every_section(tmp_path):
    (tmp_path / "partial.json").write_text(json.dumps({"data": {}, "model": {}}))
    with pytest.raises(KeyError, match="missing required sections: train"):
        pipelines.presets(tmp_path)


def test_yaml_presets(tmp_path):
    yaml = pytest.importorskip("yaml")
    config = _config(tmp_path / "run")
    (tmp_path / "from-yaml.yaml").write_text(yaml.safe_dump(config))
    assert pipelines.load_preset("from-yaml", tmp_path) == config
