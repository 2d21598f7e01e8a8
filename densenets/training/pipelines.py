"""Config-driven training pipelines, presets and sweeps."""
from __future__ import annotations
import json
import time
from copy import deepcopy
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import numpy as np

from ..core.network import Network
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .metrics import compute_metrics, default_metrics

_PRESETS: Dict[str, Mapping[str, object]] = {
    "linear-single": {
        "data": {"name": "linear", "options": {"slope": 3.0, "n_points": 16}},
        "model": {
            "input_size": 1,
            "output_size": 1,
            "hidden": [],
            "output_activation": "linear",
            "loss": "mse",
        },
        "train": {
            "epochs": 20,
            "lr": 0.05,
            "seed": 0,
            "run_dir": "runs/linear-single",
            "enable_plots": False,
        },
    },
    "sine-tanh": {
        "data": {"name": "sine", "options": {"freq": 1.0, "n_points": 64, "seed": 0}},
        "model": {
            "input_size": 1,
            "output_size": 1,
            "hidden": [{"size": 16, "activation": "tanh"}],
            "output_activation": "linear",
            "loss": "mse",
        },
        "train": {
            "epochs": 40,
            "lr": 0.01,
            "seed": 7,
            "run_dir": "runs/sine-tanh",
            "enable_plots": False,
        },
    },
    "sine-deep-leaky": {
        "data": {"name": "sine", "options": {"freq": 2.0, "n_points": 128, "seed": 0}},
        "model": {
            "input_size": 1,
            "output_size": 1,
            "hidden": [
                {"size": 16, "activation": {"name": "leaky_relu", "alpha": 0.05}},
                {"size": 16, "activation": "tanh"},
            ],
            "output_activation": "linear",
            "loss": {"name": "huber", "delta": 0.5},
        },
        "train": {
            "epochs": 40,
            "lr": 0.005,
            "seed": 3,
            "workers": 2,
            "run_dir": "runs/sine-deep-leaky",
            "enable_plots": False,
        },
    },
    "xor-sigmoid": {
        "data": {"name": "xor", "options": {"repeat": 1}},
        "model": {
            "input_size": 2,
            "output_size": 1,
            "hidden": [{"size": 4, "activation": "tanh"}],
            "output_activation": "sigmoid",
            "loss": "mse",
        },
        "train": {
            "epochs": 500,
            "lr": 0.5,
            "seed": 1,
            "run_dir": "runs/xor-sigmoid",
            "enable_plots": False,
        },
    },
    "sine-lr-sweep": {
        "sweep": {"lrs": [0.001, 0.01, 0.05], "seeds": [0, 1]},
        "data": {"name": "sine", "options": {"freq": 1.0, "n_points": 32, "seed": 0}},
        "model": {
            "input_size": 1,
            "output_size": 1,
            "hidden": [8],
            "activation": "tanh",
            "output_activation": "linear",
            "loss": "mse",
        },
        "train": {
            "epochs": 10,
            "run_dir": "runs/sine-lr-sweep",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_REQUIRED_SECTIONS = {"data", "model", "train"}


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load preset files in YAML format") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets(preset_dir: Path | None = None) -> Dict[str, Mapping[str, object]]:
    directory = preset_dir or _PRESET_DIR
    found: Dict[str, Mapping[str, object]] = {}
    if not directory.exists():
        return found
    for file in sorted(directory.iterdir()):
        if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
            continue
        data = _read_preset_file(file)
        missing = _REQUIRED_SECTIONS - set(data)
        if missing:
            missing_str = ", ".join(sorted(missing))
            raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
        found[file.stem] = json.loads(json.dumps(data))
    return found


def presets(preset_dir: Path | None = None) -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}
    combined.update(_file_presets(preset_dir))
    return combined


def load_preset(name: str, preset_dir: Path | None = None) -> Dict[str, Any]:
    available = presets(preset_dir)
    if name not in available:
        names = ", ".join(sorted(available))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {names}")
    return deepcopy(dict(available[name]))


# ----------------------------------------------------------------------
# Model construction


def _hidden_specs(model_cfg: Mapping[str, object]) -> List[Dict[str, object]]:
    default_activation = model_cfg.get("activation", "tanh")
    specs: List[Dict[str, object]] = []
    for entry in model_cfg.get("hidden", []) or []:  # type: ignore[union-attr]
        if isinstance(entry, Mapping):
            if "size" not in entry:
                raise KeyError(f"Hidden layer entry {entry!r} requires a 'size'")
            specs.append(
                {"size": int(entry["size"]), "activation": entry.get("activation", default_activation)}
            )
        else:
            specs.append({"size": int(entry), "activation": default_activation})
    return specs


def build_network(
    model_cfg: Mapping[str, object],
    *,
    seed: int = 0,
    workers: int = 1,
) -> Network:
    """Build and fully initialise a :class:`Network` from a ``model`` config section."""

    for key in ("input_size", "output_size"):
        if key not in model_cfg:
            raise KeyError(f"Model config requires {key!r}")
    dtype = np.dtype(str(model_cfg.get("dtype", "float32")))
    if dtype not in (np.dtype(np.float32), np.dtype(np.float64)):
        raise ValueError(f"Unsupported dtype: {dtype}")

    network = Network(
        int(model_cfg["input_size"]),  # type: ignore[arg-type]
        int(model_cfg["output_size"]),  # type: ignore[arg-type]
        seed=seed,
        dtype=dtype,
        workers=workers,
    )
    for spec in _hidden_specs(model_cfg):
        network.add_hidden(spec["size"], spec["activation"])  # type: ignore[arg-type]
    network.initialize_output(
        model_cfg.get("output_activation", "linear"),  # type: ignore[arg-type]
        model_cfg.get("loss", "mse"),  # type: ignore[arg-type]
    )
    return network


# ----------------------------------------------------------------------
# Running


def run_pipeline(config: Mapping[str, object]) -> RunResult | List[RunResult]:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    if "sweep" in config:
        return _run_sweep(config)
    return _train_single(config)


def _run_sweep(config: Mapping[str, object]) -> List[RunResult]:
    sweep_cfg = dict(config["sweep"])  # type: ignore[arg-type]
    base_train = dict(config["train"])  # type: ignore[arg-type]
    lrs = list(sweep_cfg.get("lrs", [base_train.get("lr", 0.01)]))
    seeds = list(sweep_cfg.get("seeds", [base_train.get("seed", 0)]))
    base_dir = _resolve_run_dir(base_train, str(dict(config["data"]).get("name", "data")))  # type: ignore[arg-type]

    results: List[RunResult] = []
    for lr in lrs:
        for seed in seeds:
            cfg = deepcopy(dict(config))
            cfg.pop("sweep", None)
            cfg["train"] = dict(base_train, lr=float(lr), seed=int(seed))
            cfg["train"]["run_dir"] = str(base_dir / f"lr{lr}_seed{seed}")
            results.append(_train_single(cfg))
    return results


def _train_single(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    dataset = registry.get(str(data_cfg["name"]), **dict(data_cfg.get("options", {}) or {}))
    data_spec = dataset.data_spec
    model_cfg.setdefault("input_size", data_spec.input_size)
    model_cfg.setdefault("output_size", data_spec.output_size)
    if int(model_cfg["input_size"]) != data_spec.input_size:
        raise ValueError(
            f"Configured input_size={model_cfg['input_size']} but dataset "
            f"{dataset.name!r} has {data_spec.input_size}"
        )
    if int(model_cfg["output_size"]) != data_spec.output_size:
        raise ValueError(
            f"Configured output_size={model_cfg['output_size']} but dataset "
            f"{dataset.name!r} has {data_spec.output_size}"
        )

    seed = int(train_cfg.get("seed", 0))
    epochs = int(train_cfg.get("epochs", 1))
    lr = float(train_cfg.get("lr", 0.001))
    workers = int(train_cfg.get("workers", 1))
    metric_names = _metric_names(train_cfg.get("metrics"), data_spec.task_type)

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    network = build_network(model_cfg, seed=seed, workers=workers)
    description = network.describe()
    _print_startup_summary(
        dataset_name=dataset.name,
        samples=len(dataset),
        dims=description.layer_dims,
        activations=description.activations,
        loss=description.loss,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics_train.csv", split="train")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    with network:
        history = network.train(
            dataset.inputs,
            dataset.targets,
            epochs,
            lr,
            report_progress=bool(train_cfg.get("progress", False)),
            callbacks=[jsonl, csv_sink, plots],
        )
        predictions = network.predict(dataset.inputs)
    plots.close()

    loss_fn = network.output_layer.loss_function  # type: ignore[union-attr]
    per_sample = np.sum(loss_fn.calculate(dataset.targets, predictions), axis=1)
    evaluation = {"loss": float(np.mean(per_sample)) if per_sample.size else 0.0}
    evaluation.update(compute_metrics(metric_names, predictions, dataset.targets))
    evaluation_path = run_dir / "evaluation.json"
    evaluation_path.write_text(json.dumps(evaluation, indent=2, sort_keys=True))

    safe_config = _safe_config(config, model_cfg)
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance=dataset.provenance,
        model=dict(asdict(description), parameters=network.parameter_count()),
    )
    summary_path = write_summary(
        jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 32))
    )
    (run_dir / "metrics.jsonl").write_text(jsonl.path.read_text())

    return RunResult(
        epochs=epochs,
        final_loss=history[-1] if history else evaluation["loss"],
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        evaluation_path=str(evaluation_path),
    )


def _metric_names(metrics_cfg: object, task_type: str) -> List[str]:
    if metrics_cfg is None or metrics_cfg == "default":
        return default_metrics(task_type)
    if isinstance(metrics_cfg, str):
        return [m.strip() for m in metrics_cfg.split(",") if m.strip()]
    return [str(m) for m in metrics_cfg]  # type: ignore[union-attr]


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if train_cfg.get("run_dir"):
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object], model_cfg: Mapping[str, object]) -> Dict[str, Any]:
    copied = json.loads(json.dumps(config))
    resolved = json.loads(json.dumps(model_cfg))
    resolved["hidden"] = _hidden_specs(model_cfg)
    copied["model"] = resolved
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    samples: int,
    dims: Sequence[int],
    activations: Sequence[str],
    loss: str,
    param_count: int,
) -> None:
    print("=== DenseNets run ===")
    print(f"Dataset       : {dataset_name} ({samples} samples)")
    print(f"Dimensions    : {list(dims)}")
    print(f"Activations   : {list(activations)}")
    print(f"Loss          : {loss}")
    print(f"Parameters    : {param_count}")
    print("=====================")


__all__ = ["build_network", "load_preset", "presets", "run_pipeline"]
