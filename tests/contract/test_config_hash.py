from pathlib import Path

from densenets.experiments import registry
from densenets.training import pipelines


def test_config_hash_is_stable_under_key_order():
    base = {
        "model": {"hidden": [4], "loss": "mse"},
        "train": {"seed": 11, "lr": 0.01},
        "data": {"name": "sine", "options": {"seed": 11}},
    }
    reordered = {
        "data": {"options": {"seed": 11}, "name": "sine"},
        "train": {"lr": 0.01, "seed": 11},
        "model": {"loss": "mse", "hidden": [4]},
    }
    assert registry.config_hash(base) == registry.config_hash(reordered)
    assert len(registry.config_hash(base)) == 12


def test_config_hash_changes_on_seed():
    config = pipelines.load_preset("sine-tanh")
    baseline = registry.config_hash(config)
    config["train"]["seed"] = int(config["train"]["seed"]) + 1
    assert registry.config_hash(config) != baseline


def test_run_dir_for_uses_hash():
    config = pipelines.load_preset("linear-single")
    assert registry.run_dir_for(config, "out") == Path("out") / registry.config_hash(config)
