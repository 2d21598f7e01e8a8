import numpy as np
import pytest

from densenets import data
from densenets.data.registry import DataSpec, DatasetSpec, register_dataset


def test_builtin_datasets_are_registered():
    assert {"sine", "linear", "xor"} <= set(data.available_datasets())


def test_xor_truth_table():
    spec = data.get("xor", repeat=2)
    assert spec.inputs.shape == (8, 2)
    assert spec.targets.shape == (8, 1)
    assert spec.data_spec.task_type == "binary"
    assert spec.targets[:4, 0].tolist() == [0.0, 1.0, 1.0, 0.0]
    assert len(spec) == 8


def test_sine_is_deterministic_per_seed():
    first = data.get("sine", n_points=16, seed=4)
    second = data.get("sine", n_points=16, seed=4)
    other = data.get("sine", n_points=16, seed=5)
    assert np.array_equal(first.targets, second.targets)
    assert not np.array_equal(first.targets, other.targets)
    assert first.inputs[0, 0] == -1.0 and first.inputs[-1, 0] == 1.0


def test_noiseless_line():
    spec = data.get("linear", slope=3.0, intercept=1.0, n_points=5)
    np.testing.assert_allclose(spec.targets, 3.0 * spec.inputs + 1.0, rtol=1e-6)
    assert spec.provenance["slope"] == 3.0


def test_unknown_dataset():
    with pytest.raises(KeyError, match="Available datasets"):
        data.get("mnist")


def test_registered_factories_are_validated():
    @register_dataset("broken-fixture")
    def _broken():
        return DatasetSpec(
            name="broken-fixture",
            inputs=np.zeros((3, 2), dtype=np.float32),
            targets=np.zeros((2, 1), dtype=np.float32),
            data_spec=DataSpec(input_size=2, output_size=1),
        )

    with pytest.raises(ValueError, match="3 inputs but 2 targets"):
        data.get("broken-fixture")
