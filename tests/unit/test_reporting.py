import io
import json

import pytest

from densenets.reporting.metrics import CsvSink, JsonlSink
from densenets.reporting.plots import PlotAdapter
from densenets.reporting.progress import ConsoleProgress
from densenets.reporting.summary import compute_auc, write_summary


def test_console_progress_redraws_a_single_line():
    stream = io.StringIO()
    progress = ConsoleProgress(2, stream=stream, width=10)
    progress.on_epoch(1, {"loss": 0.5})
    assert stream.getvalue() == "\rEpoch 1/2: [=====     ] 50% - Loss: 0.500"
    progress.on_epoch(2, {"loss": 0.25})
    assert stream.getvalue().endswith("\rEpoch 2/2: [==========] 100% - Loss: 0.250\n")


def test_jsonl_sink_appends_records(tmp_path):
    sink = JsonlSink(tmp_path / "m.jsonl", seed=3, sha="abc123")
    sink.on_epoch(1, {"loss": 2.0, "total_loss": 4.0})
    sink(2, {"loss": 1.0, "label": "ignored"})
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[0] == {
        "epoch": 1,
        "split": "train",
        "seed": 3,
        "sha": "abc123",
        "loss": 2.0,
        "total_loss": 4.0,
    }
    assert records[1]["epoch"] == 2 and "label" not in records[1]


def test_jsonl_sink_truncates_existing_file(tmp_path):
    path = tmp_path / "m.jsonl"
    path.write_text("stale\n")
    JsonlSink(path, sha="x")
    assert path.read_text() == ""


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "m.csv")
    sink.on_epoch(1, {"loss": 2.0})
    sink.on_epoch(2, {"loss": 1.0})
    lines = (tmp_path / "m.csv").read_text().splitlines()
    assert lines == ["epoch,loss,split", "1,2.0,train", "2,1.0,train"]


def test_summary_reports_best_epoch_and_extremes(tmp_path):
    metrics = tmp_path / "m.jsonl"
    sink = JsonlSink(metrics, seed=0, sha="abc")
    for epoch, loss in enumerate([3.0, 1.0, 2.0], start=1):
        sink.on_epoch(epoch, {"loss": loss})
    path = write_summary(metrics, tmp_path / "summary.json", tail=2)
    summary = json.loads(open(path).read())
    assert summary["records"] == 3
    assert summary["best_epoch"] == 2
    assert summary["tail_window"] == 2
    loss = summary["metrics"]["loss"]
    assert (loss["min"], loss["max"], loss["first"], loss["last"]) == (1.0, 3.0, 3.0, 2.0)
    assert loss["tail_auc"] == pytest.approx(1.5)
    assert "seed" not in summary["metrics"]


def test_summary_ignores_diverged_epochs(tmp_path):
    metrics = tmp_path / "m.jsonl"
    sink = JsonlSink(metrics, seed=0, sha="abc")
    for epoch, loss in enumerate([3.0, 1.0, float("nan"), float("inf")], start=1):
        sink.on_epoch(epoch, {"loss": loss})
    summary = json.loads(open(write_summary(metrics, tmp_path / "summary.json")).read())
    assert summary["best_epoch"] == 2
    loss = summary["metrics"]["loss"]
    assert (loss["min"], loss["max"], loss["mean"]) == (1.0, 3.0, 2.0)
    assert loss["last"] == float("inf")


def test_summary_of_fully_diverged_run_has_no_best_epoch(tmp_path):
    metrics = tmp_path / "m.jsonl"
    sink = JsonlSink(metrics, seed=0, sha="abc")
    sink.on_epoch(1, {"loss": float("nan")})
    summary = json.loads(open(write_summary(metrics, tmp_path / "summary.json")).read())
    assert summary["best_epoch"] is None
    assert summary["metrics"]["loss"]["min"] != summary["metrics"]["loss"]["min"]


def test_summary_of_missing_metrics_is_empty(tmp_path):
    path = write_summary(tmp_path / "absent.jsonl", tmp_path / "summary.json")
    summary = json.loads(open(path).read())
    assert summary["records"] == 0
    assert summary["best_epoch"] is None


def test_compute_auc():
    assert compute_auc([]) == 0.0
    assert compute_auc([1.0, 1.0, 1.0]) == pytest.approx(2.0)


def test_plot_adapter_disabled_is_a_no_op(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots")
    adapter.on_epoch(1, {"loss": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()


def test_plot_adapter_writes_png(tmp_path):
    pytest.importorskip("matplotlib")
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.on_epoch(2, {"loss": 0.5})
    assert adapter.close() == tmp_path / "loss.png"
    assert (tmp_path / "loss.png").exists()
