"""Tests for the MLflow tracker with a mocked ``mlflow`` module."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from screeningml.tracking.mlflow_tracker import MAX_PARAM_LENGTH, MLflowTracker
from screeningml.training.results import PairTrainingResult


@pytest.fixture
def mock_mlflow():
    module = MagicMock()
    with patch.dict(sys.modules, {"mlflow": module}):
        yield module


class TestMLflowTracker:
    def test_init_sets_experiment_and_uri(self, mock_mlflow):
        MLflowTracker(experiment_name="screening", tracking_uri="http://localhost:5000")

        mock_mlflow.set_tracking_uri.assert_called_once_with("http://localhost:5000")
        mock_mlflow.set_experiment.assert_called_once_with("screening")

    def test_start_run_with_tags(self, mock_mlflow):
        tracker = MLflowTracker()
        tracker.start_run(run_name="OvR_Result_1_v3", tags={"task_type": "ovr"})

        mock_mlflow.start_run.assert_called_once_with(run_name="OvR_Result_1_v3")
        mock_mlflow.set_tags.assert_called_once_with({"task_type": "ovr"})

    def test_restarting_ends_previous_run(self, mock_mlflow):
        tracker = MLflowTracker()
        tracker.start_run()
        tracker.start_run()

        assert mock_mlflow.end_run.call_count == 1
        assert mock_mlflow.start_run.call_count == 2

    def test_calls_skipped_without_active_run(self, mock_mlflow):
        tracker = MLflowTracker()
        tracker.log_params({"a": 1})
        tracker.log_metrics({"acc": 0.5})
        tracker.end_run()

        mock_mlflow.log_params.assert_not_called()
        mock_mlflow.log_metrics.assert_not_called()
        mock_mlflow.end_run.assert_not_called()

    def test_log_params_truncates_and_sanitizes(self, mock_mlflow):
        tracker = MLflowTracker()
        tracker.start_run()
        tracker.log_params({"parameters": {"note": "x" * 1000}, "bad key": 1})

        logged = mock_mlflow.log_params.call_args[0][0]
        assert len(logged["parameters/note"]) == MAX_PARAM_LENGTH
        assert logged["parameters/note"].endswith("...")
        assert logged["bad_key"] == "1"

    def test_log_metrics_drops_non_numeric(self, mock_mlflow):
        tracker = MLflowTracker()
        tracker.start_run()
        tracker.log_metrics({"Cat/validation_accuracy": 0.9, "label": "Cat", "flag": True}, step=2)

        mock_mlflow.log_metrics.assert_called_once_with({"Cat/validation_accuracy": 0.9}, step=2)

    def test_backend_errors_become_warnings(self, mock_mlflow, caplog):
        mock_mlflow.log_metrics.side_effect = RuntimeError("server down")
        tracker = MLflowTracker()
        tracker.start_run()

        tracker.log_metrics({"acc": 0.5})

        assert "server down" in caplog.text

    def test_failed_start_run_disables_tracking(self, mock_mlflow, caplog):
        mock_mlflow.start_run.side_effect = RuntimeError("tracking server unreachable")
        tracker = MLflowTracker()

        assert tracker.start_run(run_name="OvR_Result_1_v3", tags={"task_type": "ovr"}) is tracker
        tracker.log_metrics({"acc": 0.5})
        tracker.end_run()

        assert "tracking server unreachable" in caplog.text
        mock_mlflow.set_tags.assert_not_called()
        mock_mlflow.log_metrics.assert_not_called()
        mock_mlflow.end_run.assert_not_called()

    def test_log_pair_reaches_mlflow(self, mock_mlflow):
        tracker = MLflowTracker()
        tracker.start_run()
        result = PairTrainingResult.from_errors("Cat", "/out/Cat_OvR_v3.joblib", 0.5, 0.5, 1.0, "/tmp/ws")

        tracker.log_pair(result, step=1)

        mock_mlflow.log_metrics.assert_called_once_with(
            {"Cat/training_accuracy": 0.5, "Cat/validation_accuracy": 0.5, "Cat/training_seconds": 1.0},
            step=1,
        )
