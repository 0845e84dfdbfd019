"""Tests for the One-vs-Rest batch coordinator."""

import pytest

from screeningml.exceptions import AllPairsFailedError, NoLabelsFoundError, SourceNotFoundError
from screeningml.tracking import NoOpTracker
from screeningml.data.partition import LabelSourceDirectory
from screeningml.io import provision
from screeningml.training.ovr import OvRBatchCoordinator, order_labels


class RecordingTracker(NoOpTracker):
    def __init__(self):
        self.metrics = []
        self.started = 0
        self.ended = 0

    def start_run(self, run_name=None, tags=None):
        self.started += 1
        return self

    def end_run(self):
        self.ended += 1

    def log_metrics(self, metrics, step=None):
        self.metrics.append((dict(metrics), step))


def _run_args(tmp_path, resources, metadata, parameters):
    return dict(
        resources_root=resources,
        batch_output_root=tmp_path / "OutputModels",
        temp_root=tmp_path / "TempOvRTrainingData",
        metadata=metadata,
        parameters=parameters,
    )


def test_end_to_end_layout(resources_dir, tmp_path, metadata, parameters, fake_service):
    coordinator = OvRBatchCoordinator(service=fake_service)

    batch = coordinator.execute(**_run_args(tmp_path, resources_dir, metadata, parameters))

    run_dir = tmp_path / "OutputModels" / "OvR_Result_1"
    assert coordinator.output_run.path == run_dir
    assert sorted(p.name for p in run_dir.iterdir()) == ["Cat_OvR_v1.joblib", "Dog_OvR_v1.joblib"]

    temp = tmp_path / "TempOvRTrainingData"
    cat_ws = temp / "Cat_vs_Rest_TrainingData_v1"
    dog_ws = temp / "Dog_vs_Rest_TrainingData_v1"
    assert sorted(p.name for p in temp.iterdir()) == [cat_ws.name, dog_ws.name]
    assert sorted(p.name for p in (cat_ws / "Cat").iterdir()) == ["c1.png", "c2.png"]
    assert sorted(p.name for p in (dog_ws / "Rest").iterdir()) == ["r1.png", "r2.png"]

    assert batch.data_paths == (str(cat_ws), str(dog_ws))
    assert str(cat_ws) in batch.data_path_summary and str(dog_ws) in batch.data_path_summary
    assert batch.model_path == str(run_dir / "Cat_OvR_v1.joblib")
    assert batch.labels == ["Cat", "Dog"]


def test_parameters_are_shared_by_every_pair(resources_dir, tmp_path, metadata, parameters, fake_service):
    OvRBatchCoordinator(service=fake_service).execute(**_run_args(tmp_path, resources_dir, metadata, parameters))

    assert len(fake_service.calls) == 2
    assert all(call["params"] is parameters for call in fake_service.calls)


def test_labels_processed_in_sorted_order(tmp_path, make_tree, metadata, parameters, fake_service):
    resources = make_tree(
        tmp_path / "res",
        {"zebra": ["z.png"], "apple": ["a.png"], "mango": ["m.png"], "rest": ["r.png"]},
    )

    batch = OvRBatchCoordinator(service=fake_service).execute(**_run_args(tmp_path, resources, metadata, parameters))

    assert batch.labels == ["Apple", "Mango", "Zebra"]
    assert [call["dataset_dir"].name for call in fake_service.calls] == [
        "Apple_vs_Rest_TrainingData_v1",
        "Mango_vs_Rest_TrainingData_v1",
        "Zebra_vs_Rest_TrainingData_v1",
    ]


def test_order_labels_breaks_ties_on_raw_name(tmp_path):
    labels = [
        LabelSourceDirectory("scary_face", tmp_path / "scary_face"),
        LabelSourceDirectory("Scary_Face", tmp_path / "Scary_Face"),
        LabelSourceDirectory("bird", tmp_path / "bird"),
    ]

    ordered = order_labels(labels)

    assert [label.name for label in ordered] == ["bird", "Scary_Face", "scary_face"]


def test_only_rest_and_hidden_is_fatal(tmp_path, make_tree, metadata, parameters, fake_service):
    resources = make_tree(tmp_path / "res", {"rest": ["r.png"]})
    (resources / ".hidden").mkdir()
    (resources / ".DS_Store").write_bytes(b"x")
    coordinator = OvRBatchCoordinator(service=fake_service)

    with pytest.raises(NoLabelsFoundError):
        coordinator.execute(**_run_args(tmp_path, resources, metadata, parameters))

    assert coordinator.run(**_run_args(tmp_path, resources, metadata, parameters)) is None
    assert fake_service.calls == []


def test_partial_failure_aggregates_successful_pairs(tmp_path, make_tree, metadata, parameters, service_factory):
    resources = make_tree(
        tmp_path / "res",
        {"ant": ["a.png"], "bee": ["b.png"], "cow": ["c.png"], "rest": ["r.png"]},
    )
    service = service_factory(errors={"Ant": 0.1, "Cow": 0.3}, fail_labels={"Bee"})
    coordinator = OvRBatchCoordinator(service=service)

    batch = coordinator.run(**_run_args(tmp_path, resources, metadata, parameters))

    assert batch is not None
    assert batch.labels == ["Ant", "Cow"]
    assert len(batch.data_paths) == 2
    assert batch.training_error_rate == pytest.approx(0.2)
    assert batch.training_accuracy == pytest.approx(0.8)
    assert coordinator.failed_labels == ["Bee"]
    assert not (coordinator.output_run.path / "Bee_OvR_v1.joblib").exists()


def test_all_pairs_failing_is_fatal(resources_dir, tmp_path, metadata, parameters, service_factory):
    service = service_factory(fail_labels={"Cat", "Dog"})
    coordinator = OvRBatchCoordinator(service=service)

    with pytest.raises(AllPairsFailedError) as exc_info:
        coordinator.execute(**_run_args(tmp_path, resources_dir, metadata, parameters))

    assert exc_info.value.labels == ["Cat", "Dog"]


def test_missing_resources_root(tmp_path, metadata, parameters, fake_service):
    coordinator = OvRBatchCoordinator(service=fake_service)

    with pytest.raises(SourceNotFoundError):
        coordinator.execute(**_run_args(tmp_path, tmp_path / "nope", metadata, parameters))
    assert coordinator.run(**_run_args(tmp_path, tmp_path / "nope", metadata, parameters)) is None


def test_runs_are_numbered_and_temp_root_purged(resources_dir, tmp_path, metadata, parameters, fake_service):
    args = _run_args(tmp_path, resources_dir, metadata, parameters)
    stale = tmp_path / "TempOvRTrainingData" / "Old_vs_Rest_TrainingData_v0"
    stale.mkdir(parents=True)

    coordinator = OvRBatchCoordinator(service=fake_service)
    coordinator.execute(**args)
    first = coordinator.output_run
    coordinator.execute(**args)
    second = coordinator.output_run

    assert (first.name, second.name) == ("OvR_Result_1", "OvR_Result_2")
    assert not stale.exists()
    assert (second.path / "Cat_OvR_v1.joblib").exists()


def test_missing_rest_bucket_trains_with_empty_rest(tmp_path, make_tree, metadata, parameters, fake_service):
    resources = make_tree(tmp_path / "res", {"cat": ["c.png"]})

    batch = OvRBatchCoordinator(service=fake_service).execute(**_run_args(tmp_path, resources, metadata, parameters))

    assert batch.labels == ["Cat"]
    assert fake_service.calls[0]["files"]["Rest"] == []


def test_tracker_receives_pair_metrics_and_is_closed(resources_dir, tmp_path, metadata, parameters, service_factory):
    tracker = RecordingTracker()
    service = service_factory(fail_labels={"Cat", "Dog"})
    coordinator = OvRBatchCoordinator(service=service, tracker=tracker)
    assert coordinator.run(**_run_args(tmp_path, resources_dir, metadata, parameters)) is None
    assert (tracker.started, tracker.ended) == (1, 1)

    tracker = RecordingTracker()
    coordinator = OvRBatchCoordinator(service=service_factory(), tracker=tracker)
    coordinator.execute(**_run_args(tmp_path, resources_dir, metadata, parameters))

    pair_steps = [step for _, step in tracker.metrics if step is not None]
    assert pair_steps == [0, 1]
    assert "Cat/validation_accuracy" in tracker.metrics[0][0]
    assert "mean_validation_accuracy" in tracker.metrics[-1][0]


def test_labels_normalizing_to_same_name_train_once(tmp_path, make_tree, metadata, parameters, service_factory):
    resources = make_tree(
        tmp_path / "res",
        {"scary_face": ["s1.png"], "Scary_Face": ["S1.png", "S2.png"], "rest": ["r.png"]},
    )
    service = service_factory(errors={"ScaryFace": 0.2})
    coordinator = OvRBatchCoordinator(service=service)

    batch = coordinator.execute(**_run_args(tmp_path, resources, metadata, parameters))

    assert batch.labels == ["ScaryFace"]
    assert len(service.calls) == 1
    assert sorted(service.calls[0]["files"]["ScaryFace"]) == ["S1.png", "S2.png"]
    assert coordinator.failed_labels == ["scary_face"]
    assert [p.name for p in coordinator.output_run.path.iterdir()] == ["ScaryFace_OvR_v1.joblib"]
    assert any("scary_face" in w for w in batch.warnings)


def test_label_named_like_rest_class_is_skipped(tmp_path, make_tree, metadata, parameters, fake_service):
    resources = make_tree(tmp_path / "res", {"cat": ["c.png"], "REST": ["r.png"], "rest": ["x.png"]})
    coordinator = OvRBatchCoordinator(service=fake_service)

    batch = coordinator.execute(**_run_args(tmp_path, resources, metadata, parameters))

    assert batch.labels == ["Cat"]
    assert coordinator.failed_labels == ["rest"]
    assert fake_service.calls[0]["files"]["Rest"] == ["r.png"]


def test_stale_temp_root_purge_failure_is_reported(resources_dir, tmp_path, metadata, parameters, fake_service, monkeypatch):
    args = _run_args(tmp_path, resources_dir, metadata, parameters)
    args["temp_root"].mkdir()
    real_rmtree = provision.shutil.rmtree

    def failing_rmtree(path, *a, **kw):
        if path == args["temp_root"]:
            raise PermissionError("locked")
        return real_rmtree(path, *a, **kw)

    monkeypatch.setattr(provision.shutil, "rmtree", failing_rmtree)
    coordinator = OvRBatchCoordinator(service=fake_service)

    batch = coordinator.execute(**args)

    assert batch.labels == ["Cat", "Dog"]
    assert len(coordinator.warnings) == 1
    assert "locked" in coordinator.warnings[0]
    assert batch.warnings == tuple(coordinator.warnings)


def test_tracker_closed_when_start_run_raises(resources_dir, tmp_path, metadata, parameters, fake_service):
    class BrokenStartTracker(RecordingTracker):
        def start_run(self, run_name=None, tags=None):
            raise RuntimeError("tracking backend down")

    tracker = BrokenStartTracker()
    coordinator = OvRBatchCoordinator(service=fake_service, tracker=tracker)

    with pytest.raises(RuntimeError):
        coordinator.execute(**_run_args(tmp_path, resources_dir, metadata, parameters))

    assert tracker.ended == 1
    assert fake_service.calls == []
