"""One-vs-Rest batch training coordinator."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from screeningml.config import ModelMetadata, TrainingParameters
from screeningml.data.partition import (
    REST_WORKSPACE_NAME,
    LabelSourceDirectory,
    discover_label_directories,
    find_rest_bucket,
    materialize_pair,
    pair_workspace_name,
)
from screeningml.engine.base import ClassifierService
from screeningml.engine.image_classifier import SklearnImageClassifier
from screeningml.exceptions import (
    AllPairsFailedError,
    NoLabelsFoundError,
    ScreeningError,
)
from screeningml.io.provision import OutputRun, provision_output_run, provision_workspace
from screeningml.tracking import ExperimentTracker, NoOpTracker, extract_loggable_params
from screeningml.training.aggregate import aggregate
from screeningml.training.results import BatchResult, PairTrainingResult
from screeningml.training.runner import run_one

logger = logging.getLogger(__name__)

OVR_PREFIX = "OvR"


def order_labels(labels) -> List[LabelSourceDirectory]:
    """Deterministic processing order: normalized name, then raw directory name."""
    return sorted(labels, key=lambda label: (label.normalized_name, label.name))


class OvRBatchCoordinator:
    """
    Train one "label vs rest" binary classifier per label directory.

    For every label under the resources root (except ``rest``), a temporary
    ``<Label>/`` + ``Rest/`` dataset is built under the temp root and trained
    through the classifier service. Pairs run sequentially; a failed pair is
    skipped and the batch continues. Artifacts of one invocation land in a
    fresh ``<prefix>_Result_<n>`` directory under the batch output root.

    Parameters
    ----------
    service : ClassifierService, optional
        Trainable classifier service (defaults to ``SklearnImageClassifier``)
    tracker : ExperimentTracker, optional
        Receives per-pair and batch metrics (defaults to ``NoOpTracker``)
    prefix : str
        Output run name prefix
    """

    def __init__(
        self,
        service: Optional[ClassifierService] = None,
        tracker: Optional[ExperimentTracker] = None,
        prefix: str = OVR_PREFIX,
    ):
        self.service = service or SklearnImageClassifier()
        self.tracker = tracker or NoOpTracker()
        self.prefix = prefix
        self.output_run: Optional[OutputRun] = None
        self.failed_labels: List[str] = []
        self.warnings: List[str] = []

    def execute(
        self,
        resources_root: Path,
        batch_output_root: Path,
        temp_root: Path,
        metadata: ModelMetadata,
        parameters: TrainingParameters,
    ) -> BatchResult:
        """
        Run the batch and return the aggregated result.

        Raises
        ------
        DirectoryCreationError
            If the output run or temp root cannot be provisioned
        SourceNotFoundError
            If ``resources_root`` is missing or unreadable
        NoLabelsFoundError
            If no label directory other than ``rest`` exists
        AllPairsFailedError
            If every pair failed
        """
        resources_root = Path(resources_root)
        temp_root = Path(temp_root)
        self.failed_labels = []
        self.warnings = []

        self.output_run = provision_output_run(Path(batch_output_root), self.prefix)
        self.warnings.extend(provision_workspace(temp_root))

        logger.info(f"Starting OvR training: {metadata.version}")

        labels = order_labels(discover_label_directories(resources_root))
        if not labels:
            raise NoLabelsFoundError(resources_root)
        rest_bucket = find_rest_bucket(resources_root)
        if rest_bucket is None:
            logger.warning(f"No 'rest' directory under {resources_root}; Rest classes will be empty")

        logger.info(f"  Labels to process: {len(labels)}")

        try:
            self.tracker.start_run(
                run_name=f"{self.output_run.name}_{metadata.version}",
                tags={"task_type": "ovr", "version": metadata.version},
            )
            self.tracker.log_params({**extract_loggable_params(parameters), "n_labels": len(labels)})
            results = self._train_pairs(labels, rest_bucket, temp_root, metadata, parameters)

            if not results:
                raise AllPairsFailedError(self.failed_labels)

            batch = replace(aggregate(results), warnings=tuple(self.warnings))
            self.tracker.log_summary(batch, prefix="mean_")
        finally:
            self.tracker.end_run()

        logger.info(
            f"OvR training complete: {len(results)}/{len(labels)} pairs, "
            f"mean val acc={batch.validation_accuracy * 100:.2f}%"
        )
        return batch

    def _train_pairs(
        self,
        labels: List[LabelSourceDirectory],
        rest_bucket: Optional[Path],
        temp_root: Path,
        metadata: ModelMetadata,
        parameters: TrainingParameters,
    ) -> List[PairTrainingResult]:
        results: List[PairTrainingResult] = []
        taken = {REST_WORKSPACE_NAME}
        for index, label in enumerate(labels):
            logger.info(f"[{index + 1}/{len(labels)}] {label.normalized_name} vs Rest")
            if label.normalized_name in taken:
                message = f"Skipped {label.name}: {label.normalized_name} is already in use"
                logger.warning(f"  {message}")
                self.warnings.append(message)
                self.failed_labels.append(label.name)
                continue
            taken.add(label.normalized_name)

            workspace_root = temp_root / pair_workspace_name(label.name, metadata.version)
            try:
                workspace = materialize_pair(label, rest_bucket, workspace_root)
                result = run_one(workspace, parameters, metadata, self.output_run.path, self.service)
            except ScreeningError as e:
                logger.warning(f"  Skipping {label.normalized_name}: {e}")
                self.failed_labels.append(label.normalized_name)
                continue

            results.append(result)
            self.tracker.log_pair(result, step=index)
        return results

    def run(
        self,
        resources_root: Path,
        batch_output_root: Path,
        temp_root: Path,
        metadata: ModelMetadata,
        parameters: TrainingParameters,
    ) -> Optional[BatchResult]:
        """Like ``execute`` but returns ``None`` instead of raising on fatal errors."""
        try:
            return self.execute(resources_root, batch_output_root, temp_root, metadata, parameters)
        except ScreeningError as e:
            logger.error(f"OvR batch aborted: {e}")
            return None
