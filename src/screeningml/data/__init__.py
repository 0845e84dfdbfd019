"""Labeled image directory discovery and pair dataset construction."""

from screeningml.data.partition import (
    REST_LABEL,
    REST_WORKSPACE_NAME,
    LabelSourceDirectory,
    PairWorkspace,
    discover_label_directories,
    find_rest_bucket,
    list_source_files,
    materialize_pair,
    normalize_label_name,
    pair_workspace_name,
)

__all__ = [
    "REST_LABEL",
    "REST_WORKSPACE_NAME",
    "LabelSourceDirectory",
    "PairWorkspace",
    "discover_label_directories",
    "find_rest_bucket",
    "list_source_files",
    "materialize_pair",
    "normalize_label_name",
    "pair_workspace_name",
]
