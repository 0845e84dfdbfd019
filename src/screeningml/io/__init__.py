"""Filesystem provisioning for output runs and temporary workspaces."""

from screeningml.io.provision import (
    OutputRun,
    next_run_index,
    provision_output_run,
    provision_workspace,
    run_dir_name,
)

__all__ = [
    "OutputRun",
    "next_run_index",
    "provision_output_run",
    "provision_workspace",
    "run_dir_name",
]
