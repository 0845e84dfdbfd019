"""Output run and workspace directory provisioning."""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List

from screeningml.exceptions import DirectoryCreationError

logger = logging.getLogger(__name__)

RUN_SUFFIX = "_Result_"


@dataclass(frozen=True)
class OutputRun:
    """A sequentially numbered output directory for one training invocation."""

    path: Path
    index: int
    prefix: str

    @property
    def name(self) -> str:
        return self.path.name


def run_dir_name(prefix: str, index: int) -> str:
    """Return the directory name of run ``index`` for ``prefix``."""
    return f"{prefix}{RUN_SUFFIX}{index}"


def next_run_index(batch_root: Path, prefix: str) -> int:
    """
    Compute the index of the next output run under ``batch_root``.

    Children named ``<prefix>_Result_<n>`` contribute ``n``; everything
    else is ignored. Gaps are not filled: the result is ``max + 1``.

    Parameters
    ----------
    batch_root : Path
        Directory holding previous runs (may not exist yet)
    prefix : str
        Run name prefix, e.g. ``"OvR"``

    Returns
    -------
    int
        Next run index (1 when no run exists)
    """
    batch_root = Path(batch_root)
    if not batch_root.is_dir():
        return 1

    pattern = re.compile(rf"^{re.escape(prefix)}{RUN_SUFFIX}(\d+)$")
    indices = []
    for child in batch_root.iterdir():
        match = pattern.match(child.name)
        if match:
            indices.append(int(match.group(1)))
    return max(indices, default=0) + 1


def provision_output_run(batch_root: Path, prefix: str) -> OutputRun:
    """
    Create the next ``<prefix>_Result_<n>`` directory under ``batch_root``.

    Listing and creation are not atomic and no lock is taken, so two
    processes targeting the same root can compute the same index. The
    loser of that race gets a ``DirectoryCreationError``.

    Raises
    ------
    DirectoryCreationError
        If the batch root or the run directory cannot be created
    """
    batch_root = Path(batch_root)
    try:
        batch_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(batch_root, str(e)) from e

    index = next_run_index(batch_root, prefix)
    run_path = batch_root / run_dir_name(prefix, index)
    try:
        run_path.mkdir(exist_ok=False)
    except FileExistsError as e:
        raise DirectoryCreationError(run_path, "run directory already exists") from e
    except OSError as e:
        raise DirectoryCreationError(run_path, str(e)) from e

    logger.info(f"Provisioned output run: {run_path}")
    return OutputRun(path=run_path, index=index, prefix=prefix)


def provision_workspace(path: Path) -> List[str]:
    """
    Purge ``path`` if it exists, then recreate it empty.

    Removal is best-effort: a failure is logged and returned as a warning,
    and only a failure to create the directory afterwards is raised.

    Returns
    -------
    List[str]
        Warnings collected while purging the stale directory
    """
    path = Path(path)
    warnings_out: List[str] = []

    if path.exists() or path.is_symlink():
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
            logger.debug(f"Removed stale workspace: {path}")
        except OSError as e:
            msg = f"Could not remove stale workspace {path}: {e}"
            logger.warning(msg)
            warnings_out.append(msg)

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(path, str(e)) from e

    return warnings_out
