"""Label discovery and per-pair workspace materialization for OvR training."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Tuple

from screeningml.exceptions import DirectoryCreationError, SourceNotFoundError
from screeningml.io.provision import provision_workspace

logger = logging.getLogger(__name__)

REST_LABEL = "rest"
REST_WORKSPACE_NAME = "Rest"


def normalize_label_name(raw: str) -> str:
    """
    Convert a raw label directory name into its workspace/display name.

    Splits on underscores and capitalizes every segment:
    ``scary_face`` -> ``ScaryFace``, ``already_Camel`` -> ``AlreadyCamel``.
    """
    return "".join(part.capitalize() for part in raw.split("_") if part)


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def is_rest_bucket(name: str) -> bool:
    return name.lower() == REST_LABEL


@dataclass(frozen=True)
class LabelSourceDirectory:
    """A directory of images for one positive class."""

    name: str
    path: Path

    @property
    def normalized_name(self) -> str:
        return normalize_label_name(self.name)


@dataclass(frozen=True)
class PairWorkspace:
    """Temporary two-class dataset (``<Label>/`` + ``Rest/``) for one pair."""

    label: LabelSourceDirectory
    root: Path
    positive_dir: Path
    rest_dir: Path
    positive_count: int = 0
    rest_count: int = 0
    warnings: Tuple[str, ...] = ()


def _list_subdirectories(root: Path) -> List[Path]:
    root = Path(root)
    if not root.is_dir():
        raise SourceNotFoundError(root)
    try:
        children = list(root.iterdir())
    except OSError as e:
        raise SourceNotFoundError(root, str(e)) from e
    return sorted((c for c in children if c.is_dir() and not is_hidden(c)), key=lambda c: c.name)


def _first_rest_bucket(children: List[Path]) -> Optional[Path]:
    return next((c for c in children if is_rest_bucket(c.name)), None)


def discover_label_directories(root: Path) -> Set[LabelSourceDirectory]:
    """
    Find the positive-class directories under ``root``.

    Hidden entries are excluded, and so is exactly one ``rest`` bucket: the
    directory ``find_rest_bucket`` returns. Other case variants of ``rest``
    are reported as labels.

    Raises
    ------
    SourceNotFoundError
        If ``root`` does not exist or cannot be listed
    """
    children = _list_subdirectories(root)
    rest_bucket = _first_rest_bucket(children)
    labels = {LabelSourceDirectory(name=c.name, path=c) for c in children if c != rest_bucket}
    logger.debug(f"Discovered {len(labels)} label directories under {root}")
    return labels


def find_rest_bucket(root: Path) -> Optional[Path]:
    """
    Return the ``rest`` directory under ``root``, if there is one.

    When several case variants exist, the first by name wins.
    """
    return _first_rest_bucket(_list_subdirectories(root))


def list_source_files(directory: Path) -> List[Path]:
    """List non-hidden regular files in ``directory``, sorted by name."""
    directory = Path(directory)
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and not is_hidden(p)),
        key=lambda p: p.name,
    )


def pair_workspace_name(label_name: str, version: str) -> str:
    """Directory name of the temporary dataset for one label-vs-rest pair."""
    return f"{normalize_label_name(label_name)}_vs_{REST_WORKSPACE_NAME}_TrainingData_{version}"


def _copy_files(source_dir: Optional[Path], dest_dir: Path, warnings_out: List[str]) -> int:
    if source_dir is None or not source_dir.is_dir():
        return 0

    try:
        files = list_source_files(source_dir)
    except OSError as e:
        msg = f"Could not list {source_dir}: {e}"
        logger.warning(msg)
        warnings_out.append(msg)
        return 0

    copied = 0
    for src in files:
        try:
            shutil.copy2(src, dest_dir / src.name)
            copied += 1
        except OSError as e:
            msg = f"Could not copy {src} -> {dest_dir}: {e}"
            logger.warning(msg)
            warnings_out.append(msg)
    return copied


def materialize_pair(
    label: LabelSourceDirectory,
    rest_bucket: Optional[Path],
    workspace_root: Path,
) -> PairWorkspace:
    """
    Build a fresh two-class dataset for ``label`` vs. the rest bucket.

    Any existing ``workspace_root`` is purged first. Files that fail to
    copy are skipped and reported in ``PairWorkspace.warnings``; the pair
    proceeds with whatever was copied.

    Parameters
    ----------
    label : LabelSourceDirectory
        Positive class source
    rest_bucket : Path, optional
        Directory with negative images; ``None`` leaves ``Rest/`` empty
    workspace_root : Path
        Root of the pair dataset, e.g. ``tmp/Cat_vs_Rest_TrainingData_v1``

    Raises
    ------
    DirectoryCreationError
        If the workspace directories cannot be created
    """
    workspace_root = Path(workspace_root)
    warnings_out = provision_workspace(workspace_root)

    positive_dir = workspace_root / label.normalized_name
    rest_dir = workspace_root / REST_WORKSPACE_NAME
    for d in (positive_dir, rest_dir):
        try:
            d.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DirectoryCreationError(d, str(e)) from e

    positive_count = _copy_files(label.path, positive_dir, warnings_out)
    rest_count = _copy_files(rest_bucket, rest_dir, warnings_out)

    logger.info(
        f"  Materialized {workspace_root.name}: "
        f"{positive_count} {label.normalized_name} / {rest_count} {REST_WORKSPACE_NAME}"
    )

    return PairWorkspace(
        label=label,
        root=workspace_root,
        positive_dir=positive_dir,
        rest_dir=rest_dir,
        positive_count=positive_count,
        rest_count=rest_count,
        warnings=tuple(warnings_out),
    )
