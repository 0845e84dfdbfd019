"""Manifest describing one training invocation and its artifacts."""

from __future__ import annotations

import json
import logging
import platform
import socket
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import screeningml

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "run.json"


@dataclass
class TrainingRunManifest:
    """Identity, configuration and artifact list of an output run."""

    run_id: str
    timestamp: str
    package_version: str
    variant: str
    output_run: str

    config: Dict[str, Any] = field(default_factory=dict)
    artifacts: List[str] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)

    python_version: str = ""
    hostname: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def save(self, path: Path) -> Path:
        """Write the manifest as JSON (usually to ``<output run>/run.json``)."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2, default=str), encoding="utf-8")
        logger.info(f"Wrote run manifest {path}")
        return path

    @classmethod
    def load(cls, path: Path) -> TrainingRunManifest:
        return cls(**json.loads(Path(path).read_text(encoding="utf-8")))


def create_training_manifest(
    variant: str,
    output_run: Path,
    config: Dict[str, Any],
    artifacts: Optional[List[str]] = None,
    labels: Optional[List[str]] = None,
) -> TrainingRunManifest:
    """Create a manifest for a finished run, capturing environment details."""
    try:
        hostname = socket.gethostname()
    except OSError:
        hostname = None

    return TrainingRunManifest(
        run_id=str(uuid.uuid4()),
        timestamp=datetime.now().isoformat(),
        package_version=screeningml.__version__,
        variant=variant,
        output_run=str(output_run),
        config=config,
        artifacts=list(artifacts or []),
        labels=list(labels or []),
        python_version=platform.python_version(),
        hostname=hostname,
    )
