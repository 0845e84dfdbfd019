"""Persist training results as JSON, Markdown and CSV records."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Union

import pandas as pd

from screeningml.config import ModelMetadata
from screeningml.training.results import BatchResult, TrainingResult

logger = logging.getLogger(__name__)

RESULT_JSON = "training_result.json"
RESULT_MARKDOWN = "training_result.md"
PAIR_METRICS_CSV = "metrics_pairs.csv"


def _write_markdown_table(df: pd.DataFrame) -> str:
    if df.empty:
        return "(no data)"
    try:
        return df.to_markdown(index=False)
    except Exception:
        return df.to_csv(index=False)


def _pairs_frame(result: BatchResult) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Label": pair.label,
                "Train acc": f"{pair.training_accuracy * 100:.2f}%",
                "Val acc": f"{pair.validation_accuracy * 100:.2f}%",
                "Time (s)": f"{pair.training_seconds:.2f}",
                "Model": pair.model_path,
            }
            for pair in result.pair_results
        ]
    )


def _warnings_frame(result: BatchResult) -> pd.DataFrame:
    rows = [{"Source": "batch", "Warning": w} for w in result.warnings]
    rows.extend({"Source": pair.label, "Warning": w} for pair in result.pair_results for w in pair.warnings)
    return pd.DataFrame(rows, columns=["Source", "Warning"])


def _render_markdown(
    result: Union[TrainingResult, BatchResult],
    metadata: ModelMetadata,
    model_name: str,
    timestamp: str,
) -> str:
    summary = pd.DataFrame(result.summary_rows(), columns=["Item", "Value"])
    sections = [
        f"# {model_name} training result",
        "\n".join(
            [
                f"- Author: {metadata.author}",
                f"- Description: {metadata.description}",
                f"- Version: {metadata.version}",
                f"- Recorded: {timestamp}",
            ]
        ),
        _write_markdown_table(summary),
    ]

    if isinstance(result, BatchResult):
        sections.extend(["## Pairs", _write_markdown_table(_pairs_frame(result))])
        warnings_df = _warnings_frame(result)
        if not warnings_df.empty:
            sections.extend(["## Warnings", _write_markdown_table(warnings_df)])

    return "\n\n".join(sections) + "\n"


def save_result_log(
    result: Union[TrainingResult, BatchResult],
    metadata: ModelMetadata,
    model_name: str,
    outdir: Path,
) -> Dict[str, Path]:
    """
    Write the result of a training invocation into ``outdir``.

    Parameters
    ----------
    result : TrainingResult or BatchResult
        Outcome returned by a trainer
    metadata : ModelMetadata
        Author, description and version of the run
    model_name : str
        Display name of the trained model
    outdir : Path
        Output run directory

    Returns
    -------
    Dict[str, Path]
        Written files keyed by kind (``json``, ``markdown``, ``pairs_csv``)
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().isoformat(timespec="seconds")
    written: Dict[str, Path] = {}

    record = {
        "model_name": model_name,
        "metadata": metadata.to_dict(),
        "recorded_at": timestamp,
        "result": result.to_dict(),
    }
    json_path = outdir / RESULT_JSON
    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(record, f, indent=2)
    written["json"] = json_path

    md_path = outdir / RESULT_MARKDOWN
    md_path.write_text(_render_markdown(result, metadata, model_name, timestamp), encoding="utf-8")
    written["markdown"] = md_path

    if isinstance(result, BatchResult):
        df = pd.DataFrame([p.to_dict() for p in result.pair_results])
        df["warnings"] = df["warnings"].apply(lambda ws: "; ".join(ws))
        csv_path = outdir / PAIR_METRICS_CSV
        df.to_csv(csv_path, index=False)
        written["pairs_csv"] = csv_path

    logger.info(f"Saved training result log to {outdir}")
    return written
