"""Main CLI entrypoint using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from screeningml import __version__
from screeningml.config import TrainerConfig, load_trainer_config, normalize_augmentation
from screeningml.data.partition import discover_label_directories, find_rest_bucket, list_source_files
from screeningml.exceptions import ScreeningError
from screeningml.io.provision import next_run_index, run_dir_name
from screeningml.lineage import MANIFEST_FILENAME, create_training_manifest
from screeningml.reporting import save_result_log
from screeningml.tracking import get_tracker
from screeningml.training import get_trainer
from screeningml.training.ovr import order_labels
from screeningml.training.results import BatchResult

app = typer.Typer(
    name="screeningml",
    help="Train image screening classifiers (binary, multi-class, multi-label, one-vs-rest).",
    add_completion=False,
)

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"screeningml {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """screeningml: image screening classifier training."""
    pass


@app.command()
def train(
    variant: Optional[str] = typer.Option(
        None, "--variant", help="Trainer variant: binary, multiclass, multilabel, ovr (default: ovr)"
    ),
    resources: Optional[Path] = typer.Option(
        None,
        "--resources",
        help="Directory of class subdirectories (for ovr: label directories plus 'rest').",
    ),
    output_root: Optional[Path] = typer.Option(None, "--output-root", help="Directory holding numbered output runs"),
    temp_root: Optional[Path] = typer.Option(
        None,
        "--temp-root",
        help="Scratch directory for OvR pair datasets. It is deleted and recreated on every run.",
    ),
    author: Optional[str] = typer.Option(None, "--author", help="Model author written into artifacts"),
    description: Optional[str] = typer.Option(None, "--description", help="Model description"),
    version_tag: Optional[str] = typer.Option(
        None,
        "--version-tag",
        help="Model version (default depends on the variant: binary v5, multiclass v3, multilabel v1, ovr v3)",
    ),
    model_name: Optional[str] = typer.Option(None, "--model-name", help="Model name used in artifact file names"),
    max_iter: Optional[int] = typer.Option(None, "--max-iter", help="Maximum optimizer iterations (default 11)"),
    augment: Optional[List[str]] = typer.Option(
        None,
        "--augment",
        help="Augmentation options: crop, rotation, blur (repeatable or comma-separated; 'none' disables)",
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", help="YAML trainer configuration"),
    tracker: Optional[str] = typer.Option(None, "--tracker", help="Experiment tracking backend: mlflow"),
    experiment_name: Optional[str] = typer.Option(None, "--experiment-name", help="Tracking experiment name"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose logging"),
):
    """
    Train a screening model and record its result in a new output run.

    Examples:
        # One-vs-Rest over Resources/{cat,dog,rest}
        screeningml train --variant ovr --resources Resources --author me

        # Binary model from two class directories
        screeningml train --variant binary --resources Resources --version-tag v6
    """
    if verbose:
        logging.getLogger("screeningml").setLevel(logging.DEBUG)

    overrides = dict(
        variant=variant.lower() if variant else None,
        resources_dir=resources,
        output_root=output_root,
        temp_root=temp_root,
        author=author,
        description=description,
        version=version_tag,
        model_name=model_name,
        max_iterations=max_iter,
        augmentation=normalize_augmentation(augment),
        tracker=tracker,
        experiment_name=experiment_name,
    )
    try:
        if config_file is not None:
            config = load_trainer_config(config_file, **overrides)
        else:
            config = TrainerConfig(**{k: v for k, v in overrides.items() if v is not None})
        config.parameters()
    except Exception as e:
        typer.secho(f"Error: invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Training {config.model_name} ({config.variant}, {config.version})")

    try:
        trainer = get_trainer(
            config.variant,
            tracker=get_tracker(config.tracker, experiment_name=config.experiment_name),
        )
        result = trainer.train(config)
    except Exception as e:
        typer.secho(f"\n✗ Training failed: {e}", fg=typer.colors.RED, err=True)
        if verbose:
            import traceback

            traceback.print_exc()
        raise typer.Exit(code=1)

    if result is None:
        typer.secho("\n✗ Training or model saving failed; no result was produced.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    outdir = trainer.output_run.path
    save_result_log(result, config.metadata(), config.model_name, outdir)

    if isinstance(result, BatchResult):
        artifacts = [p.model_path for p in result.pair_results]
        labels = result.labels
    else:
        artifacts = [result.model_path]
        labels = list(result.class_labels)
    manifest = create_training_manifest(
        variant=config.variant,
        output_run=outdir,
        config=config.to_dict(),
        artifacts=artifacts,
        labels=labels,
    )
    manifest.save(outdir / MANIFEST_FILENAME)

    for key, value in result.summary_rows():
        typer.echo(f"  {key}: {value}")
    typer.secho(f"\n✓ Training complete. Results saved to {outdir}", fg=typer.colors.GREEN)


@app.command()
def inspect(
    resources: Path = typer.Option(Path("Resources"), "--resources", help="Resources directory to inspect"),
    output_root: Path = typer.Option(Path("OutputModels"), "--output-root", help="Directory holding output runs"),
    prefix: str = typer.Option("OvR", "--prefix", help="Output run prefix"),
):
    """Show the labels an OvR run would train and the next output run name."""
    try:
        labels = order_labels(discover_label_directories(resources))
        rest_bucket = find_rest_bucket(resources)
    except ScreeningError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Resources: {resources}")
    for label in labels:
        typer.echo(f"  {label.normalized_name} ({label.name}): {len(list_source_files(label.path))} files")
    if rest_bucket is None:
        typer.echo("  Rest: missing")
    else:
        typer.echo(f"  Rest ({rest_bucket.name}): {len(list_source_files(rest_bucket))} files")
    typer.echo(f"Next output run: {run_dir_name(prefix, next_run_index(output_root, prefix))}")


if __name__ == "__main__":
    app()
