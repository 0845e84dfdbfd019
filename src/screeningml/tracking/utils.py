"""Helpers turning trainer records into tracker-friendly key/value pairs."""

from __future__ import annotations

import re
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Tuple

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_\-./]")


def _walk(d: Dict[str, Any], prefix: str, sep: str) -> Iterator[Tuple[str, Any]]:
    for key, value in d.items():
        name = f"{prefix}{sep}{key}" if prefix else str(key)
        if isinstance(value, dict):
            yield from _walk(value, name, sep)
        else:
            yield name, value


def flatten_dict(d: Dict[str, Any], parent_key: str = "", sep: str = "/") -> Dict[str, Any]:
    """
    Flatten nested mappings into ``outer/inner`` keys.

    Examples
    --------
    >>> flatten_dict({"parameters": {"max_iterations": 11}, "n_labels": 3})
    {'parameters/max_iterations': 11, 'n_labels': 3}
    """
    return dict(_walk(d, parent_key, sep))


def sanitize_metric_name(name: str) -> str:
    """
    Make a label-derived metric name acceptable to tracking backends.

    Brackets and spaces become underscores, other unsupported characters
    are dropped.

    Examples
    --------
    >>> sanitize_metric_name("Scary Face/validation_accuracy")
    'Scary_Face/validation_accuracy'
    """
    name = name.replace(" ", "_").replace("[", "_").replace("]", "_")
    return _INVALID_NAME_CHARS.sub("", name)


def _loggable(value: Any) -> Any:
    if value is None:
        return "None"
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset)):
        value = sorted(value)
    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        if all(isinstance(v, (str, int, float, bool)) for v in value):
            return ",".join(str(v) for v in value)
        return str(list(value))
    return value


def extract_loggable_params(config: Any) -> Dict[str, Any]:
    """
    Convert a config object into flat scalar parameters.

    Accepts objects with ``to_dict`` (``TrainingParameters``,
    ``TrainerConfig``), plain dataclasses and dicts.
    """
    if hasattr(config, "to_dict"):
        raw = config.to_dict()
    elif is_dataclass(config) and not isinstance(config, type):
        raw = asdict(config)
    elif isinstance(config, dict):
        raw = dict(config)
    else:
        raise TypeError(f"Cannot extract params from {type(config)}")

    return {key: _loggable(value) for key, value in flatten_dict(raw).items()}
