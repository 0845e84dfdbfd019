"""Human-readable and machine-readable training result records."""

from screeningml.reporting.result_log import (
    PAIR_METRICS_CSV,
    RESULT_JSON,
    RESULT_MARKDOWN,
    save_result_log,
)

__all__ = ["PAIR_METRICS_CSV", "RESULT_JSON", "RESULT_MARKDOWN", "save_result_log"]
