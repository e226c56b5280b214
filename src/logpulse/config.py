"""
config.py

Run configuration for the access log pipeline.

Every tunable that the reports depend on lives here instead of in the query
code: the top-N size, the anomaly status set and threshold, the worker pool
size and the export retry policy. Values can come from keyword arguments or
from LOGPULSE_* environment variables (a local .env file is honored).

validate() is called before any ingestion so that a bad threshold fails fast.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from logpulse.errors import InvalidThresholdError


DEFAULT_FAILURE_STATUSES: Tuple[int, ...] = (404, 500)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Configuration for one pipeline run.

    top_n:
      Row limit for most_visited_pages.
    failure_statuses / min_failures:
      An IP is suspicious when its count of records with a status in
      failure_statuses is strictly greater than min_failures.
    max_workers:
      Thread pool size for running the report queries concurrently.
    export_retries / export_backoff_seconds:
      Bounded retry policy for each report sink write.
    max_bad_lines:
      Optional safety valve; None means malformed lines are never fatal.
    """
    delimiter: str = ","
    top_n: int = 3
    failure_statuses: Tuple[int, ...] = field(default=DEFAULT_FAILURE_STATUSES)
    min_failures: int = 3
    max_workers: int = 4
    export_retries: int = 3
    export_backoff_seconds: float = 0.5
    max_bad_lines: Optional[int] = None

    def validate(self) -> "PipelineConfig":
        if len(self.delimiter) != 1:
            raise InvalidThresholdError(f"delimiter must be a single character, got {self.delimiter!r}")
        require_int("top_n", self.top_n, minimum=1)
        require_int("min_failures", self.min_failures, minimum=0)
        require_int("max_workers", self.max_workers, minimum=1)
        require_int("export_retries", self.export_retries, minimum=1)
        if self.max_bad_lines is not None:
            require_int("max_bad_lines", self.max_bad_lines, minimum=0)
        if not isinstance(self.export_backoff_seconds, (int, float)) or self.export_backoff_seconds < 0:
            raise InvalidThresholdError(
                f"export_backoff_seconds must be a non-negative number, got {self.export_backoff_seconds!r}"
            )
        validate_status_set(self.failure_statuses)
        return self

    @classmethod
    def from_env(cls, **overrides) -> "PipelineConfig":
        """
        Build a config from LOGPULSE_* environment variables.
        Keyword overrides win over the environment.
        """
        load_dotenv(find_dotenv(usecwd=True))

        values = {}
        if os.getenv("LOGPULSE_TOP_N"):
            values["top_n"] = _parse_int("LOGPULSE_TOP_N", os.environ["LOGPULSE_TOP_N"])
        if os.getenv("LOGPULSE_MIN_FAILURES"):
            values["min_failures"] = _parse_int("LOGPULSE_MIN_FAILURES", os.environ["LOGPULSE_MIN_FAILURES"])
        if os.getenv("LOGPULSE_MAX_WORKERS"):
            values["max_workers"] = _parse_int("LOGPULSE_MAX_WORKERS", os.environ["LOGPULSE_MAX_WORKERS"])
        if os.getenv("LOGPULSE_EXPORT_RETRIES"):
            values["export_retries"] = _parse_int("LOGPULSE_EXPORT_RETRIES", os.environ["LOGPULSE_EXPORT_RETRIES"])
        if os.getenv("LOGPULSE_FAILURE_STATUSES"):
            values["failure_statuses"] = parse_status_list(os.environ["LOGPULSE_FAILURE_STATUSES"])

        values.update(overrides)
        return cls(**values).validate()


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise InvalidThresholdError(f"{name} must be an integer, got {raw!r}") from None


def require_int(name: str, value, *, minimum: int) -> None:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidThresholdError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidThresholdError(f"{name} must be >= {minimum}, got {value}")


def parse_status_list(raw: str) -> Tuple[int, ...]:
    """Parse '404,500' into (404, 500)."""
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return validate_status_set(tuple(_parse_int("status", p) for p in parts))


def validate_status_set(statuses) -> Tuple[int, ...]:
    out = tuple(statuses)
    if not out:
        raise InvalidThresholdError("status set must not be empty")
    for s in out:
        require_int("status", s, minimum=1)
    return out
