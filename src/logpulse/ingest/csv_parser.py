"""
csv_parser.py

Parses delimited web access log lines into typed LogRecord objects.

Each input line carries five fields in a fixed order:

    ip,timestamp,url,user_agent,status
    192.168.1.1,2025-02-25 12:34:56,/index.html,Chrome/91,200

The parser is designed to be:
- Deterministic: the same input always produces the same output
- Tolerant: malformed lines are skipped and counted, never fatal
- Faithful: timestamps are kept as the original string so that
  lexicographic order stays chronological order

A line is malformed when it does not have exactly five fields, when any
field is empty after trimming, or when the status is not a positive integer.

This parser performs no aggregation. Its sole responsibility is to provide
clean records for the partitioned store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from logpulse.errors import MalformedRecordError


logger = logging.getLogger(__name__)

FIELDS = ("ip", "timestamp", "url", "user_agent", "status")
HEADER = ",".join(FIELDS)

# how many offending line numbers the report keeps for debugging
MAX_SAMPLE_LINES = 20


@dataclass(frozen=True)
class LogRecord:
    ip: str
    timestamp: str
    url: str
    user_agent: str
    status: int


@dataclass
class ParseReport:
    input_lines: int = 0
    parsed: int = 0
    skipped: int = 0
    skipped_reasons: Dict[str, int] = field(default_factory=dict)
    sample_bad_lines: List[int] = field(default_factory=list)

    def record_skip(self, err: MalformedRecordError) -> None:
        self.skipped += 1
        self.skipped_reasons[err.reason] = self.skipped_reasons.get(err.reason, 0) + 1
        if err.line_number is not None and len(self.sample_bad_lines) < MAX_SAMPLE_LINES:
            self.sample_bad_lines.append(err.line_number)


def parse_line(line: str, *, delimiter: str = ",", line_number: Optional[int] = None) -> LogRecord:
    """
    Parse one raw line into a LogRecord.
    Raises MalformedRecordError with a reason of
    'field_count', 'empty_field' or 'bad_status'.
    """
    parts = [p.strip() for p in line.rstrip("\r\n").split(delimiter)]
    if len(parts) != len(FIELDS):
        raise MalformedRecordError(
            f"expected {len(FIELDS)} fields, got {len(parts)}",
            reason="field_count",
            line_number=line_number,
        )

    empty = [name for name, value in zip(FIELDS, parts) if not value]
    if empty:
        raise MalformedRecordError(
            f"empty field(s): {', '.join(empty)}",
            reason="empty_field",
            line_number=line_number,
        )

    ip, timestamp, url, user_agent, status_raw = parts
    try:
        status = int(status_raw)
    except ValueError:
        raise MalformedRecordError(
            f"status is not an integer: {status_raw!r}",
            reason="bad_status",
            line_number=line_number,
        ) from None
    if status <= 0:
        raise MalformedRecordError(
            f"status must be positive: {status}",
            reason="bad_status",
            line_number=line_number,
        )

    return LogRecord(ip=ip, timestamp=timestamp, url=url, user_agent=user_agent, status=status)


# Inputs:
# lines: any iterable of raw text lines (file handle, list, generator)
# max_bad_lines: optional safety valve for when the delimiter or layout is wrong
def parse_lines(
    lines: Iterable[str],
    *,
    delimiter: str = ",",
    max_bad_lines: Optional[int] = None,
) -> Tuple[List[LogRecord], ParseReport]:
    """
    Parse a sequence of raw lines.

    Behavior:
      - Blank lines are ignored (not counted as skipped).
      - Malformed lines are skipped and counted by reason.
      - If max_bad_lines is set and exceeded, raises MalformedRecordError.

    Returns: (records, report)
    """
    records: List[LogRecord] = []
    report = ParseReport()

    for line_no, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        report.input_lines += 1

        try:
            records.append(parse_line(line, delimiter=delimiter, line_number=line_no))
        except MalformedRecordError as e:
            report.record_skip(e)
            logger.debug("skipping line %d (%s): %s", line_no, e.reason, line[:120].rstrip())
            if max_bad_lines is not None and report.skipped > max_bad_lines:
                raise MalformedRecordError(
                    f"Too many malformed lines (> {max_bad_lines}). "
                    f"Last failure at line {line_no}: {line[:120].rstrip()}",
                    reason=e.reason,
                    line_number=line_no,
                ) from e

    report.parsed = len(records)
    logger.info(
        "parsed %d of %d lines (%d skipped: %s)",
        report.parsed, report.input_lines, report.skipped, report.skipped_reasons,
    )
    return records, report


def read_log_lines(path: Union[str, Path]) -> Iterator[str]:
    """
    Yield raw lines from a log file, blanking out a leading header row.

    The header is yielded as an empty line rather than dropped, so parse_lines
    ignores it while still numbering every later line by its position in the file.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Log file not found: {path}")

    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for i, line in enumerate(f):
            if i == 0 and line.strip().lower().replace(" ", "") == HEADER:
                yield ""
                continue
            yield line
