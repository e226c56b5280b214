import pytest

from logpulse.ingest.csv_parser import parse_lines
from logpulse.ingest.store import PartitionedStore


SAMPLE_LINES = [
    "192.168.1.1,2025-02-25 12:34:56,/index.html,Chrome/91,200",
    "192.168.1.2,2025-02-25 12:35:10,/about.html,Firefox/89,404",
]

# 10.0.0.9 fails 4 times (suspicious with threshold 3), 10.0.0.8 exactly 3 times
MIXED_LINES = [
    "10.0.0.1,2025-02-25 12:00:01,/index.html,Chrome/91,200",
    "10.0.0.9,2025-02-25 12:00:05,/admin,curl/7.68,404",
    "10.0.0.8,2025-02-25 12:00:09,/old,Firefox/89,404",
    "10.0.0.2,2025-02-25 12:00:30,/about.html,Safari/14,200",
    "10.0.0.9,2025-02-25 12:01:02,/admin,curl/7.68,500",
    "10.0.0.8,2025-02-25 12:01:15,/old,Firefox/89,500",
    "10.0.0.1,2025-02-25 12:01:20,/index.html,Chrome/91,304",
    "10.0.0.9,2025-02-25 12:01:40,/admin,curl/7.68,404",
    "10.0.0.8,2025-02-25 12:02:00,/old,Firefox/89,404",
    "10.0.0.9,2025-02-25 12:02:10,/admin,curl/7.68,403",
    "10.0.0.3,2025-02-25 12:02:30,/about.html,Chrome/91,200",
    "10.0.0.9,2025-02-25 12:02:59,/admin,curl/7.68,500",
]


@pytest.fixture
def sample_store():
    records, _ = parse_lines(SAMPLE_LINES)
    return PartitionedStore.load(records)


@pytest.fixture
def mixed_records():
    records, _ = parse_lines(MIXED_LINES)
    return records


@pytest.fixture
def mixed_store(mixed_records):
    return PartitionedStore.load(mixed_records)
