import pytest

from logpulse.config import PipelineConfig
from logpulse.errors import InvalidThresholdError
from logpulse.ingest.csv_parser import parse_lines
from logpulse.ingest.store import PartitionedStore
from logpulse.tools.metrics import (
    REPORT_NAMES,
    AggregationResult,
    compute_reports,
    count_by_status,
    top_pages,
    total_count,
    traffic_by_source,
    traffic_trend,
    truncate_minute,
)


def _rows(frame):
    return AggregationResult("t", frame).rows()


def _store(lines):
    records, _ = parse_lines(lines)
    return PartitionedStore.load(records)


def test_sample_scenario(sample_store):
    assert total_count(sample_store) == 2
    assert _rows(count_by_status(sample_store)) == [(200, 1), (404, 1)]
    assert _rows(top_pages(sample_store, 3)) == [("/index.html", 1), ("/about.html", 1)]
    assert _rows(traffic_trend(sample_store)) == [("2025-02-25 12:34", 1), ("2025-02-25 12:35", 1)]


def test_status_counts_sum_to_total(mixed_store):
    counts = count_by_status(mixed_store)
    assert list(counts.columns) == ["status", "count"]
    assert int(counts["count"].sum()) == total_count(mixed_store)
    assert list(counts["status"]) == sorted(counts["status"])


def test_top_pages_ranking_and_limit(mixed_store):
    rows = _rows(top_pages(mixed_store, n=3))
    assert rows == [("/admin", 5), ("/old", 3), ("/index.html", 2)]


def test_top_pages_ties_keep_input_order():
    # /b is seen first but in a later partition than /a
    store = _store([
        "1.1.1.1,2025-02-25 12:00:00,/b,X,500",
        "1.1.1.1,2025-02-25 12:00:01,/a,X,200",
        "1.1.1.1,2025-02-25 12:00:02,/c,X,200",
        "1.1.1.1,2025-02-25 12:00:03,/c,X,200",
    ])
    assert _rows(top_pages(store, n=3)) == [("/c", 2), ("/b", 1), ("/a", 1)]


def test_top_pages_fewer_urls_than_n(sample_store):
    assert len(top_pages(sample_store, n=10)) == 2


@pytest.mark.parametrize("n", [0, -1, 1.5, "3", True])
def test_top_pages_rejects_bad_n(sample_store, n):
    with pytest.raises(InvalidThresholdError):
        top_pages(sample_store, n=n)


def test_traffic_by_source(mixed_store):
    rows = _rows(traffic_by_source(mixed_store))
    assert rows == [("curl/7.68", 5), ("Chrome/91", 3), ("Firefox/89", 3), ("Safari/14", 1)]


def test_truncate_minute_idempotent():
    ts = "2025-02-25 12:34:56"
    assert truncate_minute(ts) == "2025-02-25 12:34"
    assert truncate_minute(truncate_minute(ts)) == truncate_minute(ts)


def test_traffic_trend_sorted_regardless_of_input_order():
    store = _store([
        "1.1.1.1,2025-02-25 12:05:00,/a,X,200",
        "1.1.1.1,2025-02-25 09:59:59,/a,X,404",
        "1.1.1.1,2025-02-25 12:05:30,/a,X,200",
        "1.1.1.1,2025-02-24 23:59:00,/a,X,500",
    ])
    rows = _rows(traffic_trend(store))
    assert rows == [
        ("2025-02-24 23:59", 1),
        ("2025-02-25 09:59", 1),
        ("2025-02-25 12:05", 2),
    ]


def test_queries_do_not_mutate_store(mixed_store, mixed_records):
    top_pages(mixed_store)
    traffic_trend(mixed_store)
    traffic_by_source(mixed_store)
    assert list(mixed_store.scan()) == mixed_records


def test_compute_reports_names_and_order(mixed_store):
    reports = compute_reports(mixed_store, PipelineConfig(top_n=2, max_workers=3))

    assert list(reports) == REPORT_NAMES
    assert reports["total_web_requests"].rows() == [(12,)]
    assert len(reports["most_visited_pages"]) == 2
    assert reports["suspicious_ip_addresses"].rows() == [("10.0.0.9", 4)]
    assert reports["traffic_trend_over_time"].columns == ["minute", "count"]
