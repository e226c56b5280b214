import os

import pytest

from logpulse.config import PipelineConfig, parse_status_list
from logpulse.errors import InvalidThresholdError


ENV_VARS = [
    "LOGPULSE_TOP_N",
    "LOGPULSE_MIN_FAILURES",
    "LOGPULSE_MAX_WORKERS",
    "LOGPULSE_EXPORT_RETRIES",
    "LOGPULSE_FAILURE_STATUSES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep load_dotenv() away from any developer .env file
    monkeypatch.chdir(tmp_path)


def test_defaults_are_valid():
    cfg = PipelineConfig().validate()
    assert cfg.top_n == 3
    assert cfg.failure_statuses == (404, 500)
    assert cfg.min_failures == 3


def test_from_env(monkeypatch):
    monkeypatch.setenv("LOGPULSE_TOP_N", "5")
    monkeypatch.setenv("LOGPULSE_MIN_FAILURES", "10")
    monkeypatch.setenv("LOGPULSE_FAILURE_STATUSES", "401, 403,429")

    cfg = PipelineConfig.from_env()
    assert cfg.top_n == 5
    assert cfg.min_failures == 10
    assert cfg.failure_statuses == (401, 403, 429)


def test_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("LOGPULSE_TOP_N", "5")
    assert PipelineConfig.from_env(top_n=7).top_n == 7


def test_from_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("LOGPULSE_MAX_WORKERS=2\n", encoding="utf-8")
    try:
        assert PipelineConfig.from_env().max_workers == 2
    finally:
        os.environ.pop("LOGPULSE_MAX_WORKERS", None)


@pytest.mark.parametrize("value", ["abc", "-1", "2.5"])
def test_from_env_rejects_bad_threshold(monkeypatch, value):
    monkeypatch.setenv("LOGPULSE_MIN_FAILURES", value)
    with pytest.raises(InvalidThresholdError):
        PipelineConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"top_n": 0},
        {"min_failures": -3},
        {"min_failures": "3"},
        {"max_workers": 0},
        {"export_retries": 0},
        {"export_backoff_seconds": -1},
        {"failure_statuses": ()},
        {"delimiter": "::"},
        {"max_bad_lines": -1},
    ],
)
def test_validate_rejects(kwargs):
    with pytest.raises(InvalidThresholdError):
        PipelineConfig(**kwargs).validate()


def test_parse_status_list():
    assert parse_status_list("404,500") == (404, 500)
    with pytest.raises(InvalidThresholdError):
        parse_status_list("404,oops")
    with pytest.raises(InvalidThresholdError):
        parse_status_list(" , ")
