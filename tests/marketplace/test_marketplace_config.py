"""Tests for marketplace configuration."""

import pytest

from ezclear.marketplace.config import MarketplaceConfig


def test_defaults():
    config = MarketplaceConfig()

    assert config.require_assignment_for_completion is False
    assert config.decline_other_applications_on_hire is False
    assert config.job_delete_policy == "hide"
    assert config.max_title_length == 100


def test_from_env(monkeypatch):
    monkeypatch.setenv("EZCLEAR_REQUIRE_ASSIGNMENT_FOR_COMPLETION", "true")
    monkeypatch.setenv("EZCLEAR_JOB_DELETE_POLICY", "cascade")
    monkeypatch.setenv("EZCLEAR_READ_RETRY_ATTEMPTS", "5")

    config = MarketplaceConfig.from_env()

    assert config.require_assignment_for_completion is True
    assert config.decline_other_applications_on_hire is False
    assert config.job_delete_policy == "cascade"
    assert config.read_retry_attempts == 5


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"job_delete_policy": "archive"}, "job_delete_policy"),
        ({"request_timeout_seconds": 0}, "request_timeout_seconds"),
        ({"read_retry_attempts": 0}, "read_retry_attempts"),
    ],
)
def test_invalid_values(kwargs, message):
    with pytest.raises(ValueError, match=message):
        MarketplaceConfig(**kwargs)
