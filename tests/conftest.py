"""Shared fixtures for PlainStep tests."""

import json

import pytest

from plainstep.core.config import Settings
from plainstep.core.context import RunContext
from plainstep.nlp.classifier import PatternIntentClassifier


@pytest.fixture
def settings(tmp_path):
    """Settings rooted in a temporary directory, with no retry backoff."""
    data_dir = tmp_path / "testdata"
    data_dir.mkdir()
    (data_dir / "qa.json").write_text(
        json.dumps({"users": {"valid": {"username": "standard_user", "password": "secret_sauce"}}})
    )
    return Settings(
        _env_file=None,
        environment="qa",
        base_url="http://localhost:3000",
        report_dir=str(tmp_path / "results"),
        registry_dir=str(tmp_path / "registries"),
        test_data_dir=str(data_dir),
        config_dir=str(tmp_path / "config"),
        log_dir=str(tmp_path / "logs"),
        retries=2,
        retry_backoff_ms=0,
    )


@pytest.fixture
def run_context(settings):
    return RunContext.build(settings, classifier=PatternIntentClassifier())
