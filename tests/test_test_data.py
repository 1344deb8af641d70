"""
Unit tests for per-environment test data.
"""
import json

import pytest

from plainstep.core.exceptions import ConfigurationError
from plainstep.nlp.test_data import TestDataStore


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "qa.json").write_text(json.dumps({"users": {"valid": {"username": "standard_user"}}}))
    (tmp_path / "prod.json").write_text(json.dumps({"users": {"valid": {"username": "prod_user"}}}))
    return tmp_path


class TestTestDataStore:
    def test_dot_path_lookup(self, data_dir):
        store = TestDataStore(str(data_dir), "qa")
        assert store.resolve("users.valid.username") == "standard_user"
        assert store.get("users.valid.username", environment="prod") == "prod_user"

    def test_missing_segment_is_none(self, data_dir):
        store = TestDataStore(str(data_dir), "qa")
        assert store.resolve("users.locked.username") is None
        assert not store.has("users.valid.password")

    def test_environments(self, data_dir):
        assert sorted(TestDataStore(str(data_dir), "qa").environments) == ["prod", "qa"]

    def test_missing_directory_disables_lookups(self, tmp_path):
        assert TestDataStore(str(tmp_path / "none"), "qa").resolve("a.b") is None

    def test_bad_json_is_configuration_error(self, tmp_path):
        (tmp_path / "qa.json").write_text("{oops")
        with pytest.raises(ConfigurationError):
            TestDataStore(str(tmp_path), "qa")
