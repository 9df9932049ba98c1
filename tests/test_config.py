"""
Tests for Settings validation and derived values.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from media_ingest.config import DEFAULT_CLASSIFICATION_PATTERN, Settings


def test_defaults(tmp_path):
    settings = Settings(destination_path=str(tmp_path))

    assert settings.classification_pattern == DEFAULT_CLASSIFICATION_PATTERN
    assert settings.folder_template == "{client}/{project}/{camera}"
    assert settings.unmatched_folder == "Unsorted"
    assert settings.max_workers == 4
    assert settings.verify_checksums is True
    assert settings.max_retry_attempts == 0
    assert settings.priority_prefixes == []
    assert settings.chunk_size == 1024 * 1024
    assert settings.log_directory == Path("logs")


def test_destination_is_required(monkeypatch):
    monkeypatch.delenv("DESTINATION_PATH", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


@pytest.mark.parametrize(
    "pattern",
    [
        r"^(a)(b)(c)$",  # three groups
        r"^(a)(b)(c)(d)(e)$",  # five groups
        r"^([a-z]+$",  # does not compile
    ],
)
def test_pattern_must_compile_with_four_groups(tmp_path, pattern):
    with pytest.raises(ValidationError):
        Settings(destination_path=str(tmp_path), classification_pattern=pattern)


def test_worker_count_must_be_positive(tmp_path):
    with pytest.raises(ValidationError):
        Settings(destination_path=str(tmp_path), max_workers=0)


def test_chunk_size_must_be_positive(tmp_path):
    with pytest.raises(ValidationError):
        Settings(destination_path=str(tmp_path), chunk_size_kb=0)


def test_environment_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("DESTINATION_PATH", str(tmp_path))
    monkeypatch.setenv("MAX_WORKERS", "8")
    monkeypatch.setenv("PRIORITY_PREFIXES", '["PRIORITY_", "URGENT_"]')

    settings = Settings()

    assert settings.destination_path == str(tmp_path)
    assert settings.max_workers == 8
    assert settings.priority_prefixes == ["PRIORITY_", "URGENT_"]


def test_config_file_info_keys(tmp_path):
    info = Settings(destination_path=str(tmp_path)).config_file_info
    assert set(info) == {"hostname", "active_config_file", "all_available_configs"}
