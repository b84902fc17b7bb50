"""Configuration loading tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from safe_fetch.config import (CONFIG_FILENAME, AppConfig, config_from_mapping,
                               default_config_paths, load_config)


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_defaults_when_no_file(tmp_path: Path) -> None:
    cfg = load_config([tmp_path / "missing.json"])
    assert cfg == AppConfig()
    assert cfg.log_stripped is False
    assert cfg.sanitize.allow_data_uris is False
    assert cfg.sanitize.max_base64_decode_length == 500
    assert cfg.sanitize.custom_patterns == ()


def test_reads_all_fields(tmp_path: Path) -> None:
    path = _write(
        tmp_path / CONFIG_FILENAME,
        {
            "logStripped": True,
            "logFile": str(tmp_path / "s.log"),
            "logMaxBytes": 4096,
            "allowDataUris": True,
            "maxBase64DecodeLength": 1000,
            "customPatterns": ["IGNORE ME", "secret-token"],
        },
    )
    cfg = load_config([path])
    assert cfg.log_stripped is True
    assert cfg.log_file == tmp_path / "s.log"
    assert cfg.log_max_bytes == 4096
    assert cfg.sanitize.allow_data_uris is True
    assert cfg.sanitize.max_base64_decode_length == 1000
    assert cfg.sanitize.custom_patterns == ("IGNORE ME", "secret-token")


def test_partial_config_keeps_other_defaults(tmp_path: Path) -> None:
    cfg = load_config([_write(tmp_path / "c.json", {"allowDataUris": True})])
    assert cfg.sanitize.allow_data_uris is True
    assert cfg.sanitize.max_base64_decode_length == 500
    assert cfg.log_stripped is False


def test_wrong_types_fall_back_to_defaults() -> None:
    cfg = config_from_mapping(
        {
            "logStripped": "yes",
            "allowDataUris": 1,
            "maxBase64DecodeLength": -5,
            "logMaxBytes": True,
            "customPatterns": "notalist",
            "logFile": 42,
        }
    )
    assert cfg == AppConfig()


def test_custom_patterns_drop_non_strings() -> None:
    cfg = config_from_mapping({"customPatterns": ["a", 1, "", None, "b"]})
    assert cfg.sanitize.custom_patterns == ("a", "b")


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '"text"'])
def test_invalid_file_falls_through_to_next_candidate(tmp_path: Path, content: str) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(content, encoding="utf-8")
    good = _write(tmp_path / "good.json", {"logStripped": True})

    assert load_config([bad]) == AppConfig()
    assert load_config([bad, good]).log_stripped is True


def test_first_valid_candidate_wins(tmp_path: Path) -> None:
    first = _write(tmp_path / "a.json", {"maxBase64DecodeLength": 10})
    second = _write(tmp_path / "b.json", {"maxBase64DecodeLength": 20})
    assert load_config([first, second]).sanitize.max_base64_decode_length == 10


def test_default_paths_precedence(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAFE_FETCH_CONFIG", str(tmp_path / "env.json"))
    monkeypatch.chdir(tmp_path)
    paths = default_config_paths()
    assert paths[0] == tmp_path / "env.json"
    assert paths[1] == tmp_path / CONFIG_FILENAME
    assert paths[2] == Path.home() / CONFIG_FILENAME


def test_default_paths_without_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SAFE_FETCH_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    assert default_config_paths()[0] == tmp_path / CONFIG_FILENAME
