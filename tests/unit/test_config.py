from __future__ import annotations

from pathlib import Path

import pytest

from polar_analyzer.config import (
    DEFAULT_MAX_NUMBER_OF_PROBLEMS,
    AnalyzerConfig,
    AnalyzerConfigError,
    load_analyzer_config,
)

pytestmark = pytest.mark.unit


def _write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults_without_path() -> None:
    config = load_analyzer_config()

    assert config == AnalyzerConfig()
    assert config.max_number_of_problems == DEFAULT_MAX_NUMBER_OF_PROBLEMS == 1000
    assert config.report_unmatched_calls
    assert config.skip_method_calls is False
    assert config.config_path is None


def test_yaml_values_override_defaults(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "analyzer.yaml",
        "analyzer:\n  max_number_of_problems: 5\n  skip_method_calls: true\n",
    )

    config = load_analyzer_config(path)

    assert config.max_number_of_problems == 5
    assert config.report_unmatched_calls is True
    assert config.skip_method_calls is True
    assert config.config_path == str(path.resolve())


def test_negative_limit_is_rejected() -> None:
    with pytest.raises(AnalyzerConfigError) as exc_info:
        AnalyzerConfig(max_number_of_problems=-1)

    assert exc_info.value.code == "E_CONFIG_INVALID"


def test_missing_file_reports_read_failure(tmp_path: Path) -> None:
    with pytest.raises(AnalyzerConfigError) as exc_info:
        load_analyzer_config(tmp_path / "absent.yaml")

    assert exc_info.value.code == "E_CONFIG_READ_FAILED"


def test_malformed_yaml_reports_parse_failure(tmp_path: Path) -> None:
    path = _write(tmp_path, "broken.yaml", "analyzer: [unclosed\n")

    with pytest.raises(AnalyzerConfigError) as exc_info:
        load_analyzer_config(path)

    assert exc_info.value.code == "E_CONFIG_PARSE_FAILED"


@pytest.mark.parametrize(
    ("name", "content"),
    [
        ("list_root.yaml", "- analyzer\n"),
        ("no_block.yaml", "other: {}\n"),
        ("bool_limit.yaml", "analyzer:\n  max_number_of_problems: true\n"),
        ("str_flag.yaml", "analyzer:\n  report_unmatched_calls: 'yes'\n"),
        ("negative.yaml", "analyzer:\n  max_number_of_problems: -3\n"),
    ],
)
def test_invalid_shapes_report_invalid_config(tmp_path: Path, name: str, content: str) -> None:
    path = _write(tmp_path, name, content)

    with pytest.raises(AnalyzerConfigError) as exc_info:
        load_analyzer_config(path)

    assert exc_info.value.code == "E_CONFIG_INVALID"
    assert str(exc_info.value).startswith("E_CONFIG_INVALID: ")
