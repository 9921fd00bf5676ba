from __future__ import annotations

from dataclasses import dataclass
from functools import cache
from pathlib import Path
from typing import cast

import yaml  # type: ignore[import-untyped]

DEFAULT_MAX_NUMBER_OF_PROBLEMS = 1000


class AnalyzerConfigError(ValueError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    max_number_of_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS
    report_unmatched_calls: bool = True
    skip_method_calls: bool = False
    config_path: str | None = None

    def __post_init__(self) -> None:
        if self.max_number_of_problems < 0:
            raise AnalyzerConfigError(
                "E_CONFIG_INVALID", "max_number_of_problems must be >= 0"
            )


def load_analyzer_config(path: str | Path | None = None) -> AnalyzerConfig:
    """Read analyzer settings from a YAML file; defaults apply without a path.

    Expected layout::

        analyzer:
          max_number_of_problems: 1000
          report_unmatched_calls: true
          skip_method_calls: false
    """
    if path is None:
        return AnalyzerConfig()
    return _load_analyzer_config_cached(str(Path(path).resolve()))


@cache
def _load_analyzer_config_cached(path: str) -> AnalyzerConfig:
    raw = _read_yaml_file(Path(path))
    block = _require_mapping(raw, "analyzer")
    return AnalyzerConfig(
        max_number_of_problems=_optional_int(
            block, "max_number_of_problems", DEFAULT_MAX_NUMBER_OF_PROBLEMS
        ),
        report_unmatched_calls=_optional_bool(block, "report_unmatched_calls", True),
        skip_method_calls=_optional_bool(block, "skip_method_calls", False),
        config_path=path,
    )


def _read_yaml_file(path: Path) -> dict[str, object]:
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AnalyzerConfigError(
            "E_CONFIG_READ_FAILED",
            f"unable to read analyzer config '{path}': {exc}",
        ) from exc
    try:
        payload = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise AnalyzerConfigError(
            "E_CONFIG_PARSE_FAILED",
            f"invalid analyzer config yaml in '{path}': {exc}",
        ) from exc
    if not isinstance(payload, dict):
        raise AnalyzerConfigError("E_CONFIG_INVALID", "analyzer config root must be a mapping")
    return cast(dict[str, object], payload)


def _require_mapping(data: dict[str, object], key: str) -> dict[str, object]:
    value = data.get(key)
    if isinstance(value, dict):
        return cast(dict[str, object], value)
    raise AnalyzerConfigError("E_CONFIG_INVALID", f"missing or invalid mapping for key '{key}'")


def _optional_int(data: dict[str, object], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise AnalyzerConfigError("E_CONFIG_INVALID", f"key '{key}' must be an integer")
    return value


def _optional_bool(data: dict[str, object], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise AnalyzerConfigError("E_CONFIG_INVALID", f"key '{key}' must be a boolean")
    return value
