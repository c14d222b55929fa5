from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_MAX_SIZE_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_ELEMENTS = 10_000
DEFAULT_UNCLOSED_TAG_SLACK = 1


@dataclass(frozen=True)
class ValidatorLimits:
    max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES
    max_elements: int = DEFAULT_MAX_ELEMENTS
    unclosed_tag_slack: int = DEFAULT_UNCLOSED_TAG_SLACK


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of YAML: {path}")
    return data


def load_limits(path: Path | str) -> ValidatorLimits:
    data = _load_yaml(Path(path))
    limits = data.get("limits", {}) or {}
    if not isinstance(limits, dict):
        raise ValueError(f"Expected 'limits' mapping in {path}")
    try:
        max_size_bytes = int(limits.get("max_size_bytes", DEFAULT_MAX_SIZE_BYTES))
        max_elements = int(limits.get("max_elements", DEFAULT_MAX_ELEMENTS))
        unclosed_tag_slack = int(limits.get("unclosed_tag_slack", DEFAULT_UNCLOSED_TAG_SLACK))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid validator limit values: {exc}") from exc
    if max_size_bytes <= 0 or max_elements <= 0 or unclosed_tag_slack < 0:
        raise ValueError(f"Validator limits must be positive: {path}")
    return ValidatorLimits(
        max_size_bytes=max_size_bytes,
        max_elements=max_elements,
        unclosed_tag_slack=unclosed_tag_slack,
    )
