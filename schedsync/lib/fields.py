"""
Project field names used by the scheduler.

The names match the custom fields on the GitHub Project. Projects that name
them differently can override any of them in a YAML file:

    fields:
      low_estimate: "Optimistic"
      completion_98: "Worst Case"
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldNames:
    low_estimate: str = "Low Estimate"
    high_estimate: str = "High Estimate"
    scheduling_status: str = "Scheduling Status"
    expected_start: str = "Expected Start"
    expected_completion: str = "Expected Completion"
    completion_98: str = "98% Completion"
    due_date: str = "Due Date"

    @property
    def date_fields(self) -> list[str]:
        """Fields the scheduler writes, in write order."""
        return [self.expected_start, self.expected_completion, self.completion_98]

    @property
    def estimate_fields(self) -> list[str]:
        return [self.low_estimate, self.high_estimate]


DEFAULT_FIELD_NAMES = FieldNames()


def load_field_names(config_path: Path | None) -> FieldNames:
    """Load field name overrides, falling back to defaults.

    A missing or unreadable file gives the defaults; unknown keys are ignored.
    """
    if config_path is None or not config_path.exists():
        return DEFAULT_FIELD_NAMES

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return DEFAULT_FIELD_NAMES

    overrides = (data or {}).get("fields") if isinstance(data, dict) else None
    if not overrides:
        return DEFAULT_FIELD_NAMES
    if not isinstance(overrides, dict):
        logger.warning(f"Ignoring {config_path}: 'fields' must be a mapping")
        return DEFAULT_FIELD_NAMES

    known = {f.name for f in fields(FieldNames)}
    valid = {}
    for key, value in overrides.items():
        if key not in known:
            logger.warning(f"Unknown field key '{key}' in {config_path}, ignoring")
            continue
        if not isinstance(value, str) or not value.strip():
            logger.warning(f"Field '{key}' in {config_path} must be a non-empty string, ignoring")
            continue
        valid[key] = value.strip()

    return replace(DEFAULT_FIELD_NAMES, **valid)
