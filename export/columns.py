"""
Export column configuration (persistent, user-editable).

A column config is an ordered list of ExportColumn dicts that projects, renames,
reorders and toggles the fields written to CSV and Excel exports.

Key behaviors:
- Every operation returns a new list; the input config is never mutated.
- `order` is renumbered 0..n-1 after a move.
- Disabled columns are dropped from the output entirely (not blanked).
- The config is persisted as JSON under `<project_root>/data/export_config.json`,
  written via a temporary file and then replaced to reduce corruption risk.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from config.settings import EXPORT_CONFIG_PATH
from domain.invoice import ExportColumn
from domain.schemas import DEFAULT_EXPORT_CONFIG

logger = logging.getLogger(__name__)


class ExportConfigError(RuntimeError):
    """Raised when a persisted export config is invalid."""
    pass


def default_export_config() -> List[ExportColumn]:
    return copy.deepcopy(DEFAULT_EXPORT_CONFIG)


def reset_to_default() -> List[ExportColumn]:
    return default_export_config()


def sorted_columns(config: Sequence[ExportColumn]) -> List[ExportColumn]:
    """Columns by `order`; ties keep first-seen order (sorted() is stable)."""
    return sorted((copy.deepcopy(c) for c in config), key=lambda c: c["order"])


def active_columns(config: Sequence[ExportColumn]) -> List[ExportColumn]:
    return [c for c in sorted_columns(config) if c["enabled"]]


def _with(config: Sequence[ExportColumn], key: str, **changes) -> List[ExportColumn]:
    if not any(c["key"] == key for c in config):
        raise KeyError(f"Unknown export column: {key}")
    return [{**c, **changes} if c["key"] == key else dict(c) for c in config]


def set_enabled(config: Sequence[ExportColumn], key: str, enabled: bool) -> List[ExportColumn]:
    return _with(config, key, enabled=bool(enabled))


def rename(config: Sequence[ExportColumn], key: str, header: str) -> List[ExportColumn]:
    return _with(config, key, header=header)


def move(config: Sequence[ExportColumn], from_index: int, to_index: int) -> List[ExportColumn]:
    """Move the column at `from_index` (in display order) to `to_index`, renumbering `order`."""
    columns = sorted_columns(config)
    if not (0 <= from_index < len(columns)) or not (0 <= to_index < len(columns)):
        raise IndexError(f"Cannot move column {from_index} to {to_index} in a config of {len(columns)}")
    column = columns.pop(from_index)
    columns.insert(to_index, column)
    return [{**c, "order": i} for i, c in enumerate(columns)]


def add_column(config: Sequence[ExportColumn], key: str, header: str, enabled: bool = True) -> List[ExportColumn]:
    """Append a column for an extra field (e.g. aggregate-only minUnitPrice)."""
    if any(c["key"] == key for c in config):
        raise KeyError(f"Export column already exists: {key}")
    next_order = max((c["order"] for c in config), default=-1) + 1
    return [dict(c) for c in config] + [ExportColumn(key=key, header=header, enabled=enabled, order=next_order)]


def _validate(raw: object, path: Path) -> List[ExportColumn]:
    if not isinstance(raw, list):
        raise ExportConfigError(f"Invalid export config in {path}: expected a list")
    columns: List[ExportColumn] = []
    for entry in raw:
        if not isinstance(entry, dict) or not {"key", "header", "enabled", "order"} <= entry.keys():
            raise ExportConfigError(f"Invalid export column in {path}: {entry!r}")
        if not isinstance(entry["order"], int) or not isinstance(entry["enabled"], bool):
            raise ExportConfigError(f"Invalid export column types in {path}: {entry!r}")
        columns.append(
            ExportColumn(key=str(entry["key"]), header=str(entry["header"]), enabled=entry["enabled"], order=entry["order"])
        )
    return columns


def load_export_config(path: Optional[Path] = None) -> List[ExportColumn]:
    """Load the persisted config; falls back to the default template when none is saved."""
    path = path or EXPORT_CONFIG_PATH
    if not path.exists():
        return default_export_config()
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception as e:
        raise ExportConfigError(f"Failed to read/parse export config: {path}") from e
    return _validate(raw, path)


def save_export_config(config: Sequence[ExportColumn], path: Optional[Path] = None) -> None:
    """Persist the config (write-temp-then-replace)."""
    path = path or EXPORT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    tmp_path.write_text(json.dumps(list(config), ensure_ascii=False, indent=2), encoding="utf-8")
    tmp_path.replace(path)
    logger.info("Saved export config with %d columns to %s", len(config), path)
