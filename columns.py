from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from chart_models import Task
from date_utils import format_date
from density import get_density_profile
from hierarchy import flatten_tasks
from text_metrics import MeasureFn, measure_text_width


@dataclass(frozen=True)
class ExportColumn:
    key: str
    label: str


# Ordered column definitions; labels match the task table header.
EXPORT_COLUMNS: Sequence[ExportColumn] = (
    ExportColumn(key="color", label=""),
    ExportColumn(key="name", label="Name"),
    ExportColumn(key="start_date", label="Start Date"),
    ExportColumn(key="end_date", label="End Date"),
    ExportColumn(key="duration", label="Duration"),
    ExportColumn(key="progress", label="%"),
)

EXPORT_COLUMN_MAP: Mapping[str, ExportColumn] = {c.key: c for c in EXPORT_COLUMNS}

# Name-column affordances drawn before the task name.
EXPAND_BUTTON_WIDTH = 16
CELL_GAP_SIZE = 8

MIN_COLUMN_WIDTH = 60
MAX_COLUMN_WIDTH = 600

# Used for keys without a density-specific default.
FALLBACK_COLUMN_WIDTH = 100


def column_display_value(task: Task, key: str, date_format: str = "YYYY-MM-DD") -> str:
    """
    Exact string shown in a task-table cell.

    Milestones leave end date and duration blank; summaries show "N days".
    """
    is_milestone = task.type == "milestone"
    is_summary = task.type == "summary"

    if key == "name":
        return task.name
    if key == "start_date":
        return format_date(task.start_date, date_format)
    if key == "end_date":
        return "" if is_milestone else format_date(task.end_date, date_format)
    if key == "duration":
        if is_milestone:
            return ""
        if is_summary:
            return f"{task.duration} days" if task.duration > 0 else ""
        return f"{task.duration}"
    if key == "progress":
        return f"{task.progress}%"
    return ""


def name_cell_extra_width(level: int, density: str) -> int:
    """Indent plus expand control, gap and type icon ahead of the name text."""
    profile = get_density_profile(density)
    return level * profile.indent_size + EXPAND_BUTTON_WIDTH + CELL_GAP_SIZE + profile.icon_size


def estimate_column_width(
    column_key: str,
    tasks: Iterable[Task],
    density: str,
    *,
    measure: MeasureFn = measure_text_width,
    date_format: str = "YYYY-MM-DD",
) -> int:
    """Content-fitted width of one task-table column, in whole pixels."""
    profile = get_density_profile(density)
    if column_key == "color":
        return profile.column_widths.color

    flattened = flatten_tasks(tasks)
    font_size = profile.font_size_cell
    column = EXPORT_COLUMN_MAP.get(column_key)
    header_label = column.label if column else column_key

    widest_text = measure(header_label, font_size)
    for ft in flattened:
        widest_text = max(widest_text, measure(column_display_value(ft.task, column_key, date_format), font_size))

    extra = 0
    if column_key == "name":
        for ft in flattened:
            extra = max(extra, name_cell_extra_width(ft.level, density))
        padding = profile.cell_padding_x
    else:
        padding = profile.cell_padding_x * 2

    width = math.ceil(widest_text + extra + padding)
    return min(max(width, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)


def fit_column_widths(
    selected_columns: Sequence[str],
    tasks: Iterable[Task],
    density: str,
    overrides: Optional[Mapping[str, int]] = None,
    *,
    measure: MeasureFn = measure_text_width,
    date_format: str = "YYYY-MM-DD",
) -> Dict[str, int]:
    """Content-fit every selected column; explicit overrides win."""
    overrides = overrides or {}
    task_list: List[Task] = list(tasks)
    out: Dict[str, int] = {}
    for key in selected_columns:
        if overrides.get(key):
            out[key] = int(overrides[key])
        else:
            out[key] = estimate_column_width(key, task_list, density, measure=measure, date_format=date_format)
    return out


def default_column_width(column_key: str, density: str) -> int:
    widths = get_density_profile(density).column_widths
    return getattr(widths, column_key, FALLBACK_COLUMN_WIDTH)


def resolve_column_widths(
    selected_columns: Sequence[str],
    overrides: Optional[Mapping[str, int]],
    density: str,
) -> Dict[str, int]:
    """Per-column width actually used: explicit override if present, else the density default."""
    overrides = overrides or {}
    return {key: (overrides.get(key) or default_column_width(key, density)) for key in selected_columns}


def estimate_table_width(
    selected_columns: Sequence[str],
    overrides: Optional[Mapping[str, int]],
    density: str,
) -> int:
    """Total task-table width; 0 for an empty selection (timeline only)."""
    return sum(resolve_column_widths(selected_columns, overrides, density).values())
