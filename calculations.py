from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from chart_models import (
    EXPORT_MAX_SAFE_WIDTH,
    EXPORT_ZOOM_LABELS_HIDDEN_THRESHOLD,
    EXPORT_ZOOM_MAX,
    EXPORT_ZOOM_MIN,
    EXPORT_ZOOM_READABLE_THRESHOLD,
    ExportOptions,
    Task,
)
from date_utils import DateRange, add_days, days_between
from density import get_density_profile
from text_metrics import MeasureFn, max_text_width, measure_text_width

# 100% zoom == 25 px per calendar day.
BASE_PIXELS_PER_DAY = 25

# Minimum timeline share when fitting to a total width.
MIN_TIMELINE_WIDTH = 100

BASE_DATE_PADDING_DAYS = 7

# Window used before any project or viewport range is known.
FALLBACK_DAYS_BEFORE = 7
FALLBACK_DAYS_AFTER = 30

LABEL_GAP = 8
MAX_LABEL_PADDING_PX = 250


@dataclass(frozen=True)
class LabelPadding:
    left_days: int = 0
    right_days: int = 0


def fallback_date_range(today: Optional[date] = None) -> DateRange:
    today = today or date.today()
    return DateRange(start=add_days(today, -FALLBACK_DAYS_BEFORE), end=add_days(today, FALLBACK_DAYS_AFTER))


def effective_label_position(task: Task, label_position: str) -> str:
    """Summaries and milestones have no room inside the bar, so "inside" becomes "after"."""
    if task.type in ("summary", "milestone") and label_position == "inside":
        return "after"
    return label_position


def label_padding_days(
    tasks: Sequence[Task],
    label_position: str,
    font_size: float,
    pixels_per_day: float,
    *,
    measure: MeasureFn = measure_text_width,
) -> LabelPadding:
    """
    Extra days needed on each side so that labels drawn outside their bars are not clipped.

    Each side is the widest overflowing label plus a gap, capped at MAX_LABEL_PADDING_PX,
    converted to whole days (rounded up).
    """
    if not tasks or pixels_per_day <= 0:
        return LabelPadding()

    before: List[str] = []
    after: List[str] = []
    for t in tasks:
        pos = effective_label_position(t, label_position)
        if pos == "before":
            before.append(t.name)
        elif pos == "after":
            after.append(t.name)

    def _side_days(names: List[str]) -> int:
        if not names:
            return 0
        widest = max_text_width(names, font_size, measure)
        return math.ceil(min(widest + LABEL_GAP, MAX_LABEL_PADDING_PX) / pixels_per_day)

    return LabelPadding(left_days=_side_days(before), right_days=_side_days(after))


def resolve_date_range(
    options: ExportOptions,
    project_range: Optional[DateRange] = None,
    visible_range: Optional[DateRange] = None,
    tasks: Optional[Sequence[Task]] = None,
    effective_zoom: Optional[float] = None,
    *,
    today: Optional[date] = None,
    measure: MeasureFn = measure_text_width,
) -> DateRange:
    """
    Effective inclusive date window for an export.

    Modes:
    - visible: the current viewport range, else the fallback window
    - custom: both user dates, else the fallback window
    - all (and anything unrecognised): project range padded by 7 days per side,
      plus label padding when tasks and a positive zoom are given
    """
    mode = options.date_range_mode

    if mode == "visible":
        return visible_range if visible_range is not None else fallback_date_range(today)

    if mode == "custom":
        if options.custom_date_start is not None and options.custom_date_end is not None:
            return DateRange(start=options.custom_date_start, end=options.custom_date_end)
        return fallback_date_range(today)

    if project_range is None:
        return fallback_date_range(today)

    left = BASE_DATE_PADDING_DAYS
    right = BASE_DATE_PADDING_DAYS
    if tasks and effective_zoom is not None and effective_zoom > 0:
        profile = get_density_profile(options.density)
        padding = label_padding_days(
            tasks,
            options.task_label_position,
            profile.font_size_bar,
            BASE_PIXELS_PER_DAY * effective_zoom,
            measure=measure,
        )
        left += padding.left_days
        right += padding.right_days

    return DateRange(start=add_days(project_range.start, -left), end=add_days(project_range.end, right))


def duration_days(date_range: DateRange) -> int:
    """Whole days from start to end; 0 for a single-day or reversed range."""
    return max(0, days_between(date_range.start, date_range.end))


def resolve_zoom(
    options: ExportOptions,
    current_view_zoom: float,
    duration: int,
    table_width: float,
) -> float:
    """
    Effective zoom ratio relative to BASE_PIXELS_PER_DAY.

    fit_to_width treats options.fit_to_width as the total width (table + timeline).
    The result is not clamped.
    """
    mode = options.zoom_mode
    if mode == "current_view":
        return current_view_zoom
    if mode == "custom":
        return options.timeline_zoom
    if mode == "fit_to_width":
        if duration <= 0:
            return 1.0
        timeline_share = max(MIN_TIMELINE_WIDTH, options.fit_to_width - table_width)
        return timeline_share / (duration * BASE_PIXELS_PER_DAY)
    return options.timeline_zoom


def clamp_zoom(value: float) -> float:
    """Clamp a user-entered zoom to the supported range."""
    return min(max(value, EXPORT_ZOOM_MIN), EXPORT_ZOOM_MAX)


def zoom_warnings(effective_zoom: float, width: Optional[int] = None) -> List[str]:
    warnings: List[str] = []
    if effective_zoom < EXPORT_ZOOM_LABELS_HIDDEN_THRESHOLD:
        warnings.append(
            f"Zoom is {effective_zoom:.0%}: task labels will be hidden. "
            "Use a shorter date range or a wider export."
        )
    elif effective_zoom < EXPORT_ZOOM_READABLE_THRESHOLD:
        warnings.append(f"Zoom is {effective_zoom:.0%}: task labels may be hard to read.")
    if width is not None and width > EXPORT_MAX_SAFE_WIDTH:
        warnings.append(
            f"Export is {width:,} px wide; images wider than {EXPORT_MAX_SAFE_WIDTH:,} px "
            "may fail to open in some viewers."
        )
    return warnings


def labels_hidden(effective_zoom: float) -> bool:
    return effective_zoom < EXPORT_ZOOM_LABELS_HIDDEN_THRESHOLD
