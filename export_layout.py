from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from calculations import (
    BASE_PIXELS_PER_DAY,
    MIN_TIMELINE_WIDTH,
    duration_days,
    resolve_date_range,
    resolve_zoom,
)
from chart_models import ExportOptions, ResolvedGeometry, Task
from columns import resolve_column_widths
from date_utils import DateRange
from density import DensityProfile, get_density_profile
from hierarchy import FlattenedTask, flatten_tasks, project_date_range
from text_metrics import MeasureFn, measure_text_width

logger = logging.getLogger(__name__)

# Height of the two-row timeline header band.
HEADER_HEIGHT = 48


@dataclass(frozen=True)
class ExportLayout:
    """Everything a renderer needs to draw one export, in layout pixels."""

    flattened: List[FlattenedTask]
    selected_columns: Sequence[str]
    column_widths: Dict[str, int]
    table_width: int
    date_range: DateRange
    duration_days: int
    effective_zoom: float
    pixels_per_day: float
    timeline_width: float
    total_width: float
    header_height: int
    content_height: int
    total_height: int
    density: DensityProfile

    @property
    def ordered_tasks(self) -> List[Task]:
        return [ft.task for ft in self.flattened]

    @property
    def has_task_list(self) -> bool:
        return len(self.selected_columns) > 0

    def geometry(self) -> ResolvedGeometry:
        return ResolvedGeometry(
            width=round_half_up(self.total_width),
            height=round_half_up(self.total_height),
            effective_zoom=self.effective_zoom,
        )


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; pixel sizes round .5 up.
    return int(math.floor(value + 0.5))


def compute_export_layout(
    tasks: Sequence[Task],
    options: ExportOptions,
    column_widths: Optional[Mapping[str, int]] = None,
    current_view_zoom: float = 1.0,
    project_range: Optional[DateRange] = None,
    visible_range: Optional[DateRange] = None,
    *,
    today: Optional[date] = None,
    measure: MeasureFn = measure_text_width,
) -> ExportLayout:
    """
    Resolve the full export geometry.

    Steps:
    1) Flatten the hierarchy with everything expanded.
    2) Table width from explicit widths, falling back to density defaults.
    3) First-pass date range (no label padding) -> provisional duration and zoom.
    4) Date range again, padded for labels at the provisional zoom.
    5) Final duration and effective zoom.
    6) Widths: fit_to_width fixes the total; other modes grow from the timeline.
    7) Heights: rows x row height, plus the header band when included.
    """
    profile = get_density_profile(options.density)

    flattened = flatten_tasks(tasks)
    ordered = [ft.task for ft in flattened]
    if project_range is None:
        project_range = project_date_range(ordered)

    selected = tuple(options.selected_columns)
    widths = resolve_column_widths(selected, column_widths, options.density)
    table_width = sum(widths.values())

    first_range = resolve_date_range(options, project_range, visible_range, today=today)
    provisional_zoom = resolve_zoom(options, current_view_zoom, duration_days(first_range), table_width)

    date_range = resolve_date_range(
        options,
        project_range,
        visible_range,
        ordered,
        provisional_zoom,
        today=today,
        measure=measure,
    )
    days = duration_days(date_range)
    effective_zoom = resolve_zoom(options, current_view_zoom, days, table_width)
    pixels_per_day = BASE_PIXELS_PER_DAY * effective_zoom

    if options.zoom_mode == "fit_to_width":
        total_width: float = options.fit_to_width
        timeline_width: float = max(MIN_TIMELINE_WIDTH, total_width - table_width)
    else:
        timeline_width = days * pixels_per_day
        total_width = table_width + timeline_width

    header_height = HEADER_HEIGHT if options.include_header else 0
    content_height = len(flattened) * profile.row_height
    total_height = content_height + header_height

    layout = ExportLayout(
        flattened=flattened,
        selected_columns=selected,
        column_widths=widths,
        table_width=table_width,
        date_range=date_range,
        duration_days=days,
        effective_zoom=effective_zoom,
        pixels_per_day=pixels_per_day,
        timeline_width=timeline_width,
        total_width=total_width,
        header_height=header_height,
        content_height=content_height,
        total_height=total_height,
        density=profile,
    )
    logger.debug(
        "Resolved export layout: %s..%s, %d days, zoom=%.4f, %.1fx%d px",
        date_range.start,
        date_range.end,
        days,
        effective_zoom,
        total_width,
        total_height,
    )
    return layout


def resolve_dimensions(
    tasks: Sequence[Task],
    options: ExportOptions,
    column_widths: Optional[Mapping[str, int]] = None,
    current_view_zoom: float = 1.0,
    project_range: Optional[DateRange] = None,
    visible_range: Optional[DateRange] = None,
    *,
    today: Optional[date] = None,
    measure: MeasureFn = measure_text_width,
) -> ResolvedGeometry:
    """Integer output size plus the unrounded effective zoom."""
    layout = compute_export_layout(
        tasks,
        options,
        column_widths,
        current_view_zoom,
        project_range,
        visible_range,
        today=today,
        measure=measure,
    )
    return layout.geometry()
