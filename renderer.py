from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import matplotlib.colors as mcolors
import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch, Polygon, Rectangle

from calculations import effective_label_position, labels_hidden
from chart_models import Dependency, ExportOptions, Task
from columns import CELL_GAP_SIZE, EXPAND_BUTTON_WIDTH, EXPORT_COLUMN_MAP, column_display_value
from date_utils import add_days, days_between, is_weekend
from export_layout import ExportLayout
from hierarchy import task_end_date
from page_layout import INTERNAL_DPI, PT_PER_PX
from text_metrics import DEFAULT_FONT_FAMILY, measure_text_width, resolve_font_family

TEXT_COLOR = "#1A1A1A"
MUTED_TEXT_COLOR = "#4A5568"
BORDER_COLOR = "#DADADA"
ROW_LINE_COLOR = "#EFEFEF"
GRID_COLOR = "#E6E6E6"
MAJOR_GRID_COLOR = "#D0D0D0"
TABLE_HEADER_FILL = "#F6F8FB"
WEEKEND_FILL = "#F7F7F7"
HOLIDAY_FILL = "#FDECEC"
TODAY_COLOR = "#E53E3E"
DEPENDENCY_COLOR = "#718096"

# Gap between a bar and a label drawn outside it.
LABEL_PADDING = 8

# Below this many pixels per day weekend shading turns into noise.
MIN_PPD_FOR_WEEKENDS = 3.0

_SIZE_EPSILON_PX = 1e-3


@dataclass(frozen=True)
class RenderContext:
    """Per-render conversion from layout pixels to matplotlib points."""

    pt_per_px: float
    font_family: str

    def fs(self, px: float) -> float:
        return px * self.pt_per_px

    def lw(self, px: float) -> float:
        return px * self.pt_per_px


def _lighten_hex(hex_color: str, amount: float) -> str:
    """Blend a color with white. amount in [0, 1]."""
    r, g, b = mcolors.to_rgb(hex_color)
    r = r + (1.0 - r) * amount
    g = g + (1.0 - g) * amount
    b = b + (1.0 - b) * amount
    return mcolors.to_hex((r, g, b))


# ---------------------------------------------------------------------------
# Timeline helpers (scale selection + labeled header band)
# ---------------------------------------------------------------------------


def _start_of_week(d: date) -> date:
    return d - timedelta(days=d.weekday())


def _iter_day_starts(start: date, end: date) -> List[date]:
    return [add_days(start, i) for i in range(days_between(start, end) + 1)]


def _iter_week_starts(start: date, end: date) -> List[date]:
    cur = _start_of_week(start)
    out: List[date] = []
    while cur <= end:
        out.append(cur)
        cur += timedelta(days=7)
    return out


def _iter_month_starts(start: date, end: date) -> List[date]:
    cur = date(start.year, start.month, 1)
    out: List[date] = []
    while cur <= end:
        out.append(cur)
        if cur.month == 12:
            cur = date(cur.year + 1, 1, 1)
        else:
            cur = date(cur.year, cur.month + 1, 1)
    return out


def _quarter_start(d: date) -> date:
    qm = ((d.month - 1) // 3) * 3 + 1
    return date(d.year, qm, 1)


def _iter_quarter_starts(start: date, end: date) -> List[date]:
    cur = _quarter_start(start)
    out: List[date] = []
    while cur <= end:
        out.append(cur)
        m = cur.month + 3
        y = cur.year
        if m > 12:
            m -= 12
            y += 1
        cur = date(y, m, 1)
    return out


def _iter_year_starts(start: date, end: date) -> List[date]:
    cur = date(start.year, 1, 1)
    out: List[date] = []
    while cur <= end:
        out.append(cur)
        cur = date(cur.year + 1, 1, 1)
    return out


def _segments_from_boundaries(
    boundaries: List[date],
    start: date,
    end_exclusive: date,
) -> List[Tuple[date, date]]:
    """Build contiguous segments between boundaries, clamped to [start, end_exclusive)."""
    out: List[Tuple[date, date]] = []
    for i, b in enumerate(boundaries):
        seg_start = max(b, start)
        next_b = boundaries[i + 1] if i + 1 < len(boundaries) else end_exclusive
        seg_end = min(next_b, end_exclusive)
        if seg_end > seg_start:
            out.append((seg_start, seg_end))
    return out


def _build_day_segments(start: date, end_excl: date) -> List[Tuple[date, date, str]]:
    segs = _segments_from_boundaries(_iter_day_starts(start, end_excl), start, end_excl)
    return [(s, e, str(s.day)) for s, e in segs]


def _build_week_segments(start: date, end_excl: date) -> List[Tuple[date, date, str]]:
    segs = _segments_from_boundaries(_iter_week_starts(start, end_excl), start, end_excl)

    out: List[Tuple[date, date, str]] = []
    prev_m_y: Optional[Tuple[int, int]] = None
    for idx, (s, e) in enumerate(segs):
        my = (s.month, s.year)
        include_month = idx == 0 or (prev_m_y is not None and my != prev_m_y)
        label = s.strftime("%d %b") if include_month else s.strftime("%d")
        out.append((s, e, label))
        prev_m_y = my
    return out


def _build_month_segments(start: date, end_excl: date, *, short: bool = False) -> List[Tuple[date, date, str]]:
    segs = _segments_from_boundaries(_iter_month_starts(start, end_excl), start, end_excl)

    out: List[Tuple[date, date, str]] = []
    prev_year: Optional[int] = None
    for idx, (s, e) in enumerate(segs):
        include_year = not short and (idx == 0 or (prev_year is not None and s.year != prev_year) or s.month == 1)
        label = s.strftime("%b %Y") if include_year else s.strftime("%b")
        out.append((s, e, label))
        prev_year = s.year
    return out


def _build_quarter_segments(start: date, end_excl: date, *, include_year: bool) -> List[Tuple[date, date, str]]:
    segs = _segments_from_boundaries(_iter_quarter_starts(start, end_excl), start, end_excl)

    out: List[Tuple[date, date, str]] = []
    prev_year: Optional[int] = None
    for idx, (s, e) in enumerate(segs):
        q = ((s.month - 1) // 3) + 1
        if include_year:
            include = idx == 0 or q == 1 or (prev_year is not None and s.year != prev_year)
            label = f"Q{q} {s.year}" if include else f"Q{q}"
        else:
            label = f"Q{q}"
        out.append((s, e, label))
        prev_year = s.year
    return out


def _build_year_segments(start: date, end_excl: date) -> List[Tuple[date, date, str]]:
    segs = _segments_from_boundaries(_iter_year_starts(start, end_excl), start, end_excl)
    return [(s, e, str(s.year)) for s, e in segs]


def choose_timeline_scale(pixels_per_day: float) -> Tuple[str, str]:
    """
    Pick (top row, bottom row) units for the header band from the horizontal density.

    Rules:
      - >= 20 px/day: months over days
      - >= 4 px/day: months over weeks
      - >= 1 px/day: quarters over months
      - otherwise: years over quarters
    """
    if pixels_per_day >= 20:
        return "months", "days"
    if pixels_per_day >= 4:
        return "months", "weeks"
    if pixels_per_day >= 1:
        return "quarters", "months"
    return "years", "quarters"


def timeline_segments(kind: str, start: date, end_excl: date, *, top: bool) -> List[Tuple[date, date, str]]:
    if kind == "days":
        return _build_day_segments(start, end_excl)
    if kind == "weeks":
        return _build_week_segments(start, end_excl)
    if kind == "months":
        return _build_month_segments(start, end_excl, short=not top)
    if kind == "quarters":
        return _build_quarter_segments(start, end_excl, include_year=top)
    return _build_year_segments(start, end_excl)


# ---------------------------------------------------------------------------
# Chart layers
# ---------------------------------------------------------------------------


class _Timeline:
    """
    Maps dates to layout x positions.

    The timeline spans duration_days days from the range start, matching the
    layout width of duration_days x pixels_per_day. The range end date sits on
    the right edge, so a bar ending on that day is clipped to the edge.
    """

    def __init__(self, layout: ExportLayout):
        self.start = layout.date_range.start
        self.x0 = float(layout.table_width)
        self.x1 = float(layout.total_width)
        self.ppd = layout.pixels_per_day
        self.end_excl = add_days(self.start, max(layout.duration_days, 1))

    def x(self, d: date) -> float:
        return self.x0 + days_between(self.start, d) * self.ppd


def _draw_timeline_header(ax, layout: ExportLayout, tl: _Timeline, ctx: RenderContext) -> None:
    row_h = layout.header_height / 2.0
    top_kind, bottom_kind = choose_timeline_scale(tl.ppd)
    rows = [
        (timeline_segments(top_kind, tl.start, tl.end_excl, top=True), 0.0),
        (timeline_segments(bottom_kind, tl.start, tl.end_excl, top=False), row_h),
    ]
    font_px = layout.density.font_size_header

    ax.hlines(layout.header_height, tl.x0, tl.x1, colors=MAJOR_GRID_COLOR, linewidth=ctx.lw(1.2), zorder=4)
    for r_idx, (segs, ry0) in enumerate(rows):
        ax.hlines(ry0, tl.x0, tl.x1, colors=BORDER_COLOR, linewidth=ctx.lw(0.8), zorder=4)
        for i, (ds, de, label) in enumerate(segs):
            xs = tl.x(ds)
            xe = tl.x(de)
            ax.add_patch(
                Rectangle(
                    (xs, ry0),
                    xe - xs,
                    row_h,
                    facecolor="#FFFFFF" if i % 2 == 0 else "#F7F7F7",
                    edgecolor=BORDER_COLOR,
                    linewidth=ctx.lw(0.8),
                    zorder=3,
                )
            )
            # Skip labels that cannot fit in their segment.
            if measure_text_width(label, font_px, ctx.font_family) > (xe - xs) - 2:
                continue
            ax.text(
                (xs + xe) / 2.0,
                ry0 + row_h * 0.5,
                label,
                ha="center",
                va="center",
                fontsize=ctx.fs(font_px),
                fontweight="bold" if r_idx == 0 else "normal",
                fontfamily=ctx.font_family,
                color=TEXT_COLOR,
                zorder=5,
            )


def _draw_table(ax, layout: ExportLayout, options: ExportOptions, ctx: RenderContext) -> None:
    d = layout.density
    y_top = float(layout.header_height)

    if layout.header_height:
        ax.add_patch(
            Rectangle((0, 0), layout.table_width, layout.header_height, facecolor=TABLE_HEADER_FILL, edgecolor="none", zorder=3)
        )
    col_x = 0.0
    for key in layout.selected_columns:
        w = layout.column_widths[key]
        label = EXPORT_COLUMN_MAP[key].label if key in EXPORT_COLUMN_MAP else key
        if layout.header_height and label:
            ax.text(
                col_x + d.cell_padding_x,
                layout.header_height / 2.0,
                label,
                ha="left",
                va="center",
                fontsize=ctx.fs(d.font_size_header),
                fontweight="bold",
                fontfamily=ctx.font_family,
                color=MUTED_TEXT_COLOR,
                zorder=5,
            )

        for i, ft in enumerate(layout.flattened):
            t = ft.task
            row_y0 = y_top + i * d.row_height
            cy = row_y0 + d.row_height / 2.0
            if key == "color":
                bar_w = 4
                ax.add_patch(
                    Rectangle(
                        (col_x + (w - bar_w) / 2.0, cy - d.color_bar_height / 2.0),
                        bar_w,
                        d.color_bar_height,
                        facecolor=t.color,
                        edgecolor="none",
                        zorder=4,
                    )
                )
                continue

            text_x = col_x + d.cell_padding_x
            if key == "name":
                text_x += ft.level * d.indent_size
                if ft.has_children:
                    # Expanded marker; exports always show children.
                    mx = text_x + EXPAND_BUTTON_WIDTH / 2.0
                    s = EXPAND_BUTTON_WIDTH * 0.25
                    ax.add_patch(
                        Polygon(
                            [(mx - s, cy - s / 2.0), (mx + s, cy - s / 2.0), (mx, cy + s / 2.0)],
                            closed=True,
                            facecolor=MUTED_TEXT_COLOR,
                            edgecolor="none",
                            zorder=4,
                        )
                    )
                icon_x = text_x + EXPAND_BUTTON_WIDTH + CELL_GAP_SIZE / 2.0
                _draw_type_icon(ax, t, icon_x, cy, d.icon_size * 0.6)
                text_x += EXPAND_BUTTON_WIDTH + CELL_GAP_SIZE + d.icon_size

            value = column_display_value(t, key, options.date_format)
            if not value:
                continue
            max_w = (col_x + w) - text_x - (d.cell_padding_x if key != "name" else 0)
            ax.text(
                text_x,
                cy,
                _fit_text(value, max_w, d.font_size_cell, ctx.font_family),
                ha="left",
                va="center",
                fontsize=ctx.fs(d.font_size_cell),
                fontweight="bold" if (key == "name" and t.type == "summary") else "normal",
                fontfamily=ctx.font_family,
                color=TEXT_COLOR,
                zorder=5,
            )
        col_x += w
        ax.vlines(col_x, 0, layout.total_height, colors=ROW_LINE_COLOR, linewidth=ctx.lw(1.0), zorder=2)

    ax.vlines(layout.table_width, 0, layout.total_height, colors=MAJOR_GRID_COLOR, linewidth=ctx.lw(1.0), zorder=6)


def _draw_type_icon(ax, task: Task, x: float, cy: float, size: float) -> None:
    half = size / 2.0
    if task.type == "milestone":
        patch = Polygon(
            [(x + half, cy - half), (x + size, cy), (x + half, cy + half), (x, cy)],
            closed=True,
            facecolor=task.color,
            edgecolor="none",
            zorder=4,
        )
    elif task.type == "summary":
        patch = Rectangle((x, cy - half * 0.5), size, half, facecolor=task.color, edgecolor="none", zorder=4)
    else:
        patch = Rectangle((x, cy - half), size, size, facecolor=task.color, edgecolor="none", zorder=4)
    ax.add_patch(patch)


def _fit_text(text: str, max_width: float, font_px: float, font_family: str) -> str:
    """Truncate with an ellipsis so the text fits max_width pixels."""
    if max_width <= 0:
        return ""
    if measure_text_width(text, font_px, font_family) <= max_width:
        return text
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if measure_text_width(text[:mid].rstrip() + "…", font_px, font_family) <= max_width:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo].rstrip() + "…" if lo > 0 else ""


def _draw_background_layers(
    ax,
    layout: ExportLayout,
    options: ExportOptions,
    tl: _Timeline,
    ctx: RenderContext,
    holidays: Sequence[date],
) -> None:
    y0 = float(layout.header_height)
    y1 = float(layout.total_height)
    if y1 <= y0:
        return

    if options.include_weekends and tl.ppd >= MIN_PPD_FOR_WEEKENDS:
        for d in _iter_day_starts(tl.start, add_days(tl.end_excl, -1)):
            if is_weekend(d):
                ax.add_patch(Rectangle((tl.x(d), y0), tl.ppd, y1 - y0, facecolor=WEEKEND_FILL, edgecolor="none", zorder=0))

    if options.include_holidays:
        for d in holidays:
            if tl.start <= d < tl.end_excl:
                ax.add_patch(Rectangle((tl.x(d), y0), tl.ppd, y1 - y0, facecolor=HOLIDAY_FILL, edgecolor="none", zorder=0))

    if options.include_grid_lines:
        top_kind, bottom_kind = choose_timeline_scale(tl.ppd)
        for s, _, _ in timeline_segments(bottom_kind, tl.start, tl.end_excl, top=False):
            ax.vlines(tl.x(s), y0, y1, colors=GRID_COLOR, linewidth=ctx.lw(0.8), zorder=1)
        for s, _, _ in timeline_segments(top_kind, tl.start, tl.end_excl, top=True):
            ax.vlines(tl.x(s), y0, y1, colors=MAJOR_GRID_COLOR, linewidth=ctx.lw(1.2), zorder=1)

    for i in range(len(layout.flattened) + 1):
        ax.hlines(y0 + i * layout.density.row_height, 0, tl.x1, colors=ROW_LINE_COLOR, linewidth=ctx.lw(0.6), zorder=1)


def _bar_extent(task: Task, tl: _Timeline, bar_h: float) -> Tuple[float, float]:
    if task.type == "milestone":
        cx = tl.x(task.start_date) + tl.ppd / 2.0
        return cx - bar_h / 2.0, cx + bar_h / 2.0
    return tl.x(task.start_date), tl.x(task_end_date(task)) + tl.ppd


def _draw_dependencies(
    ax,
    dependencies: Iterable[Dependency],
    extents: Dict[str, Tuple[float, float, float]],
    ctx: RenderContext,
) -> None:
    """Finish-to-start elbow arrows: out of the predecessor's right edge, into the successor's left edge."""
    gap = 8.0
    for dep in dependencies:
        a = extents.get(dep.from_task_id)
        b = extents.get(dep.to_task_id)
        if a is None or b is None:
            continue
        _, xa, ay = a
        bx, _, by = b
        elbow_x = xa + gap
        ax.plot(
            [xa, elbow_x, elbow_x, bx - gap],
            [ay, ay, by, by],
            color=DEPENDENCY_COLOR,
            linewidth=ctx.lw(1.2),
            solid_joinstyle="miter",
            zorder=6,
        )
        ax.annotate(
            "",
            xy=(bx, by),
            xytext=(bx - gap, by),
            arrowprops=dict(arrowstyle="-|>", color=DEPENDENCY_COLOR, lw=ctx.lw(1.2), mutation_scale=ctx.fs(10)),
            zorder=6,
        )


def _draw_label(
    ax,
    task: Task,
    position: str,
    x0: float,
    x1: float,
    cy: float,
    layout: ExportLayout,
    tl: _Timeline,
    ctx: RenderContext,
) -> None:
    font_px = layout.density.font_size_bar
    if position == "inside":
        text = _fit_text(task.name, (x1 - x0) - LABEL_PADDING * 2, font_px, ctx.font_family)
        if not text:
            return
        ax.text(x0 + LABEL_PADDING, cy, text, ha="left", va="center", fontsize=ctx.fs(font_px),
                fontfamily=ctx.font_family, color=TEXT_COLOR, zorder=8)
    elif position == "before":
        text = _fit_text(task.name, x0 - tl.x0 - LABEL_PADDING, font_px, ctx.font_family)
        if not text:
            return
        ax.text(x0 - LABEL_PADDING, cy, text, ha="right", va="center", fontsize=ctx.fs(font_px),
                fontfamily=ctx.font_family, color=TEXT_COLOR, zorder=8)
    elif position == "after":
        text = _fit_text(task.name, tl.x1 - x1 - LABEL_PADDING, font_px, ctx.font_family)
        if not text:
            return
        ax.text(x1 + LABEL_PADDING, cy, text, ha="left", va="center", fontsize=ctx.fs(font_px),
                fontfamily=ctx.font_family, color=TEXT_COLOR, zorder=8)


def _draw_tasks(
    ax,
    layout: ExportLayout,
    options: ExportOptions,
    tl: _Timeline,
    ctx: RenderContext,
) -> Dict[str, Tuple[float, float, float]]:
    """Draw bars, summaries and milestones; returns id -> (x0, x1, center y) for arrows."""
    d = layout.density
    bar_h = float(d.task_bar_height)
    show_labels = options.task_label_position != "none" and not labels_hidden(layout.effective_zoom)
    extents: Dict[str, Tuple[float, float, float]] = {}

    for i, ft in enumerate(layout.flattened):
        t = ft.task
        row_y0 = layout.header_height + i * d.row_height
        y0 = row_y0 + d.task_bar_offset
        cy = y0 + bar_h / 2.0
        x0, x1 = _bar_extent(t, tl, bar_h)
        extents[t.id] = (x0, x1, cy)

        if t.type == "milestone":
            half = bar_h / 2.0
            cx = (x0 + x1) / 2.0
            ax.add_patch(
                Polygon(
                    [(cx, cy - half), (cx + half, cy), (cx, cy + half), (cx - half, cy)],
                    closed=True,
                    facecolor=t.color,
                    edgecolor=t.color,
                    linewidth=ctx.lw(1.0),
                    zorder=7,
                )
            )
        elif t.type == "summary":
            thick = bar_h * 0.35
            ax.add_patch(Rectangle((x0, y0), x1 - x0, thick, facecolor=t.color, edgecolor="none", zorder=7))
            tip = min(bar_h * 0.4, (x1 - x0) / 2.0)
            for edge_x, direction in ((x0, 1.0), (x1, -1.0)):
                ax.add_patch(
                    Polygon(
                        [(edge_x, y0), (edge_x + direction * tip, y0 + thick), (edge_x, y0 + thick + tip)],
                        closed=True,
                        facecolor=t.color,
                        edgecolor="none",
                        zorder=7,
                    )
                )
        else:
            width = x1 - x0
            radius = min(4.0, bar_h / 4.0, width / 2.0)
            ax.add_patch(
                FancyBboxPatch(
                    (x0, y0),
                    width,
                    bar_h,
                    boxstyle=f"round,pad=0,rounding_size={radius}",
                    facecolor=_lighten_hex(t.color, 0.55),
                    edgecolor=t.color,
                    linewidth=ctx.lw(1.0),
                    zorder=7,
                )
            )
            if t.progress > 0:
                ax.add_patch(
                    FancyBboxPatch(
                        (x0, y0),
                        width * t.progress / 100.0,
                        bar_h,
                        boxstyle=f"round,pad=0,rounding_size={radius}",
                        facecolor=t.color,
                        edgecolor="none",
                        zorder=7,
                    )
                )

        if show_labels:
            _draw_label(ax, t, effective_label_position(t, options.task_label_position), x0, x1, cy, layout, tl, ctx)

    return extents


def _draw_today_marker(ax, layout: ExportLayout, tl: _Timeline, ctx: RenderContext, today: date) -> None:
    if not (tl.start <= today < tl.end_excl):
        return
    x = tl.x(today) + tl.ppd / 2.0
    ax.vlines(x, layout.header_height, layout.total_height, colors=TODAY_COLOR, linewidth=ctx.lw(1.5), zorder=9)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def draw_chart(
    ax,
    layout: ExportLayout,
    options: ExportOptions,
    *,
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    today: Optional[date] = None,
    pt_per_px: float = PT_PER_PX,
    font_family: str = DEFAULT_FONT_FAMILY,
) -> None:
    """
    Draw a resolved layout onto an axes whose data units are layout pixels.

    The axes limits are set here: x in [0, total_width], y downward from 0 to total_height.
    """
    ctx = RenderContext(pt_per_px=pt_per_px, font_family=resolve_font_family(font_family))
    width = max(float(layout.total_width), 1.0)
    height = max(float(layout.total_height), 1.0)

    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.axis("off")
    if options.background == "white":
        ax.add_patch(Rectangle((0, 0), width, height, facecolor="white", edgecolor="none", zorder=-1))

    tl = _Timeline(layout)

    _draw_background_layers(ax, layout, options, tl, ctx, holidays)
    if layout.has_task_list:
        _draw_table(ax, layout, options, ctx)
    if layout.header_height:
        _draw_timeline_header(ax, layout, tl, ctx)
    if options.include_today_marker:
        _draw_today_marker(ax, layout, tl, ctx, today or date.today())

    extents = _draw_tasks(ax, layout, options, tl, ctx)
    if options.include_dependencies and dependencies:
        _draw_dependencies(ax, dependencies, extents, ctx)


def render_chart(
    layout: ExportLayout,
    options: ExportOptions,
    *,
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    today: Optional[date] = None,
    font_family: str = DEFAULT_FONT_FAMILY,
) -> plt.Figure:
    """
    Builds a figure exactly the size of the layout at INTERNAL_DPI.

    Saving at dpi=INTERNAL_DPI * scale yields width * scale by height * scale pixels.
    """
    geometry = layout.geometry()
    # Agg truncates the canvas size; nudge so width / 96 * dpi never lands just below an integer.
    fig = plt.figure(
        figsize=(
            (max(geometry.width, 1) + _SIZE_EPSILON_PX) / INTERNAL_DPI,
            (max(geometry.height, 1) + _SIZE_EPSILON_PX) / INTERNAL_DPI,
        ),
        dpi=INTERNAL_DPI,
    )
    ax = fig.add_axes([0.0, 0.0, 1.0, 1.0])
    if options.background == "transparent":
        fig.patch.set_alpha(0.0)
        ax.patch.set_alpha(0.0)
    else:
        fig.patch.set_facecolor("white")

    draw_chart(
        ax,
        layout,
        options,
        dependencies=dependencies,
        holidays=holidays,
        today=today,
        font_family=font_family,
    )
    return fig
