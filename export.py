from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from io import BytesIO
from typing import List, Mapping, Optional, Sequence, Tuple

import matplotlib.pyplot as plt

from calculations import zoom_warnings
from chart_models import (
    DEFAULT_PAGE_OPTIONS,
    EXPORT_MAX_SAFE_WIDTH,
    Dependency,
    ExportOptions,
    HeaderFooter,
    PageOptions,
    ResolvedGeometry,
    SvgOptions,
    Task,
)
from date_utils import DateRange, format_date
from export_layout import ExportLayout, compute_export_layout
from page_layout import (
    INTERNAL_DPI,
    MM_PER_INCH,
    PT_PER_PX,
    calculate_page_scale,
    page_dimensions,
    printable_area,
    reserved_space,
    resolve_page_fit_to_width,
)
from renderer import draw_chart, render_chart
from text_metrics import DEFAULT_FONT_FAMILY, MeasureFn, measure_text_width, resolve_font_family

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("png", "svg", "pdf")

DEFAULT_FILENAME_BASE = "gantt-chart"
MAX_FILENAME_LENGTH = 50
_INVALID_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')

# Previews are downscaled so huge charts stay responsive.
PREVIEW_MAX_WIDTH = 1600
PREVIEW_PAGE_DPI = 100

HEADER_FOOTER_FONT_PT = 9
HEADER_FOOTER_COLOR = "#646464"


@dataclass(frozen=True)
class ExportPlan:
    """
    Resolved geometry for one export format.

    options is the effective option set: for PDF in fit_to_width mode it carries the
    page-derived fit_to_width, so preview and export read the same value.
    """

    fmt: str
    options: ExportOptions
    layout: ExportLayout
    page_options: Optional[PageOptions] = None
    today: Optional[date] = None

    @property
    def geometry(self) -> ResolvedGeometry:
        return self.layout.geometry()

    @property
    def warnings(self) -> List[str]:
        g = self.geometry
        return zoom_warnings(g.effective_zoom, g.width)


def plan_export(
    fmt: str,
    tasks: Sequence[Task],
    options: ExportOptions,
    *,
    page_options: Optional[PageOptions] = None,
    column_widths: Optional[Mapping[str, int]] = None,
    current_view_zoom: float = 1.0,
    project_range: Optional[DateRange] = None,
    visible_range: Optional[DateRange] = None,
    today: Optional[date] = None,
    measure: MeasureFn = measure_text_width,
) -> ExportPlan:
    """
    The only way to obtain export or preview geometry.

    For pdf with fit_to_width the page-fit target is resolved first and fed into the
    same layout computation the image formats use.
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format '{fmt}'. Expected one of: {', '.join(EXPORT_FORMATS)}.")

    effective = options
    if fmt == "pdf":
        page_options = page_options or DEFAULT_PAGE_OPTIONS
        if options.zoom_mode == "fit_to_width":
            target = resolve_page_fit_to_width(tasks, options, page_options)
            effective = options.model_copy(update={"fit_to_width": target})
    else:
        page_options = None

    layout = compute_export_layout(
        tasks,
        effective,
        column_widths,
        current_view_zoom,
        project_range,
        visible_range,
        today=today,
        measure=measure,
    )
    return ExportPlan(fmt=fmt, options=effective, layout=layout, page_options=page_options, today=today)


# ---------------------------
# PNG / SVG
# ---------------------------


def _savefig_kwargs(options: ExportOptions, *, force_background: bool = False) -> dict:
    if options.background == "transparent" and not force_background:
        return {"transparent": True}
    return {"facecolor": "white"}


def export_png_bytes(
    plan: ExportPlan,
    *,
    scale: int = 1,
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    font_family: str = DEFAULT_FONT_FAMILY,
) -> bytes:
    """Raster export of exactly (width * scale) x (height * scale) pixels."""
    if scale < 1:
        raise ValueError("PNG scale must be at least 1.")
    g = plan.geometry
    if g.width * scale > EXPORT_MAX_SAFE_WIDTH:
        logger.warning("PNG export is %d px wide (limit %d); some viewers may not open it.", g.width * scale, EXPORT_MAX_SAFE_WIDTH)

    fig = render_chart(
        plan.layout,
        plan.options,
        dependencies=dependencies,
        holidays=holidays,
        today=plan.today,
        font_family=font_family,
    )
    bio = BytesIO()
    fig.savefig(bio, format="png", dpi=INTERNAL_DPI * scale, **_savefig_kwargs(plan.options))
    # Important: close to avoid memory growth in Streamlit
    plt.close(fig)
    return bio.getvalue()


def export_svg_bytes(
    plan: ExportPlan,
    *,
    svg_options: SvgOptions = SvgOptions(),
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    font_family: str = DEFAULT_FONT_FAMILY,
) -> bytes:
    """Vector export; text stays selectable unless text_mode is "paths"."""
    fonttype = "none" if svg_options.text_mode == "text" else "path"
    with plt.rc_context({"svg.fonttype": fonttype}):
        fig = render_chart(
            plan.layout,
            plan.options,
            dependencies=dependencies,
            holidays=holidays,
            today=plan.today,
            font_family=font_family,
        )
        bio = BytesIO()
        fig.savefig(
            bio,
            format="svg",
            **_savefig_kwargs(plan.options, force_background=svg_options.include_background),
        )
        plt.close(fig)
    return bio.getvalue()


# ---------------------------
# PDF
# ---------------------------


def header_footer_parts(
    section: HeaderFooter,
    *,
    project_name: Optional[str],
    author: Optional[str],
    export_date: date,
    date_format: str,
) -> Tuple[str, str, str]:
    """(left, center, right) text for a page band: project | author, custom text, export date."""
    left_parts: List[str] = []
    if section.show_project_name and project_name:
        left_parts.append(project_name)
    if section.show_author and author:
        left_parts.append(author)
    right = format_date(export_date, date_format) if section.show_export_date else ""
    return " | ".join(left_parts), section.custom_text or "", right


def _draw_page_band(fig, parts: Tuple[str, str, str], *, y_mm: float, page, area, font_family: str) -> None:
    y = 1.0 - y_mm / page.height
    positions = (
        (area.x / page.width, "left"),
        ((area.x + area.width / 2.0) / page.width, "center"),
        ((area.x + area.width) / page.width, "right"),
    )
    for text, (x, ha) in zip(parts, positions):
        if not text:
            continue
        fig.text(
            x,
            y,
            text,
            ha=ha,
            va="center",
            fontsize=HEADER_FOOTER_FONT_PT,
            fontfamily=font_family,
            color=HEADER_FOOTER_COLOR,
        )


def _pdf_metadata(page_options: PageOptions, project_name: Optional[str]) -> dict:
    meta = page_options.metadata
    out = {
        "Title": meta.title or project_name,
        "Author": meta.author,
        "Subject": meta.subject or "Gantt Chart Export",
        "Creator": "Gantt Export",
    }
    return {k: v for k, v in out.items() if v}


def build_pdf_figure(
    plan: ExportPlan,
    *,
    project_name: Optional[str] = None,
    export_date: Optional[date] = None,
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    font_family: str = DEFAULT_FONT_FAMILY,
) -> plt.Figure:
    """
    One page of the chosen size with the chart scaled into the printable area.

    The chart sits below the header band, centred horizontally; header and footer
    bands are drawn in their reserved space.
    """
    po = plan.page_options or DEFAULT_PAGE_OPTIONS
    page = page_dimensions(po)
    area = printable_area(po)
    reserved_top = reserved_space(po.header)
    reserved_bottom = reserved_space(po.footer)
    export_date = export_date or date.today()
    family = resolve_font_family(font_family)

    fig = plt.figure(figsize=(page.width / MM_PER_INCH, page.height / MM_PER_INCH))
    fig.patch.set_facecolor("white")

    g = plan.geometry
    if g.width > 0 and g.height > 0:
        sr = calculate_page_scale(g.width, g.height, po, reserved_top, reserved_bottom)
        left_mm = area.x + sr.offset_x
        top_mm = area.y + sr.offset_y
        ax = fig.add_axes(
            [
                left_mm / page.width,
                1.0 - (top_mm + sr.chart_height) / page.height,
                sr.chart_width / page.width,
                sr.chart_height / page.height,
            ]
        )
        draw_chart(
            ax,
            plan.layout,
            plan.options,
            dependencies=dependencies,
            holidays=holidays,
            today=plan.today,
            pt_per_px=PT_PER_PX * sr.scale,
            font_family=family,
        )

    date_format = plan.options.date_format
    if reserved_top:
        parts = header_footer_parts(
            po.header, project_name=project_name, author=po.metadata.author, export_date=export_date, date_format=date_format
        )
        _draw_page_band(fig, parts, y_mm=area.y + reserved_top / 2.0, page=page, area=area, font_family=family)
    if reserved_bottom:
        parts = header_footer_parts(
            po.footer, project_name=project_name, author=po.metadata.author, export_date=export_date, date_format=date_format
        )
        _draw_page_band(
            fig, parts, y_mm=area.y + area.height - reserved_bottom / 2.0, page=page, area=area, font_family=family
        )
    return fig


def export_pdf_bytes(
    plan: ExportPlan,
    *,
    project_name: Optional[str] = None,
    export_date: Optional[date] = None,
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    font_family: str = DEFAULT_FONT_FAMILY,
) -> bytes:
    if plan.fmt != "pdf":
        raise ValueError("export_pdf_bytes needs a plan created for the 'pdf' format.")
    fig = build_pdf_figure(
        plan,
        project_name=project_name,
        export_date=export_date,
        dependencies=dependencies,
        holidays=holidays,
        font_family=font_family,
    )
    bio = BytesIO()
    fig.savefig(
        bio,
        format="pdf",
        facecolor="white",
        metadata=_pdf_metadata(plan.page_options or DEFAULT_PAGE_OPTIONS, project_name),
    )
    plt.close(fig)
    return bio.getvalue()


# ---------------------------
# Preview
# ---------------------------


def preview_png_bytes(
    plan: ExportPlan,
    *,
    project_name: Optional[str] = None,
    dependencies: Sequence[Dependency] = (),
    holidays: Sequence[date] = (),
    font_family: str = DEFAULT_FONT_FAMILY,
    max_width: int = PREVIEW_MAX_WIDTH,
) -> bytes:
    """
    On-screen preview drawn from the same plan the exporter uses.

    PDF plans preview the whole page; image plans preview the chart, downscaled
    to at most max_width pixels.
    """
    if plan.fmt == "pdf":
        fig = build_pdf_figure(
            plan,
            project_name=project_name,
            dependencies=dependencies,
            holidays=holidays,
            font_family=font_family,
        )
        dpi = PREVIEW_PAGE_DPI
    else:
        fig = render_chart(
            plan.layout,
            plan.options,
            dependencies=dependencies,
            holidays=holidays,
            today=plan.today,
            font_family=font_family,
        )
        width = max(plan.geometry.width, 1)
        dpi = INTERNAL_DPI * min(1.0, max_width / width)

    bio = BytesIO()
    fig.savefig(bio, format="png", dpi=dpi, **_savefig_kwargs(plan.options, force_background=plan.fmt == "pdf"))
    plt.close(fig)
    return bio.getvalue()


# ---------------------------
# Filenames
# ---------------------------


def sanitize_filename(name: Optional[str]) -> str:
    """
    Make a project name safe for use in a filename.

    Invalid characters are removed, whitespace becomes hyphens, hyphens collapse,
    the result is truncated to 50 characters and trimmed of hyphens. Unicode is kept.
    """
    if not name or not name.strip():
        return "untitled"
    s = _INVALID_FILENAME_CHARS.sub("", name)
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"-+", "-", s)
    s = s[:MAX_FILENAME_LENGTH].strip("-")
    return s or "untitled"


def export_filename(project_name: Optional[str], extension: str, now: Optional[datetime] = None) -> str:
    """{name}-YYYYMMDD-HHMMSS.{ext}"""
    now = now or datetime.now()
    base = sanitize_filename(project_name) if project_name else DEFAULT_FILENAME_BASE
    return f"{base}-{now.strftime('%Y%m%d-%H%M%S')}.{extension}"
