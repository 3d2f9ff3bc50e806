from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Sequence, Tuple

from chart_models import ExportOptions, HeaderFooter, Margins, PageOptions, Task
from density import get_density_profile
from export_layout import HEADER_HEIGHT, round_half_up
from hierarchy import flatten_tasks

logger = logging.getLogger(__name__)

# Layout pixels are CSS-style pixels.
INTERNAL_DPI = 96
# Print-quality resolution used for page-derived pixel targets.
PNG_EXPORT_DPI = 150
MM_PER_INCH = 25.4

PT_PER_MM = 72 / MM_PER_INCH
PT_PER_PX = 72 / INTERNAL_DPI
MM_PER_PX = MM_PER_INCH / INTERNAL_DPI

# Space kept for a header or footer band that has something to show.
HEADER_FOOTER_RESERVED_MM = 10

# (width, height) in mm, landscape.
PAGE_SIZES_MM: Mapping[str, Tuple[float, float]] = MappingProxyType(
    {
        "a4": (297, 210),
        "a3": (420, 297),
        "a2": (594, 420),
        "a1": (841, 594),
        "a0": (1189, 841),
        "letter": (279, 216),
        "legal": (356, 216),
        "tabloid": (432, 279),
    }
)

PAGE_SIZE_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "a4": "A4",
        "a3": "A3",
        "a2": "A2",
        "a1": "A1",
        "a0": "A0",
        "letter": "Letter",
        "legal": "Legal",
        "tabloid": "Tabloid",
        "custom": "Custom",
    }
)

MARGIN_PRESETS: Mapping[str, Margins] = MappingProxyType(
    {
        "normal": Margins(top=10, bottom=10, left=15, right=15),
        "narrow": Margins(top=5, bottom=5, left=5, right=5),
        "wide": Margins(top=20, bottom=20, left=25, right=25),
        "none": Margins(top=0, bottom=0, left=0, right=0),
        "custom": Margins(top=10, bottom=10, left=15, right=15),
    }
)


@dataclass(frozen=True)
class PageDimensions:
    width: float
    height: float


@dataclass(frozen=True)
class PrintableArea:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class ScaleResult:
    scale: float
    chart_width: float  # mm
    chart_height: float  # mm
    offset_x: float  # mm from the printable area's left edge
    offset_y: float  # mm from the printable area's top edge


@dataclass(frozen=True)
class QuickPreset:
    key: str
    label: str
    description: str
    target_width: int


# ---------------------------
# Unit conversion
# ---------------------------


def mm_to_pt(mm: float) -> float:
    return mm * PT_PER_MM


def px_to_mm(px: float) -> float:
    return px * MM_PER_PX


def mm_to_px_at_dpi(mm: float, dpi: float) -> float:
    return (mm / MM_PER_INCH) * dpi


def calculate_pixel_dimensions(width_mm: float, height_mm: float, dpi: float = PNG_EXPORT_DPI) -> Tuple[int, int]:
    return (
        round_half_up(mm_to_px_at_dpi(width_mm, dpi)),
        round_half_up(mm_to_px_at_dpi(height_mm, dpi)),
    )


def format_dpi_description(width_px: int, height_px: int, dpi: int) -> str:
    return f"{width_px} × {height_px} px ({dpi} DPI)"


# ---------------------------
# Page geometry
# ---------------------------


def page_dimensions(page: PageOptions) -> PageDimensions:
    """Page size in mm after applying orientation."""
    if page.page_size == "custom":
        w, h = page.custom_page_size.width, page.custom_page_size.height
    else:
        w, h = PAGE_SIZES_MM[page.page_size]
    if page.orientation == "landscape":
        return PageDimensions(width=w, height=h)
    return PageDimensions(width=h, height=w)


def page_margins(page: PageOptions) -> Margins:
    if page.margin_preset == "custom" and page.custom_margins is not None:
        return page.custom_margins
    return MARGIN_PRESETS[page.margin_preset]


def printable_area(page: PageOptions) -> PrintableArea:
    dims = page_dimensions(page)
    m = page_margins(page)
    return PrintableArea(
        x=m.left,
        y=m.top,
        width=dims.width - m.left - m.right,
        height=dims.height - m.top - m.bottom,
    )


def has_header_footer_content(section: HeaderFooter) -> bool:
    return bool(section.show_project_name or section.show_author or section.show_export_date or section.custom_text)


def reserved_space(section: HeaderFooter) -> float:
    return HEADER_FOOTER_RESERVED_MM if has_header_footer_content(section) else 0


def format_page_size_name(page_size: str) -> str:
    return PAGE_SIZE_LABELS.get(page_size, page_size.upper())


# ---------------------------
# Page fit
# ---------------------------


def chart_content_height(tasks: Sequence[Task], options: ExportOptions) -> int:
    """Row block plus header band, in layout pixels."""
    profile = get_density_profile(options.density)
    rows = len(flatten_tasks(tasks))
    return rows * profile.row_height + (HEADER_HEIGHT if options.include_header else 0)


def resolve_page_fit_to_width(tasks: Sequence[Task], options: ExportOptions, page: PageOptions) -> int:
    """
    Total pixel width to use as fit_to_width so the chart fills the page's printable width.

    The base target is the printable width at PNG_EXPORT_DPI. A chart taller than the
    available height gets scaled down on the page, so the target widens to keep the
    chart's aspect ratio equal to the available area's.
    """
    area = printable_area(page)
    available_height_mm = area.height - reserved_space(page.header) - reserved_space(page.footer)

    available_width_px = mm_to_px_at_dpi(area.width, PNG_EXPORT_DPI)
    available_height_px = mm_to_px_at_dpi(available_height_mm, PNG_EXPORT_DPI)

    base_width = max(1, round_half_up(available_width_px))
    content_height = chart_content_height(tasks, options)

    target = base_width
    if available_height_px > 0 and content_height > available_height_px:
        target = max(base_width, round_half_up(content_height * available_width_px / available_height_px))

    logger.debug(
        "Page fit target: %d px (page=%s %s, content height=%d px)",
        target,
        page.page_size,
        page.orientation,
        content_height,
    )
    return target


def calculate_page_scale(
    content_width_px: float,
    content_height_px: float,
    page: PageOptions,
    reserved_top: float = 0,
    reserved_bottom: float = 0,
) -> ScaleResult:
    """
    Scale to fit content (layout pixels) inside the printable area on one page.

    The chart is centred horizontally and aligned to the top, below any header band.
    """
    area = printable_area(page)
    available_height = area.height - reserved_top - reserved_bottom

    content_width_mm = px_to_mm(content_width_px)
    content_height_mm = px_to_mm(content_height_px)

    scale_x = area.width / content_width_mm if content_width_mm > 0 else 1.0
    scale_y = available_height / content_height_mm if content_height_mm > 0 else scale_x
    scale = min(scale_x, scale_y)

    chart_width = content_width_mm * scale
    chart_height = content_height_mm * scale
    return ScaleResult(
        scale=scale,
        chart_width=chart_width,
        chart_height=chart_height,
        offset_x=(area.width - chart_width) / 2,
        offset_y=reserved_top,
    )


def _page_preset(key: str, label: str, page_size: str) -> QuickPreset:
    w_mm, h_mm = PAGE_SIZES_MM[page_size]
    w, h = calculate_pixel_dimensions(w_mm, h_mm, PNG_EXPORT_DPI)
    return QuickPreset(key=key, label=label, description=format_dpi_description(w, h, PNG_EXPORT_DPI), target_width=w)


QUICK_PRESETS: List[QuickPreset] = [
    _page_preset("a4-landscape", "A4 Landscape", "a4"),
    _page_preset("a3-landscape", "A3 Landscape", "a3"),
    _page_preset("letter-landscape", "Letter Landscape", "letter"),
    QuickPreset(key="hd-screen", label="HD Screen", description="1920 × 1080 px", target_width=1920),
    QuickPreset(key="4k-screen", label="4K Screen", description="3840 × 2160 px", target_width=3840),
]
