from datetime import date

import pytest

from chart_models import ExportOptions, HeaderFooter, Margins, PageOptions, Task
from page_layout import (
    QUICK_PRESETS,
    calculate_page_scale,
    calculate_pixel_dimensions,
    has_header_footer_content,
    mm_to_pt,
    page_dimensions,
    printable_area,
    px_to_mm,
    reserved_space,
    resolve_page_fit_to_width,
)


def _tasks(n):
    return [
        Task(id=f"T{i}", name=f"Task {i}", start_date=date(2025, 1, 1), end_date=date(2025, 1, 20))
        for i in range(n)
    ]


OPTS = ExportOptions(zoom_mode="fit_to_width", density="normal")


def test_page_dimensions_orientation():
    assert (page_dimensions(PageOptions()).width, page_dimensions(PageOptions()).height) == (297, 210)
    portrait = page_dimensions(PageOptions(orientation="portrait"))
    assert (portrait.width, portrait.height) == (210, 297)


def test_custom_page_size():
    dims = page_dimensions(PageOptions(page_size="custom", custom_page_size={"width": 800, "height": 400}))
    assert (dims.width, dims.height) == (800, 400)


def test_printable_area_uses_margin_preset():
    area = printable_area(PageOptions(margin_preset="normal"))
    assert (area.x, area.y, area.width, area.height) == (15, 10, 267, 190)

    custom = printable_area(
        PageOptions(margin_preset="custom", custom_margins=Margins(top=0, bottom=0, left=0, right=0))
    )
    assert (custom.width, custom.height) == (297, 210)


def test_header_footer_reservation():
    assert has_header_footer_content(HeaderFooter(show_author=True))
    assert has_header_footer_content(HeaderFooter(custom_text="Draft"))
    assert not has_header_footer_content(HeaderFooter(custom_text="   "))
    assert reserved_space(HeaderFooter()) == 0
    assert reserved_space(HeaderFooter(show_project_name=True)) == 10


def test_fit_width_short_chart_uses_printable_width():
    # 267mm at 150 DPI
    assert resolve_page_fit_to_width(_tasks(2), OPTS, PageOptions()) == 1577


def test_fit_width_tall_chart_widens_target():
    short = resolve_page_fit_to_width(_tasks(2), OPTS, PageOptions())
    tall = resolve_page_fit_to_width(_tasks(60), OPTS, PageOptions())
    taller = resolve_page_fit_to_width(_tasks(120), OPTS, PageOptions())
    assert short < tall < taller


def test_fit_width_depends_on_orientation():
    landscape = resolve_page_fit_to_width(_tasks(2), OPTS, PageOptions(orientation="landscape"))
    portrait = resolve_page_fit_to_width(_tasks(2), OPTS, PageOptions(orientation="portrait"))
    assert landscape != portrait


def test_fit_width_grows_with_page_size():
    widths = [resolve_page_fit_to_width(_tasks(2), OPTS, PageOptions(page_size=s)) for s in ("a4", "a3", "a2")]
    assert widths == sorted(widths)
    assert len(set(widths)) == 3


def test_page_scale_fits_printable_area():
    page = PageOptions()
    area = printable_area(page)
    sr = calculate_page_scale(3000, 800, page, reserved_top=10)
    assert sr.chart_width == pytest.approx(area.width)
    assert sr.chart_height <= area.height - 10
    assert sr.offset_y == 10
    assert sr.offset_x == pytest.approx(0)


def test_page_scale_tall_content_is_centred():
    page = PageOptions()
    area = printable_area(page)
    sr = calculate_page_scale(400, 3000, page)
    assert sr.chart_height == pytest.approx(area.height)
    assert sr.offset_x == pytest.approx((area.width - sr.chart_width) / 2)
    assert sr.chart_width == pytest.approx(px_to_mm(400) * sr.scale)


def test_unit_conversions():
    assert mm_to_pt(25.4) == pytest.approx(72)
    assert px_to_mm(96) == pytest.approx(25.4)
    assert calculate_pixel_dimensions(297, 210, 150) == (1754, 1240)


def test_quick_presets():
    by_key = {p.key: p for p in QUICK_PRESETS}
    assert by_key["a4-landscape"].target_width == 1754
    assert by_key["a4-landscape"].description == "1754 × 1240 px (150 DPI)"
    assert by_key["hd-screen"].target_width == 1920


def test_fit_width_grows_with_narrower_margins():
    def page(side):
        return PageOptions(
            margin_preset="custom", custom_margins=Margins(top=10, bottom=10, left=side, right=side)
        )

    widths = [resolve_page_fit_to_width(_tasks(2), OPTS, page(side)) for side in (25, 15, 5)]
    assert widths[0] < widths[1] < widths[2]
