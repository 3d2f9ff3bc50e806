import struct
from datetime import date, datetime
from io import BytesIO

import matplotlib.image as mpimg
import pytest

from chart_models import Dependency, ExportOptions, HeaderFooter, PageOptions, SvgOptions, Task
from export import (
    build_pdf_figure,
    export_filename,
    export_pdf_bytes,
    export_png_bytes,
    export_svg_bytes,
    header_footer_parts,
    plan_export,
    preview_png_bytes,
    sanitize_filename,
)

TODAY = date(2025, 2, 3)


def _tasks():
    return [
        Task(id="P", name="Phase 1", start_date=date(2025, 1, 6), end_date=date(2025, 2, 14), type="summary", duration=40),
        Task(id="A", name="Design", start_date=date(2025, 1, 6), end_date=date(2025, 1, 24), parent="P", progress=100),
        Task(id="B", name="Build", start_date=date(2025, 1, 27), end_date=date(2025, 2, 14), parent="P", progress=40),
        Task(id="M", name="Launch", start_date=date(2025, 2, 17), end_date=date(2025, 2, 17), type="milestone"),
    ]


DEPS = [Dependency(from_task_id="A", to_task_id="B"), Dependency(from_task_id="B", to_task_id="M")]

OPTS = ExportOptions(
    zoom_mode="custom",
    timeline_zoom=0.5,
    selected_columns=("color", "name", "start_date", "progress"),
    density="compact",
    task_label_position="after",
)


def _png_size(data: bytes):
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    return struct.unpack(">II", data[16:24])


def _image(data: bytes):
    return mpimg.imread(BytesIO(data), format="png")


def _plan(fmt, options=OPTS, **kw):
    return plan_export(fmt, _tasks(), options, today=TODAY, **kw)


@pytest.mark.parametrize("scale", [1, 2])
def test_png_has_resolved_size(scale):
    plan = _plan("png")
    data = export_png_bytes(plan, scale=scale, dependencies=DEPS, holidays=[date(2025, 1, 20)])
    g = plan.geometry
    assert _png_size(data) == (g.width * scale, g.height * scale)


def test_png_fit_to_width_matches_target():
    plan = _plan("png", OPTS.model_copy(update={"zoom_mode": "fit_to_width", "fit_to_width": 1333}))
    assert _png_size(export_png_bytes(plan))[0] == 1333


def test_png_rejects_bad_scale():
    with pytest.raises(ValueError):
        export_png_bytes(_plan("png"), scale=0)


def test_png_transparent_background():
    transparent = _image(export_png_bytes(_plan("png", OPTS.model_copy(update={"background": "transparent"}))))
    white = _image(export_png_bytes(_plan("png")))
    assert transparent[..., 3].min() == 0
    assert white[..., 3].min() == 1


@pytest.mark.parametrize("text_mode", ["text", "paths"])
def test_svg_export(text_mode):
    data = export_svg_bytes(_plan("svg"), svg_options=SvgOptions(text_mode=text_mode), dependencies=DEPS)
    head = data[:200].decode("utf-8", errors="ignore")
    assert "<?xml" in head or "<svg" in head
    if text_mode == "text":
        assert b"Design" in data


def test_pdf_export_single_page():
    page = PageOptions(page_size="a3", footer=HeaderFooter(show_export_date=True))
    plan = _plan("pdf", page_options=page)
    data = export_pdf_bytes(plan, project_name="Relaunch", dependencies=DEPS)
    assert data.startswith(b"%PDF")
    assert b"/Count 1" in data


def test_pdf_figure_is_page_sized():
    plan = _plan("pdf", page_options=PageOptions(orientation="portrait"))
    fig = build_pdf_figure(plan, project_name="Relaunch")
    w_in, h_in = fig.get_size_inches()
    assert w_in == pytest.approx(210 / 25.4)
    assert h_in == pytest.approx(297 / 25.4)


def test_preview_is_downscaled_png():
    plan = _plan("png", OPTS.model_copy(update={"zoom_mode": "fit_to_width", "fit_to_width": 3200}))
    w, _ = _png_size(preview_png_bytes(plan, max_width=800))
    assert w <= 800


def test_preview_of_pdf_is_a_page():
    data = preview_png_bytes(_plan("pdf"), project_name="Relaunch")
    w, h = _png_size(data)
    assert w > h  # A4 landscape


def test_header_footer_parts():
    section = HeaderFooter(show_project_name=True, show_author=True, show_export_date=True, custom_text="Draft")
    parts = header_footer_parts(
        section, project_name="Relaunch", author="Sam", export_date=date(2025, 2, 3), date_format="DD/MM/YYYY"
    )
    assert parts == ("Relaunch | Sam", "Draft", "03/02/2025")


def test_filenames():
    now = datetime(2025, 2, 3, 9, 5, 7)
    assert export_filename("Website Relaunch", "png", now) == "Website-Relaunch-20250203-090507.png"
    assert export_filename(None, "pdf", now) == "gantt-chart-20250203-090507.pdf"
    assert sanitize_filename('a/b:c*?  d') == "abc-d"
    assert sanitize_filename("   ") == "untitled"
    assert len(sanitize_filename("x" * 80)) == 50
