from __future__ import annotations

import hashlib
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from calculations import clamp_zoom
from chart_models import (
    DEFAULT_EXPORT_OPTIONS,
    EXPORT_ZOOM_MAX,
    EXPORT_ZOOM_MIN,
    EXPORT_ZOOM_PRESETS,
    CustomPageSize,
    Dependency,
    DocumentMetadata,
    ExportOptions,
    HeaderFooter,
    Margins,
    PageOptions,
    SvgOptions,
    Task,
)
from columns import EXPORT_COLUMN_MAP, EXPORT_COLUMNS, fit_column_widths
from date_utils import DateRange, format_date_range
from excel_io import (
    WorkbookPayload,
    build_dependencies,
    build_export_options,
    build_holidays,
    build_tasks,
    read_gantt_workbook,
    sample_bytes,
    template_bytes,
    write_gantt_workbook_bytes,
)
from export import (
    ExportPlan,
    export_filename,
    export_pdf_bytes,
    export_png_bytes,
    export_svg_bytes,
    plan_export,
    preview_png_bytes,
)
from hierarchy import project_date_range
from page_layout import MARGIN_PRESETS, PAGE_SIZES_MM, QUICK_PRESETS, format_page_size_name

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

APP_TITLE = "Gantt Export"
APP_SUBTITLE = "Task workbook → preview → PNG, SVG or PDF with identical geometry"

FORMAT_LABELS = {"png": "PNG image", "svg": "SVG vector", "pdf": "PDF document"}
MIME_TYPES = {"png": "image/png", "svg": "image/svg+xml", "pdf": "application/pdf"}

ZOOM_MODE_LABELS = {"current_view": "Current view", "custom": "Custom zoom", "fit_to_width": "Fit to width"}
DATE_RANGE_LABELS = {"all": "Entire project", "visible": "Visible range", "custom": "Custom dates"}


# ----------------------------
# Caching helpers
# ----------------------------


@st.cache_data(show_spinner=False)
def _cached_read_workbook(excel_bytes: bytes) -> WorkbookPayload:
    """Cache wrapper: parse uploaded workbook bytes."""
    return read_gantt_workbook(excel_bytes)


@st.cache_data(show_spinner=False)
def _cached_template_bytes() -> bytes:
    return template_bytes()


@st.cache_data(show_spinner=False)
def _cached_sample_bytes() -> bytes:
    return sample_bytes()


@st.cache_data(show_spinner=False)
def _cached_column_widths(
    selected: Tuple[str, ...],
    tasks_dump: List[Dict[str, Any]],
    density: str,
    date_format: str,
) -> Dict[str, int]:
    """Cache wrapper: content-fit widths for the selected table columns."""
    tasks = [Task(**t) for t in tasks_dump]
    return fit_column_widths(selected, tasks, density, date_format=date_format)


def _plan(request: Dict[str, Any]) -> ExportPlan:
    tasks = [Task(**t) for t in request["tasks"]]
    visible = request.get("visible_range")
    return plan_export(
        request["fmt"],
        tasks,
        ExportOptions(**request["options"]),
        page_options=PageOptions(**request["page"]) if request.get("page") else None,
        column_widths=request.get("column_widths"),
        current_view_zoom=request["current_view_zoom"],
        visible_range=DateRange(start=visible[0], end=visible[1]) if visible else None,
        today=request["today"],
    )


@st.cache_data(show_spinner=False)
def _cached_preview(request: Dict[str, Any]) -> Tuple[bytes, Dict[str, Any], List[str]]:
    """Cache wrapper: plan + preview PNG + geometry for the current options."""
    plan = _plan(request)
    deps = [Dependency(**d) for d in request["dependencies"]]
    image = preview_png_bytes(
        plan,
        project_name=request.get("project_name"),
        dependencies=deps,
        holidays=request["holidays"],
    )
    return image, plan.geometry.model_dump(), plan.warnings


@st.cache_data(show_spinner=False)
def _cached_export(request: Dict[str, Any], extra: Dict[str, Any]) -> bytes:
    """Cache wrapper: final export bytes, planned exactly like the preview."""
    plan = _plan(request)
    deps = [Dependency(**d) for d in request["dependencies"]]
    holidays = request["holidays"]
    if plan.fmt == "png":
        return export_png_bytes(plan, scale=int(extra.get("scale", 1)), dependencies=deps, holidays=holidays)
    if plan.fmt == "svg":
        return export_svg_bytes(
            plan,
            svg_options=SvgOptions(**extra.get("svg", {})),
            dependencies=deps,
            holidays=holidays,
        )
    return export_pdf_bytes(plan, project_name=request.get("project_name"), dependencies=deps, holidays=holidays)


# ----------------------------
# Data loading
# ----------------------------


def _export_key(request: Dict[str, Any], extra: Dict[str, Any]) -> str:
    """Fingerprint of everything that shapes an export."""
    dump = json.dumps({"request": request, "extra": extra}, sort_keys=True, default=str)
    return hashlib.sha256(dump.encode("utf-8")).hexdigest()


def _load_payload(excel_bytes: bytes, *, source_name: str) -> None:
    payload = _cached_read_workbook(excel_bytes)
    st.session_state["payload"] = payload
    st.session_state["_workbook_name"] = source_name
    st.session_state["_workbook_hash"] = hashlib.sha256(excel_bytes).hexdigest()
    logger.info("Loaded workbook %s", source_name)


def _ensure_payload() -> WorkbookPayload:
    if "payload" not in st.session_state:
        _load_payload(_cached_sample_bytes(), source_name="Sample project")
    return st.session_state["payload"]


def _index(options: List[str], value: Any) -> int:
    return options.index(value) if value in options else 0


# ----------------------------
# Sidebar
# ----------------------------


def _sidebar_export_options(base: ExportOptions, project: Optional[DateRange]) -> Tuple[ExportOptions, Dict[str, Any]]:
    """Builds ExportOptions from the sidebar; returns (options, view) where view has zoom + visible range."""
    view: Dict[str, Any] = {}
    update: Dict[str, Any] = {}

    st.subheader("Timeline")
    modes = list(ZOOM_MODE_LABELS)
    update["zoom_mode"] = st.selectbox(
        "Zoom", modes, index=_index(modes, base.zoom_mode), format_func=ZOOM_MODE_LABELS.get, key="zoom_mode"
    )
    if update["zoom_mode"] == "custom":
        preset_names = ["Manual"] + list(EXPORT_ZOOM_PRESETS)
        preset = st.selectbox("Zoom preset", preset_names, index=0, format_func=str.title)
        start_zoom = base.timeline_zoom if preset == "Manual" else EXPORT_ZOOM_PRESETS[preset]
        pct = st.slider(
            "Zoom (%)",
            min_value=int(EXPORT_ZOOM_MIN * 100),
            max_value=int(EXPORT_ZOOM_MAX * 100),
            value=int(round(clamp_zoom(start_zoom) * 100)),
            step=5,
        )
        update["timeline_zoom"] = clamp_zoom(pct / 100.0)
    elif update["zoom_mode"] == "fit_to_width":
        preset_labels = ["Manual"] + [f"{p.label} ({p.description})" for p in QUICK_PRESETS]
        choice = st.selectbox("Width preset", preset_labels, index=0)
        default_width = base.fit_to_width
        if choice != "Manual":
            default_width = QUICK_PRESETS[preset_labels.index(choice) - 1].target_width
        update["fit_to_width"] = int(st.number_input("Total width (px)", min_value=200, max_value=20000, value=int(default_width), step=10))

    with st.expander("Current view", expanded=False):
        view["current_view_zoom"] = clamp_zoom(st.slider("View zoom (%)", 5, 300, 100, step=5) / 100.0)
        vis_default = (project.start, project.end) if project else (date.today(), date.today())
        vis = st.date_input("Visible dates", value=vis_default)
        if isinstance(vis, (list, tuple)) and len(vis) == 2:
            view["visible_range"] = (vis[0], vis[1])

    ranges = list(DATE_RANGE_LABELS)
    update["date_range_mode"] = st.selectbox(
        "Date range", ranges, index=_index(ranges, base.date_range_mode), format_func=DATE_RANGE_LABELS.get
    )
    if update["date_range_mode"] == "custom":
        c1, c2 = st.columns(2)
        with c1:
            update["custom_date_start"] = st.date_input("From", value=base.custom_date_start or (project.start if project else date.today()))
        with c2:
            update["custom_date_end"] = st.date_input("To", value=base.custom_date_end or (project.end if project else date.today()))

    st.subheader("Layout")
    keys = [c.key for c in EXPORT_COLUMNS]
    update["selected_columns"] = tuple(
        st.multiselect(
            "Table columns",
            keys,
            default=list(base.selected_columns),
            format_func=lambda k: EXPORT_COLUMN_MAP[k].label or "Color",
        )
    )
    densities = ["compact", "normal", "comfortable"]
    update["density"] = st.selectbox("Density", densities, index=_index(densities, base.density))
    positions = ["before", "inside", "after", "none"]
    update["task_label_position"] = st.selectbox("Task labels", positions, index=_index(positions, base.task_label_position))
    formats = ["YYYY-MM-DD", "DD/MM/YYYY", "MM/DD/YYYY"]
    update["date_format"] = st.selectbox("Date format", formats, index=_index(formats, base.date_format))

    st.subheader("Layers")
    for key, label in (
        ("include_header", "Timeline header"),
        ("include_grid_lines", "Grid lines"),
        ("include_weekends", "Weekends"),
        ("include_holidays", "Holidays"),
        ("include_dependencies", "Dependencies"),
        ("include_today_marker", "Today marker"),
    ):
        update[key] = st.checkbox(label, value=getattr(base, key))
    update["background"] = "white" if st.checkbox("White background", value=base.background == "white") else "transparent"

    return base.model_copy(update=update), view


def _sidebar_page_options(project_name: Optional[str], author: Optional[str]) -> PageOptions:
    st.subheader("Page")
    sizes = list(PAGE_SIZES_MM) + ["custom"]
    page_size = st.selectbox("Page size", sizes, index=0, format_func=format_page_size_name)
    custom_size = CustomPageSize(width=500, height=300)
    if page_size == "custom":
        c1, c2 = st.columns(2)
        with c1:
            w = st.number_input("Width (mm)", min_value=50.0, max_value=5000.0, value=500.0)
        with c2:
            h = st.number_input("Height (mm)", min_value=50.0, max_value=5000.0, value=300.0)
        custom_size = CustomPageSize(width=w, height=h)
    orientation = st.radio("Orientation", ["landscape", "portrait"], horizontal=True)
    margin_preset = st.selectbox("Margins", list(MARGIN_PRESETS), index=0)
    custom_margins: Optional[Margins] = None
    if margin_preset == "custom":
        defaults = MARGIN_PRESETS["custom"]
        c1, c2 = st.columns(2)
        with c1:
            top = st.number_input("Top (mm)", min_value=0.0, value=float(defaults.top))
            left = st.number_input("Left (mm)", min_value=0.0, value=float(defaults.left))
        with c2:
            bottom = st.number_input("Bottom (mm)", min_value=0.0, value=float(defaults.bottom))
            right = st.number_input("Right (mm)", min_value=0.0, value=float(defaults.right))
        custom_margins = Margins(top=top, bottom=bottom, left=left, right=right)

    with st.expander("Header & footer", expanded=False):
        header = HeaderFooter(
            show_project_name=st.checkbox("Header: project name", value=True),
            show_author=st.checkbox("Header: author", value=False),
            show_export_date=st.checkbox("Header: export date", value=False),
            custom_text=st.text_input("Header text", value=""),
        )
        footer = HeaderFooter(
            show_project_name=st.checkbox("Footer: project name", value=False),
            show_author=st.checkbox("Footer: author", value=False),
            show_export_date=st.checkbox("Footer: export date", value=False),
            custom_text=st.text_input("Footer text", value=""),
        )
    with st.expander("Document properties", expanded=False):
        metadata = DocumentMetadata(
            title=st.text_input("Title", value=project_name or "") or None,
            author=st.text_input("Author", value=author or "") or None,
            subject=st.text_input("Subject", value="") or None,
        )

    return PageOptions(
        page_size=page_size,
        custom_page_size=custom_size,
        orientation=orientation,
        margin_preset=margin_preset,
        custom_margins=custom_margins,
        header=header,
        footer=footer,
        metadata=metadata,
    )


# ----------------------------
# Main
# ----------------------------


def main() -> None:
    st.set_page_config(page_title=APP_TITLE, layout="wide")
    st.title(APP_TITLE)
    st.caption(APP_SUBTITLE)

    tabs = st.tabs(["1 Data", "2 Export"])

    with tabs[0]:
        c1, c2 = st.columns(2)
        with c1:
            st.download_button(
                "Download blank template",
                data=_cached_template_bytes(),
                file_name="Gantt_Input_TEMPLATE.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True,
            )
        with c2:
            if st.button("Load sample project", use_container_width=True):
                _load_payload(_cached_sample_bytes(), source_name="Sample project")

        uploaded = st.file_uploader("Upload a task workbook (.xlsx)", type=["xlsx"])
        if uploaded is not None:
            data = uploaded.getvalue()
            if hashlib.sha256(data).hexdigest() != st.session_state.get("_workbook_hash"):
                try:
                    _load_payload(data, source_name=uploaded.name)
                except ValueError as e:
                    st.error(str(e))

    payload = _ensure_payload()
    tasks, task_issues = build_tasks(payload.tasks_df)
    deps, dep_issues = build_dependencies(payload.dependencies_df, [t.id for t in tasks])
    holidays = build_holidays(payload.holidays_df)
    wb_options, option_issues = build_export_options(payload.settings)
    issues = task_issues + dep_issues + option_issues
    project_name = payload.settings.get("project_name") or None
    author = payload.settings.get("author") or None

    with tabs[0]:
        st.caption(f"Workbook: {st.session_state.get('_workbook_name', '')}")
        m1, m2, m3 = st.columns(3)
        m1.metric("Tasks", len(tasks))
        m2.metric("Dependencies", len(deps))
        m3.metric("Holidays", len(holidays))
        if issues:
            with st.expander(f"Issues ({len(issues)})", expanded=True):
                for msg in issues:
                    st.write(f"- {msg}")
        st.dataframe(payload.tasks_df, use_container_width=True, hide_index=True)
        st.download_button(
            "Download workbook",
            data=write_gantt_workbook_bytes(payload.settings, payload.tasks_df, payload.dependencies_df, payload.holidays_df),
            file_name="Gantt_Edited.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )

    project = project_date_range(tasks)
    with st.sidebar:
        st.header("Export")
        fmt = st.radio("Format", list(FORMAT_LABELS), format_func=FORMAT_LABELS.get, key="export_format")
        options, view = _sidebar_export_options(wb_options or DEFAULT_EXPORT_OPTIONS, project)
        page_options = _sidebar_page_options(project_name, author) if fmt == "pdf" else None

        extra: Dict[str, Any] = {}
        if fmt == "png":
            extra["scale"] = st.selectbox("Scale", [1, 2, 3, 4], index=1, format_func=lambda s: f"{s}x")
        elif fmt == "svg":
            extra["svg"] = {
                "text_mode": st.radio("Text", ["text", "paths"], horizontal=True),
                "include_background": st.checkbox("Embed background", value=False),
            }

    tasks_dump = [t.model_dump() for t in tasks]
    column_widths = _cached_column_widths(options.selected_columns, tasks_dump, options.density, options.date_format)
    request: Dict[str, Any] = {
        "fmt": fmt,
        "tasks": tasks_dump,
        "dependencies": [d.model_dump() for d in deps],
        "holidays": holidays,
        "options": options.model_dump(),
        "page": page_options.model_dump() if page_options else None,
        "column_widths": column_widths,
        "current_view_zoom": view.get("current_view_zoom", 1.0),
        "visible_range": view.get("visible_range"),
        "today": date.today(),
        "project_name": project_name,
    }

    with tabs[1]:
        if not tasks:
            st.info("No valid tasks yet. Upload a workbook or load the sample project.")
            st.stop()

        try:
            preview, geometry, warnings = _cached_preview(request)
        except ValueError as e:
            st.error(f"Preview failed: {e}")
            st.stop()

        g1, g2, g3 = st.columns(3)
        g1.metric("Width", f"{geometry['width']:,} px")
        g2.metric("Height", f"{geometry['height']:,} px")
        g3.metric("Zoom", f"{geometry['effective_zoom']:.0%}")
        if project:
            st.caption(f"Project: {format_date_range(project, options.date_format)}")
        for w in warnings:
            st.warning(w)

        st.image(preview, caption="Preview", use_container_width=True)

        export_key = _export_key(request, extra)
        last = st.session_state.get("last_export")
        if last is not None and last[0] != export_key:
            # options changed since the last generate
            st.session_state.pop("last_export", None)
            last = None

        if st.button(f"Generate {fmt.upper()}", use_container_width=True):
            try:
                last = (export_key, _cached_export(request, extra))
                st.session_state["last_export"] = last
            except ValueError as e:
                st.error(f"{fmt.upper()} export failed: {e}")

        ready = last is not None
        st.download_button(
            f"Download {fmt.upper()}",
            data=last[1] if ready else b"",
            file_name=export_filename(project_name, fmt),
            mime=MIME_TYPES[fmt],
            use_container_width=True,
            disabled=not ready,
        )


if __name__ == "__main__":
    main()
