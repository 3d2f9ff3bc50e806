from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.datavalidation import DataValidation
from pydantic import ValidationError

from chart_models import COLOR_NAME_TO_HEX, Dependency, ExportOptions, Task

logger = logging.getLogger(__name__)

TASK_COLUMNS = [
    "id",
    "name",
    "start_date",
    "end_date",
    "duration",
    "progress",
    "type",
    "parent",
    "color",
    "order",
]

DEPENDENCY_COLUMNS = ["from_task_id", "to_task_id"]

HOLIDAY_COLUMNS = ["date", "name"]

# Export sheet: key/value rows. Everything except project_name/author maps to ExportOptions.
EXPORT_KEYS = [
    "project_name",
    "author",
    "zoom_mode",
    "timeline_zoom",
    "fit_to_width",
    "date_range_mode",
    "custom_date_start",
    "custom_date_end",
    "selected_columns",
    "density",
    "task_label_position",
    "include_header",
    "include_today_marker",
    "include_dependencies",
    "include_grid_lines",
    "include_weekends",
    "include_holidays",
    "background",
    "date_format",
]

_PROJECT_KEYS = {"project_name", "author"}
_DATE_KEYS = {"custom_date_start", "custom_date_end"}
_BOOL_KEYS = {k for k in EXPORT_KEYS if k.startswith("include_")}

_HEADER_FILL = PatternFill(start_color="F0F0F0", end_color="F0F0F0", fill_type="solid")


@dataclass(frozen=True)
class WorkbookPayload:
    settings: Dict[str, Any]
    tasks_df: pd.DataFrame
    dependencies_df: pd.DataFrame
    holidays_df: pd.DataFrame


def _is_blank(value: Any) -> bool:
    """True if value is None/NaN/NaT/pd.NA or an empty/whitespace string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return False
    return bool(pd.isna(value))


def _coerce_date(value: Any) -> Optional[date]:
    """Convert a cell value into a Python date (or None). Handles Excel dates, datetimes, strings, and pandas timestamps."""
    if _is_blank(value):
        return None
    # pandas Timestamp is a datetime subclass
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        v = value.strip()
        for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%d/%m/%Y", "%m/%d/%y", "%d-%b-%Y", "%b %d %Y"):
            try:
                return datetime.strptime(v, fmt).date()
            except ValueError:
                continue
    return None


def _coerce_bool(v: Any) -> Optional[bool]:
    if _is_blank(v):
        return None
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in {"true", "yes", "y", "1"}:
            return True
        if s in {"false", "no", "n", "0"}:
            return False
        return None
    if isinstance(v, (int, float)):
        return bool(v)
    return None


def _coerce_int(v: Any) -> Optional[int]:
    if _is_blank(v):
        return None
    if isinstance(v, str):
        s = v.strip().rstrip("%")
        return int(float(s))
    return int(v)


def _clear_body(ws) -> None:
    # Pre-formatted template rows count towards max_row; drop them so append starts at row 2.
    if ws.max_row > 1:
        ws.delete_rows(2, ws.max_row - 1)


def _style_header(ws) -> None:
    for c in ws[1]:
        c.font = Font(bold=True)
        c.fill = _HEADER_FILL
        c.alignment = Alignment(horizontal="left")
    ws.freeze_panes = "A2"


def build_template_workbook() -> Workbook:
    """Create the blank task workbook: Tasks, Dependencies, Holidays and Export sheets with dropdowns."""
    wb = Workbook()
    wb.remove(wb.active)

    # Tasks sheet
    ws_t = wb.create_sheet("Tasks")
    ws_t.append(TASK_COLUMNS)
    _style_header(ws_t)
    col_widths = {
        "A": 12,  # id
        "B": 34,  # name
        "C": 14,  # start
        "D": 14,  # end
        "E": 10,  # duration
        "F": 10,  # progress
        "G": 12,  # type
        "H": 12,  # parent
        "I": 14,  # color
        "J": 8,  # order
    }
    for col, w in col_widths.items():
        ws_t.column_dimensions[col].width = w

    color_formula = '"' + ",".join(name.title() for name in COLOR_NAME_TO_HEX) + '"'
    dv_type = DataValidation(type="list", formula1='"task,milestone,summary"', allow_blank=True)
    dv_color = DataValidation(type="list", formula1=color_formula, allow_blank=True)
    ws_t.add_data_validation(dv_type)
    ws_t.add_data_validation(dv_color)
    dv_type.add("G2:G1000")
    dv_color.add("I2:I1000")

    for cell_range in ("C2:C1000", "D2:D1000"):
        for row in ws_t[cell_range]:
            for cell in row:
                cell.number_format = "yyyy-mm-dd"

    # Dependencies sheet
    ws_d = wb.create_sheet("Dependencies")
    ws_d.append(DEPENDENCY_COLUMNS)
    _style_header(ws_d)
    ws_d.column_dimensions["A"].width = 16
    ws_d.column_dimensions["B"].width = 16

    # Holidays sheet
    ws_h = wb.create_sheet("Holidays")
    ws_h.append(HOLIDAY_COLUMNS)
    _style_header(ws_h)
    ws_h.column_dimensions["A"].width = 14
    ws_h.column_dimensions["B"].width = 30
    for row in ws_h["A2:A500"]:
        for cell in row:
            cell.number_format = "yyyy-mm-dd"

    # Export sheet
    ws = wb.create_sheet("Export")
    ws.append(["key", "value"])
    _style_header(ws)
    defaults = ExportOptions()
    for key in EXPORT_KEYS:
        if key in _PROJECT_KEYS:
            ws.append([key, ""])
            continue
        value = getattr(defaults, key)
        if key == "selected_columns":
            value = ", ".join(value)
        ws.append([key, value if value is not None else ""])
    ws.column_dimensions["A"].width = 24
    ws.column_dimensions["B"].width = 40

    key_to_row = {ws.cell(row=r, column=1).value: r for r in range(2, ws.max_row + 1)}
    validations = {
        "zoom_mode": '"current_view,custom,fit_to_width"',
        "date_range_mode": '"all,visible,custom"',
        "density": '"compact,normal,comfortable"',
        "task_label_position": '"before,inside,after,none"',
        "background": '"white,transparent"',
        "date_format": '"YYYY-MM-DD,DD/MM/YYYY,MM/DD/YYYY"',
    }
    for key, formula in validations.items():
        dv = DataValidation(type="list", formula1=formula, allow_blank=False)
        ws.add_data_validation(dv)
        dv.add(ws.cell(row=key_to_row[key], column=2))
    dv_bool = DataValidation(type="list", formula1='"TRUE,FALSE"', allow_blank=False)
    ws.add_data_validation(dv_bool)
    for key in _BOOL_KEYS:
        dv_bool.add(ws.cell(row=key_to_row[key], column=2))
    for key in _DATE_KEYS:
        ws.cell(row=key_to_row[key], column=2).number_format = "yyyy-mm-dd"

    return wb


def template_bytes() -> bytes:
    """Return the template workbook as raw .xlsx bytes (ready for a download button)."""
    wb = build_template_workbook()
    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def _ensure_columns(df: Optional[pd.DataFrame], cols: Sequence[str]) -> pd.DataFrame:
    out = df.copy() if df is not None else pd.DataFrame(columns=list(cols))
    for c in cols:
        if c not in out.columns:
            out[c] = pd.NA
    return out[list(cols)]


def write_gantt_workbook_bytes(
    settings: Dict[str, Any],
    tasks_df: pd.DataFrame,
    dependencies_df: Optional[pd.DataFrame] = None,
    holidays_df: Optional[pd.DataFrame] = None,
) -> bytes:
    """Serialize the current (possibly edited) data back into an .xlsx workbook.

    Tolerates messy editor input (blank strings, NaNs, mixed types) so edits round-trip.
    """
    wb = build_template_workbook()

    ws = wb["Export"]
    key_to_row = {ws.cell(row=r, column=1).value: r for r in range(2, ws.max_row + 1)}
    for k in EXPORT_KEYS:
        if k not in settings:
            continue
        r = key_to_row[k]
        v = settings.get(k)
        if isinstance(v, (list, tuple)):
            v = ", ".join(str(x) for x in v)
        if _is_blank(v):
            ws.cell(row=r, column=2, value=None)
            continue
        if k in _DATE_KEYS:
            ws.cell(row=r, column=2, value=_coerce_date(v))
            ws.cell(row=r, column=2).number_format = "yyyy-mm-dd"
            continue
        ws.cell(row=r, column=2, value=v)

    ws_t = wb["Tasks"]
    _clear_body(ws_t)
    for _, row in _ensure_columns(tasks_df, TASK_COLUMNS).iterrows():
        if all(_is_blank(row.get(c)) for c in ("id", "name", "start_date")):
            continue
        out_row = []
        for c in TASK_COLUMNS:
            v = row.get(c)
            if _is_blank(v):
                out_row.append(None)
            elif c in {"start_date", "end_date"}:
                out_row.append(_coerce_date(v))
            else:
                out_row.append(str(v).strip() if isinstance(v, str) else v)
        ws_t.append(out_row)
    for r in range(2, ws_t.max_row + 1):
        ws_t.cell(row=r, column=3).number_format = "yyyy-mm-dd"
        ws_t.cell(row=r, column=4).number_format = "yyyy-mm-dd"

    ws_d = wb["Dependencies"]
    for _, row in _ensure_columns(dependencies_df, DEPENDENCY_COLUMNS).iterrows():
        if any(_is_blank(row.get(c)) for c in DEPENDENCY_COLUMNS):
            continue
        ws_d.append([str(row.get(c)).strip() for c in DEPENDENCY_COLUMNS])

    ws_h = wb["Holidays"]
    _clear_body(ws_h)
    for _, row in _ensure_columns(holidays_df, HOLIDAY_COLUMNS).iterrows():
        d = _coerce_date(row.get("date"))
        if d is None:
            continue
        name = row.get("name")
        ws_h.append([d, None if _is_blank(name) else str(name).strip()])
        ws_h.cell(row=ws_h.max_row, column=1).number_format = "yyyy-mm-dd"

    bio = BytesIO()
    wb.save(bio)
    return bio.getvalue()


def read_gantt_workbook(excel_bytes: bytes) -> WorkbookPayload:
    """
    Reads a task workbook.

    Tasks is required; Dependencies, Holidays and Export are optional.
    Returns raw settings plus DataFrames; validation happens in the build_* helpers
    so the UI can show friendly issues.
    """
    try:
        wb = load_workbook(BytesIO(excel_bytes), data_only=True)
    except Exception as e:
        raise ValueError(f"Unable to read .xlsx file. Make sure it's an Excel workbook (.xlsx). Details: {e}") from e

    if "Tasks" not in wb.sheetnames:
        raise ValueError("Missing required sheet: Tasks. Expected: Tasks (and optionally Dependencies, Holidays, Export).")

    settings: Dict[str, Any] = {}
    if "Export" in wb.sheetnames:
        for row in wb["Export"].iter_rows(min_row=2, values_only=True):
            if not row or row[0] is None:
                continue
            key_s = str(row[0]).strip()
            if key_s:
                settings[key_s] = row[1] if len(row) > 1 else None

    def _sheet(name: str, cols: Sequence[str]) -> pd.DataFrame:
        if name not in wb.sheetnames:
            return _ensure_columns(None, cols)
        try:
            df = pd.read_excel(BytesIO(excel_bytes), sheet_name=name, engine="openpyxl")
        except Exception as e:
            raise ValueError(f"Unable to parse the {name} sheet. Details: {e}") from e
        return _ensure_columns(df, cols)

    tasks_df = _sheet("Tasks", TASK_COLUMNS)
    dependencies_df = _sheet("Dependencies", DEPENDENCY_COLUMNS)
    holidays_df = _sheet("Holidays", HOLIDAY_COLUMNS)

    for dc in ("start_date", "end_date"):
        tasks_df[dc] = tasks_df[dc].apply(_coerce_date)
    holidays_df["date"] = holidays_df["date"].apply(_coerce_date)

    for k in _DATE_KEYS:
        if k in settings:
            settings[k] = _coerce_date(settings.get(k))
    for k in _BOOL_KEYS:
        if k in settings:
            settings[k] = _coerce_bool(settings.get(k))
    for k, v in list(settings.items()):
        if isinstance(v, str):
            settings[k] = v.strip()

    return WorkbookPayload(settings=settings, tasks_df=tasks_df, dependencies_df=dependencies_df, holidays_df=holidays_df)


def _errors_to_messages(prefix: str, ve: ValidationError) -> List[str]:
    out: List[str] = []
    for err in ve.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "Invalid value")
        out.append(f"{prefix}: {loc}: {msg}" if loc else f"{prefix}: {msg}")
    return out


def build_tasks(tasks_df: pd.DataFrame) -> Tuple[List[Task], List[str]]:
    """Validate task rows. Returns (tasks, issues); invalid rows are skipped and reported."""
    tasks: List[Task] = []
    issues: List[str] = []
    seen: set[str] = set()

    for idx, row in _ensure_columns(tasks_df, TASK_COLUMNS).iterrows():
        if all(_is_blank(row.get(c)) for c in ("id", "name", "start_date")):
            continue
        label = f"Tasks row {idx + 2}"
        rec: Dict[str, Any] = {}
        try:
            for c in TASK_COLUMNS:
                v = row.get(c)
                if _is_blank(v):
                    continue
                if c in {"start_date", "end_date"}:
                    rec[c] = _coerce_date(v)
                elif c in {"duration", "progress", "order"}:
                    rec[c] = _coerce_int(v)
                else:
                    rec[c] = str(v).strip()
        except ValueError as e:
            issues.append(f"{label}: {e}")
            logger.warning("Skipping %s: %s", label, e)
            continue

        if "type" in rec:
            rec["type"] = rec["type"].lower()
        if rec.get("start_date") is not None and rec.get("end_date") is None:
            # Milestones and one-day tasks may leave the end date blank.
            rec["end_date"] = rec["start_date"]
        if "duration" not in rec and rec.get("start_date") and rec.get("end_date") and rec.get("type") != "milestone":
            rec["duration"] = max((rec["end_date"] - rec["start_date"]).days + 1, 0)

        try:
            task = Task(**rec)
        except ValidationError as ve:
            msgs = _errors_to_messages(label, ve)
            issues.extend(msgs)
            logger.warning("Skipping %s: %s", label, "; ".join(msgs))
            continue

        if task.id in seen:
            issues.append(f"{label}: duplicate id '{task.id}' skipped.")
            logger.warning("Skipping %s: duplicate id %s", label, task.id)
            continue
        seen.add(task.id)
        tasks.append(task)

    return tasks, issues


def build_dependencies(dependencies_df: pd.DataFrame, task_ids: Sequence[str]) -> Tuple[List[Dependency], List[str]]:
    known = set(task_ids)
    deps: List[Dependency] = []
    issues: List[str] = []
    for idx, row in _ensure_columns(dependencies_df, DEPENDENCY_COLUMNS).iterrows():
        if all(_is_blank(row.get(c)) for c in DEPENDENCY_COLUMNS):
            continue
        label = f"Dependencies row {idx + 2}"
        try:
            dep = Dependency(
                from_task_id=str(row.get("from_task_id")).strip(),
                to_task_id=str(row.get("to_task_id")).strip(),
            )
        except ValidationError as ve:
            issues.extend(_errors_to_messages(label, ve))
            continue
        missing = [t for t in (dep.from_task_id, dep.to_task_id) if t not in known]
        if missing:
            issues.append(f"{label}: unknown task id(s): {', '.join(missing)}")
            continue
        deps.append(dep)
    return deps, issues


def build_holidays(holidays_df: pd.DataFrame) -> List[date]:
    out = {d for d in (_coerce_date(v) for v in _ensure_columns(holidays_df, HOLIDAY_COLUMNS)["date"]) if d is not None}
    return sorted(out)


def build_export_options(settings: Dict[str, Any]) -> Tuple[Optional[ExportOptions], List[str]]:
    """Export sheet -> ExportOptions. Blank values keep their defaults."""
    rec: Dict[str, Any] = {}
    for k in EXPORT_KEYS:
        if k in _PROJECT_KEYS or k not in settings:
            continue
        v = settings[k]
        if _is_blank(v):
            continue
        if k == "selected_columns":
            v = tuple(s.strip() for s in str(v).split(",") if s.strip()) if isinstance(v, str) else tuple(v)
        rec[k] = v

    try:
        return ExportOptions(**rec), []
    except ValidationError as ve:
        return None, _errors_to_messages("Export", ve)


def tasks_to_frame(tasks: Sequence[Task]) -> pd.DataFrame:
    rows = [{c: getattr(t, c) for c in TASK_COLUMNS} for t in tasks]
    return pd.DataFrame(rows, columns=TASK_COLUMNS)


def build_sample_workbook() -> Workbook:
    """Writes a filled-in sample project (hierarchy, milestones, dependencies)."""
    wb = build_template_workbook()
    start = date(2025, 1, 6)

    def d(offset: int) -> date:
        return start + timedelta(days=offset)

    tasks = [
        ("P1", "Discovery", d(0), d(18), 19, 100, "summary", None, "Blue", 0),
        ("T1", "Stakeholder interviews", d(0), d(9), 10, 100, "task", "P1", "Blue", 0),
        ("T2", "Requirements draft", d(7), d(18), 12, 80, "task", "P1", "Teal", 1),
        ("M1", "Scope sign-off", d(19), d(19), 0, 0, "milestone", None, "Red", 1),
        ("P2", "Delivery", d(20), d(62), 43, 30, "summary", None, "Purple", 2),
        ("T3", "Build", d(20), d(48), 29, 45, "task", "P2", "Purple", 0),
        ("T4", "Test & fix", d(42), d(62), 21, 0, "task", "P2", "Orange", 1),
        ("M2", "Go live", d(63), d(63), 0, 0, "milestone", None, "Green", 3),
    ]
    ws_t = wb["Tasks"]
    _clear_body(ws_t)
    for row in tasks:
        ws_t.append(list(row))

    ws_d = wb["Dependencies"]
    for a, b in (("T1", "T2"), ("P1", "M1"), ("M1", "T3"), ("T3", "T4"), ("T4", "M2")):
        ws_d.append([a, b])

    ws_h = wb["Holidays"]
    _clear_body(ws_h)
    ws_h.append([date(2025, 1, 20), "Public holiday"])

    ws = wb["Export"]
    key_to_row = {ws.cell(row=r, column=1).value: r for r in range(2, ws.max_row + 1)}
    ws.cell(row=key_to_row["project_name"], column=2, value="Website Relaunch")
    ws.cell(row=key_to_row["selected_columns"], column=2, value="color, name, start_date, end_date, progress")

    return wb


def sample_bytes() -> bytes:
    bio = BytesIO()
    build_sample_workbook().save(bio)
    return bio.getvalue()
