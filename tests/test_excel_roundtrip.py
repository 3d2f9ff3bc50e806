from datetime import date
from io import BytesIO

import pandas as pd
import pytest
from openpyxl import Workbook

from chart_models import ExportOptions
from excel_io import (
    TASK_COLUMNS,
    build_dependencies,
    build_export_options,
    build_holidays,
    build_tasks,
    read_gantt_workbook,
    sample_bytes,
    tasks_to_frame,
    template_bytes,
    write_gantt_workbook_bytes,
)


def test_template_reads_as_empty_project_with_default_options():
    payload = read_gantt_workbook(template_bytes())
    tasks, issues = build_tasks(payload.tasks_df)
    assert tasks == []
    assert issues == []
    options, option_issues = build_export_options(payload.settings)
    assert option_issues == []
    assert options == ExportOptions()


def test_sample_project_loads_cleanly():
    payload = read_gantt_workbook(sample_bytes())
    tasks, issues = build_tasks(payload.tasks_df)
    assert issues == []
    assert [t.id for t in tasks] == ["P1", "T1", "T2", "M1", "P2", "T3", "T4", "M2"]
    assert {t.id for t in tasks if t.type == "milestone"} == {"M1", "M2"}
    assert tasks[1].parent == "P1"
    assert tasks[0].color == "#4299E1"

    deps, dep_issues = build_dependencies(payload.dependencies_df, [t.id for t in tasks])
    assert dep_issues == []
    assert len(deps) == 5

    assert build_holidays(payload.holidays_df) == [date(2025, 1, 20)]

    options, _ = build_export_options(payload.settings)
    assert options.selected_columns == ("color", "name", "start_date", "end_date", "progress")
    assert payload.settings["project_name"] == "Website Relaunch"


def test_write_then_read_keeps_tasks_and_settings():
    payload = read_gantt_workbook(sample_bytes())
    tasks, _ = build_tasks(payload.tasks_df)
    settings = dict(payload.settings, density="compact", include_weekends=False)

    again = read_gantt_workbook(
        write_gantt_workbook_bytes(settings, payload.tasks_df, payload.dependencies_df, payload.holidays_df)
    )
    tasks_again, issues = build_tasks(again.tasks_df)
    assert issues == []
    assert tasks_again == tasks

    options, _ = build_export_options(again.settings)
    assert options.density == "compact"
    assert options.include_weekends is False


def test_tasks_to_frame_feeds_writer():
    payload = read_gantt_workbook(sample_bytes())
    tasks, _ = build_tasks(payload.tasks_df)
    df = tasks_to_frame(tasks)
    assert list(df.columns) == TASK_COLUMNS
    again = read_gantt_workbook(write_gantt_workbook_bytes({}, df))
    assert build_tasks(again.tasks_df)[0] == tasks


def test_invalid_rows_are_reported_and_skipped():
    df = pd.DataFrame(
        [
            {"id": "A", "name": "Alpha", "start_date": date(2025, 1, 1), "end_date": date(2025, 1, 3)},
            {"id": "B", "name": "", "start_date": date(2025, 1, 1), "end_date": date(2025, 1, 3)},
            {"id": "C", "name": "Gamma", "start_date": date(2025, 1, 5), "end_date": date(2025, 1, 1)},
            {"id": "A", "name": "Again", "start_date": date(2025, 1, 1), "end_date": date(2025, 1, 2)},
            {"id": None, "name": None, "start_date": None, "end_date": None},
            {"id": "D", "name": "Delta", "start_date": date(2025, 1, 1), "progress": "lots"},
        ]
    )
    tasks, issues = build_tasks(df)
    assert [t.id for t in tasks] == ["A"]
    assert tasks[0].duration == 3
    assert any(msg.startswith("Tasks row 3") for msg in issues)
    assert any(msg.startswith("Tasks row 4") for msg in issues)
    assert any("duplicate id 'A'" in msg for msg in issues)
    assert any(msg.startswith("Tasks row 7") for msg in issues)
    assert not any(msg.startswith("Tasks row 6") for msg in issues)


def test_blank_end_date_means_single_day():
    df = pd.DataFrame([{"id": "M", "name": "Go live", "start_date": "2025-03-03", "type": "Milestone"}])
    tasks, issues = build_tasks(df)
    assert issues == []
    assert tasks[0].type == "milestone"
    assert tasks[0].end_date == date(2025, 3, 3)


def test_dependency_to_unknown_task_is_reported():
    df = pd.DataFrame([{"from_task_id": "A", "to_task_id": "Z"}, {"from_task_id": "A", "to_task_id": "A"}])
    deps, issues = build_dependencies(df, ["A", "B"])
    assert deps == []
    assert len(issues) == 2
    assert "unknown task id(s): Z" in issues[0]


def test_bad_export_settings_are_reported():
    options, issues = build_export_options({"density": "spacious", "zoom_mode": "custom"})
    assert options is None
    assert issues and issues[0].startswith("Export: density")


def test_unreadable_bytes():
    with pytest.raises(ValueError, match="Unable to read"):
        read_gantt_workbook(b"not a workbook")


def test_missing_tasks_sheet():
    wb = Workbook()
    wb.active.title = "Notes"
    bio = BytesIO()
    wb.save(bio)
    with pytest.raises(ValueError, match="Missing required sheet: Tasks"):
        read_gantt_workbook(bio.getvalue())
