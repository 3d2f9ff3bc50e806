from datetime import date

from chart_models import Task
from columns import (
    MAX_COLUMN_WIDTH,
    MIN_COLUMN_WIDTH,
    column_display_value,
    estimate_column_width,
    estimate_table_width,
    fit_column_widths,
    resolve_column_widths,
)


def _task(**kw):
    base = dict(id="T1", name="Task", start_date=date(2025, 1, 6), end_date=date(2025, 1, 10), duration=5)
    base.update(kw)
    return Task(**base)


def test_table_width_empty_selection_is_timeline_only():
    assert estimate_table_width([], None, "normal") == 0
    assert estimate_table_width((), {"name": 400}, "comfortable") == 0


def test_table_width_uses_overrides_then_density_defaults():
    assert estimate_table_width(["name", "start_date"], None, "normal") == 180 + 118
    assert estimate_table_width(["name", "start_date"], {"name": 250}, "normal") == 250 + 118


def test_resolved_widths_keep_selection_order():
    widths = resolve_column_widths(["progress", "color", "name"], None, "compact")
    assert list(widths) == ["progress", "color", "name"]
    assert widths == {"progress": 56, "color": 28, "name": 160}


def test_color_column_is_fixed_width(measure):
    tasks = [_task(name="x" * 200)]
    assert estimate_column_width("color", tasks, "compact", measure=measure) == 28
    assert estimate_column_width("color", tasks, "comfortable", measure=measure) == 32


def test_name_column_fits_longest_name(measure):
    tasks = [_task(name="A" * 40)]
    # 40 chars * 16px * 0.5 = 320, plus expand button 16 + gap 8 + icon 18, plus one-sided padding 12.
    assert estimate_column_width("name", tasks, "comfortable", measure=measure) == 374


def test_name_column_accounts_for_indent(measure):
    parent = _task(id="P", name="Phase", type="summary")
    child = _task(id="C", name="A" * 40, parent="P")
    flat = estimate_column_width("name", [_task(name="A" * 40)], "comfortable", measure=measure)
    nested = estimate_column_width("name", [parent, child], "comfortable", measure=measure)
    assert nested == flat + 20


def test_width_is_clamped(measure):
    assert estimate_column_width("name", [_task(name="A" * 200)], "normal", measure=measure) == MAX_COLUMN_WIDTH
    assert estimate_column_width("progress", [_task(progress=5)], "normal", measure=measure) == MIN_COLUMN_WIDTH


def test_header_label_counts_when_cells_are_narrow(measure):
    # "Duration" (8 chars) is wider than "5".
    width = estimate_column_width("duration", [_task()], "comfortable", measure=measure)
    assert width == 64 + 24


def test_display_values_by_task_type():
    ms = _task(type="milestone", duration=0)
    summary = _task(type="summary", duration=12)
    assert column_display_value(ms, "end_date") == ""
    assert column_display_value(ms, "duration") == ""
    assert column_display_value(summary, "duration") == "12 days"
    assert column_display_value(_task(), "duration") == "5"
    assert column_display_value(_task(progress=40), "progress") == "40%"
    assert column_display_value(_task(), "start_date", "DD/MM/YYYY") == "06/01/2025"


def test_fit_widths_prefers_overrides(measure):
    tasks = [_task(name="A" * 40)]
    widths = fit_column_widths(["color", "name"], tasks, "comfortable", {"name": 222}, measure=measure)
    assert widths == {"color": 32, "name": 222}
