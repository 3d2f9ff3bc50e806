from __future__ import annotations

import random
import sys
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import List, Tuple

import pandas as pd

# Allow running this file directly via: python scripts/smoke_test.py
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from chart_models import Dependency, ExportOptions, PageOptions, Task
from excel_io import build_dependencies, build_tasks, read_gantt_workbook, tasks_to_frame, write_gantt_workbook_bytes
from export import export_pdf_bytes, export_png_bytes, export_svg_bytes, plan_export, preview_png_bytes


@dataclass
class SmokeResult:
    iteration: int
    tasks: int
    width: int
    height: int
    png_bytes: int
    svg_bytes: int
    pdf_bytes: int


def build_random_case(iteration: int) -> Tuple[List[Task], List[Dependency], ExportOptions]:
    random.seed(2000 + iteration)
    start = date(2026, 1, 5)

    tasks: List[Task] = []
    deps: List[Dependency] = []
    for p in range(1, 4):
        phase_id = f"P{p}"
        phase_start = start + timedelta(days=random.randint(0, 90))
        children: List[Task] = []
        for c in range(random.randint(2, 6)):
            s = phase_start + timedelta(days=random.randint(0, 40))
            e = s + timedelta(days=random.randint(0, 25))
            children.append(
                Task(
                    id=f"{phase_id}.{c + 1}",
                    name=f"Phase {p} work item {c + 1}",
                    start_date=s,
                    end_date=e,
                    duration=(e - s).days + 1,
                    progress=random.choice([0, 25, 50, 100]),
                    parent=phase_id,
                    color=random.choice(["Blue", "Teal", "Orange", "Purple"]),
                    order=c,
                )
            )
        p_start = min(t.start_date for t in children)
        p_end = max(t.end_date for t in children)
        tasks.append(
            Task(
                id=phase_id,
                name=f"Phase {p}",
                start_date=p_start,
                end_date=p_end,
                duration=(p_end - p_start).days + 1,
                type="summary",
                order=p,
            )
        )
        tasks.extend(children)
        tasks.append(Task(id=f"M{p}", name=f"Gate {p}", start_date=p_end, end_date=p_end, type="milestone", order=p))
        deps.append(Dependency(from_task_id=children[-1].id, to_task_id=f"M{p}"))

    options = ExportOptions(
        zoom_mode=random.choice(["current_view", "custom", "fit_to_width"]),
        timeline_zoom=random.choice([0.25, 0.5, 1.0]),
        selected_columns=("color", "name", "start_date", "end_date", "progress"),
        density=random.choice(["compact", "normal", "comfortable"]),
        task_label_position=random.choice(["before", "inside", "after", "none"]),
    )
    return tasks, deps, options


def main() -> None:
    results: List[SmokeResult] = []

    for i in range(1, 6):
        tasks, deps, options = build_random_case(i)

        # Round-trip through the workbook writer/reader to simulate the app flow.
        deps_df = pd.DataFrame([d.model_dump() for d in deps])
        xlsx = write_gantt_workbook_bytes({"project_name": f"Smoke {i}"}, tasks_to_frame(tasks), deps_df)
        payload = read_gantt_workbook(xlsx)
        tasks2, issues = build_tasks(payload.tasks_df)
        assert not issues, issues
        assert len(tasks2) == len(tasks)
        deps2, dep_issues = build_dependencies(payload.dependencies_df, [t.id for t in tasks2])
        assert not dep_issues
        assert deps2 == deps

        png_plan = plan_export("png", tasks2, options, current_view_zoom=0.75)
        svg_plan = plan_export("svg", tasks2, options, current_view_zoom=0.75)
        pdf_plan = plan_export("pdf", tasks2, options, page_options=PageOptions(page_size="a3"), current_view_zoom=0.75)
        assert png_plan.geometry == svg_plan.geometry

        preview = preview_png_bytes(png_plan, dependencies=deps)
        png = export_png_bytes(png_plan, scale=2, dependencies=deps)
        svg = export_svg_bytes(svg_plan, dependencies=deps)
        pdf = export_pdf_bytes(pdf_plan, project_name=f"Smoke {i}", dependencies=deps)

        assert preview[:8] == b"\x89PNG\r\n\x1a\n"
        assert png[:8] == b"\x89PNG\r\n\x1a\n"
        assert b"<svg" in svg[:500]
        assert pdf[:4] == b"%PDF"

        results.append(
            SmokeResult(
                iteration=i,
                tasks=len(tasks2),
                width=png_plan.geometry.width,
                height=png_plan.geometry.height,
                png_bytes=len(png),
                svg_bytes=len(svg),
                pdf_bytes=len(pdf),
            )
        )

    print("Smoke test results")
    for r in results:
        print(
            f"- Iter {r.iteration}: tasks={r.tasks}, size={r.width}x{r.height}, "
            f"png={r.png_bytes:,} B, svg={r.svg_bytes:,} B, pdf={r.pdf_bytes:,} B"
        )

    print("OK: every iteration exported preview PNG, 2x PNG, SVG and PDF successfully.")


if __name__ == "__main__":
    main()
