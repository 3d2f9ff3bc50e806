from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import AbstractSet, Dict, List, Optional, Tuple

from chart_models import Task
from date_utils import DateRange


@dataclass(frozen=True)
class FlattenedTask:
    task: Task
    level: int
    has_children: bool


def flatten_tasks(tasks: Iterable[Task], collapsed_ids: AbstractSet[str] = frozenset()) -> List[FlattenedTask]:
    """
    Depth-first display order of the task tree.

    Rules:
    - Siblings are ordered by (order, input position) so output is stable.
    - A task whose parent is missing from the list is treated as a root.
    - Children of a collapsed task are skipped. Exports pass no collapsed ids,
      so every task is shown.
    """
    task_list = list(tasks)
    ids = {t.id for t in task_list}

    children: Dict[Optional[str], List[Tuple[int, Task]]] = {}
    has_children: set[str] = set()
    for idx, t in enumerate(task_list):
        parent_key = t.parent if t.parent in ids else None
        children.setdefault(parent_key, []).append((idx, t))
        if parent_key is not None:
            has_children.add(parent_key)

    for siblings in children.values():
        siblings.sort(key=lambda pair: (pair[1].order, pair[0]))

    out: List[FlattenedTask] = []
    visited: set[str] = set()

    def walk(parent_id: Optional[str], level: int) -> None:
        for _, t in children.get(parent_id, []):
            # Guard against parent cycles in hand-edited data.
            if t.id in visited:
                continue
            visited.add(t.id)
            out.append(FlattenedTask(task=t, level=level, has_children=t.id in has_children))
            if t.id in has_children and t.id not in collapsed_ids:
                walk(t.id, level + 1)

    walk(None, 0)
    return out


def task_end_date(task: Task) -> date:
    """Last calendar day a task occupies; milestones occupy only their start date."""
    return task.start_date if task.type == "milestone" else task.end_date


def project_date_range(tasks: Iterable[Task]) -> Optional[DateRange]:
    """Earliest start and latest end across tasks, or None for an empty list."""
    start: Optional[date] = None
    end: Optional[date] = None
    for t in tasks:
        t_end = task_end_date(t)
        start = t.start_date if start is None else min(start, t.start_date)
        end = t_end if end is None else max(end, t_end)
    if start is None or end is None:
        return None
    return DateRange(start=start, end=end)
