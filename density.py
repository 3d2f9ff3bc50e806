from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ColumnWidths:
    color: int
    name: int
    start_date: int
    end_date: int
    duration: int
    progress: int


@dataclass(frozen=True)
class DensityProfile:
    name: str
    row_height: int
    task_bar_height: int
    task_bar_offset: int
    cell_padding_y: int
    cell_padding_x: int
    header_padding_y: int
    font_size_cell: int
    font_size_bar: int
    font_size_header: int
    icon_size: int
    indent_size: int
    color_bar_height: int
    column_widths: ColumnWidths


DENSITY_PROFILES: Mapping[str, DensityProfile] = MappingProxyType(
    {
        "compact": DensityProfile(
            name="compact",
            row_height=28,
            task_bar_height=20,
            task_bar_offset=4,
            cell_padding_y=4,
            cell_padding_x=8,
            header_padding_y=8,
            font_size_cell=14,
            font_size_bar=11,
            font_size_header=10,
            icon_size=14,
            indent_size=16,
            color_bar_height=20,
            column_widths=ColumnWidths(color=28, name=160, start_date=105, end_date=105, duration=80, progress=56),
        ),
        "normal": DensityProfile(
            name="normal",
            row_height=36,
            task_bar_height=26,
            task_bar_offset=5,
            cell_padding_y=6,
            cell_padding_x=10,
            header_padding_y=12,
            font_size_cell=15,
            font_size_bar=12,
            font_size_header=11,
            icon_size=16,
            indent_size=18,
            color_bar_height=24,
            column_widths=ColumnWidths(color=30, name=180, start_date=118, end_date=118, duration=90, progress=62),
        ),
        "comfortable": DensityProfile(
            name="comfortable",
            row_height=44,
            task_bar_height=32,
            task_bar_offset=6,
            cell_padding_y=8,
            cell_padding_x=12,
            header_padding_y=16,
            font_size_cell=16,
            font_size_bar=13,
            font_size_header=12,
            icon_size=18,
            indent_size=20,
            color_bar_height=28,
            column_widths=ColumnWidths(color=32, name=200, start_date=130, end_date=130, duration=100, progress=70),
        ),
    }
)


def get_density_profile(density: str) -> DensityProfile:
    """Look up a density preset. Unknown names raise KeyError."""
    return DENSITY_PROFILES[density]
