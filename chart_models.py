from __future__ import annotations

import re
from datetime import date
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

HEX_COLOR_RE = r"^#?[0-9A-Fa-f]{6}$"

DEFAULT_TASK_COLOR = "#4299E1"

# Friendly colour names accepted in workbooks and the export dialog.
COLOR_NAME_TO_HEX = {
    "blue": "#4299E1",
    "orange": "#ED8936",
    "green": "#48BB78",
    "red": "#F56565",
    "purple": "#9F7AEA",
    "teal": "#38B2AC",
    "pink": "#ED64A6",
    "gray": "#718096",
    "yellow": "#ECC94B",
    "indigo": "#667EEA",
}


def _normalize_color_token(value: str) -> str:
    s = (value or "").strip().lower()
    s = s.replace("_", " ").replace("-", " ")
    s = " ".join(s.split())
    return s


def normalize_color(value: Optional[str], *, field_name: str = "color") -> Optional[str]:
    """Accepts a friendly name or a hex value; returns "#RRGGBB" or None when blank."""
    if value is None:
        return None
    v = str(value).strip()
    if not v:
        return None

    token = _normalize_color_token(v)
    if token in COLOR_NAME_TO_HEX:
        return COLOR_NAME_TO_HEX[token]

    if not re.match(HEX_COLOR_RE, v):
        allowed = ", ".join(name.title() for name in COLOR_NAME_TO_HEX)
        raise ValueError(f"{field_name} must be one of: {allowed} (or a hex like #4299E1).")
    if not v.startswith("#"):
        v = "#" + v
    return v.upper()


TaskType = Literal["task", "milestone", "summary"]
ZoomMode = Literal["current_view", "custom", "fit_to_width"]
DateRangeMode = Literal["all", "visible", "custom"]
Density = Literal["compact", "normal", "comfortable"]
TaskLabelPosition = Literal["before", "inside", "after", "none"]
ExportColumnKey = Literal["color", "name", "start_date", "end_date", "duration", "progress"]
DateFormat = Literal["YYYY-MM-DD", "DD/MM/YYYY", "MM/DD/YYYY"]
ExportFormat = Literal["png", "svg", "pdf"]

PageSize = Literal["a4", "a3", "a2", "a1", "a0", "letter", "legal", "tabloid", "custom"]
Orientation = Literal["landscape", "portrait"]
MarginPreset = Literal["normal", "narrow", "wide", "none", "custom"]


class Task(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    duration: int = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    type: TaskType = "task"
    parent: Optional[str] = None
    color: str = DEFAULT_TASK_COLOR
    order: int = 0

    @field_validator("id")
    @classmethod
    def _id_not_empty(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("id is required.")
        return v

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required.")
        return v

    @field_validator("parent")
    @classmethod
    def _parent_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("color", mode="before")
    @classmethod
    def _normalize_task_color(cls, v: Optional[str]) -> str:
        return normalize_color(v) or DEFAULT_TASK_COLOR

    @model_validator(mode="after")
    def _dates_valid(self) -> "Task":
        # Milestones are drawn at their start date; their end date carries no meaning.
        if self.type != "milestone" and self.end_date < self.start_date:
            raise ValueError("end_date must be on/after start_date.")
        return self


class Dependency(BaseModel):
    """Finish-to-start link between two tasks."""

    from_task_id: str
    to_task_id: str

    @model_validator(mode="after")
    def _not_self(self) -> "Dependency":
        if self.from_task_id == self.to_task_id:
            raise ValueError("a task cannot depend on itself.")
        return self


class ExportOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    zoom_mode: ZoomMode = "current_view"
    timeline_zoom: float = Field(default=1.0, gt=0)
    fit_to_width: int = Field(default=1920, gt=0)

    date_range_mode: DateRangeMode = "all"
    custom_date_start: Optional[date] = None
    custom_date_end: Optional[date] = None

    selected_columns: Tuple[ExportColumnKey, ...] = ()

    density: Density = "comfortable"
    task_label_position: TaskLabelPosition = "inside"

    include_header: bool = True
    include_today_marker: bool = True
    include_dependencies: bool = True
    include_grid_lines: bool = True
    include_weekends: bool = True
    include_holidays: bool = True

    background: Literal["white", "transparent"] = "white"
    date_format: DateFormat = "YYYY-MM-DD"

    @field_validator("selected_columns")
    @classmethod
    def _columns_unique(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(set(v)) != len(v):
            raise ValueError("selected_columns must not contain duplicates.")
        return v


class Margins(BaseModel):
    model_config = ConfigDict(frozen=True)

    top: float = Field(ge=0)
    bottom: float = Field(ge=0)
    left: float = Field(ge=0)
    right: float = Field(ge=0)


class CustomPageSize(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: float = Field(gt=0)
    height: float = Field(gt=0)


class HeaderFooter(BaseModel):
    model_config = ConfigDict(frozen=True)

    show_project_name: bool = False
    show_author: bool = False
    show_export_date: bool = False
    custom_text: Optional[str] = None

    @field_validator("custom_text")
    @classmethod
    def _text_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None


class PageOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    page_size: PageSize = "a4"
    custom_page_size: CustomPageSize = CustomPageSize(width=500, height=300)
    orientation: Orientation = "landscape"
    margin_preset: MarginPreset = "normal"
    custom_margins: Optional[Margins] = None
    header: HeaderFooter = HeaderFooter(show_project_name=True)
    footer: HeaderFooter = HeaderFooter()
    metadata: DocumentMetadata = DocumentMetadata()


class SvgOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    text_mode: Literal["text", "paths"] = "text"
    include_background: bool = False


class ResolvedGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    effective_zoom: float


DEFAULT_EXPORT_OPTIONS = ExportOptions()
DEFAULT_PAGE_OPTIONS = PageOptions()

# Zoom presets for the "custom" zoom mode.
EXPORT_ZOOM_PRESETS = {
    "compact": 0.5,
    "standard": 1.0,
    "detailed": 1.5,
    "expanded": 2.0,
}

EXPORT_ZOOM_MIN = 0.05
EXPORT_ZOOM_MAX = 3.0

# Below these zoom levels labels become hard to read / are typically hidden.
EXPORT_ZOOM_READABLE_THRESHOLD = 0.15
EXPORT_ZOOM_LABELS_HIDDEN_THRESHOLD = 0.08

# Widest canvas most GPUs and image viewers handle.
EXPORT_MAX_SAFE_WIDTH = 16384
