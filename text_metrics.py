from __future__ import annotations

import threading
from functools import lru_cache
from typing import Callable, Iterable

from matplotlib.font_manager import FontProperties
from matplotlib.textpath import TextToPath

# Signature shared by every caller that needs string widths: (text, font_size_px) -> px.
MeasureFn = Callable[[str, float], float]

DEFAULT_FONT_FAMILY = "Inter"

# FreeType faces are not safe to share between threads.
_MEASURE_LOCK = threading.Lock()
_TEXT_TO_PATH = TextToPath()


def _font_family_available(family: str) -> bool:
    family = (family or "").strip()
    if not family:
        return False
    # Matplotlib stores font names; check case-insensitively.
    fam_lower = family.lower()
    from matplotlib import font_manager as fm
    for f in fm.fontManager.ttflist:
        if f.name.lower() == fam_lower:
            return True
    return False


@lru_cache(maxsize=None)
def resolve_font_family(preferred: str) -> str:
    """
    Returns a font family name that matplotlib can actually render.
    Priority:
      1) preferred, if available
      2) Arial, if available
      3) DejaVu Sans (matplotlib default)
    """
    preferred = (preferred or "").strip()
    if preferred and _font_family_available(preferred):
        return preferred
    if _font_family_available("Arial"):
        return "Arial"
    return "DejaVu Sans"


@lru_cache(maxsize=8192)
def measure_text_width(
    text: str,
    font_size: float,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_weight: str = "normal",
    letter_spacing: float = 0.0,
) -> float:
    """
    Pixel width of a single line of text.

    font_size is in pixels; measuring at 72 DPI makes one point equal one pixel.
    letter_spacing is in em units and added between glyphs.
    """
    if not text:
        return 0.0
    prop = FontProperties(family=resolve_font_family(font_family), weight=font_weight, size=font_size)
    with _MEASURE_LOCK:
        width, _, _ = _TEXT_TO_PATH.get_text_width_height_descent(text, prop, ismath=False)
    if letter_spacing > 0:
        width += (len(text) - 1) * letter_spacing * font_size
    return float(width)


def max_text_width(texts: Iterable[str], font_size: float, measure: MeasureFn = measure_text_width) -> float:
    widest = 0.0
    for text in texts:
        widest = max(widest, measure(text, font_size))
    return widest
