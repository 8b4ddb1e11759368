from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from PIL import ImageFont


DEFAULT_FONT_FAMILY = "Segoe UI"
DEFAULT_FONT_SIZE_PX = 11.0
ELLIPSIS = "..."
SANS_FONT_FALLBACK_PATTERNS = (
    "segoeui",
    "segoe ui",
    "helvetica",
    "arial",
    "dejavusans",
    "dejavu sans",
    "liberationsans",
)


class TextMetrics(Protocol):
    def text_width(self, text: str, font_family: str, font_size: float) -> float: ...

    def text_height(self, font_family: str, font_size: float) -> float: ...


@dataclass(frozen=True)
class FixedWidthTextMetrics:
    """Constant advance per character; deterministic for headless layout."""

    char_width_ratio: float = 0.6
    line_height_ratio: float = 1.2

    def text_width(self, text: str, font_family: str, font_size: float) -> float:
        return float(len(text)) * font_size * self.char_width_ratio

    def text_height(self, font_family: str, font_size: float) -> float:
        return font_size * self.line_height_ratio


class PillowTextMetrics:
    def text_width(self, text: str, font_family: str, font_size: float) -> float:
        if not text:
            return 0.0
        font = _load_font(font_family=font_family, font_size_px=font_size)
        return float(font.getlength(text))

    def text_height(self, font_family: str, font_size: float) -> float:
        font = _load_font(font_family=font_family, font_size_px=font_size)
        if hasattr(font, "getmetrics"):
            ascent, descent = font.getmetrics()
            return float(max(1, ascent + descent))
        left, top, right, bottom = font.getbbox("Ag")
        return float(max(1, bottom - top))


def truncate_to_width(
    text: str,
    width: float,
    metrics: TextMetrics,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size: float = DEFAULT_FONT_SIZE_PX,
) -> str:
    if metrics.text_width(text, font_family, font_size) <= width:
        return text
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        candidate = text[:mid] + ELLIPSIS
        if metrics.text_width(candidate, font_family, font_size) <= width:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo] + ELLIPSIS


def wrap_to_width(
    text: str,
    width: float,
    metrics: TextMetrics,
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    font_size: float = DEFAULT_FONT_SIZE_PX,
) -> list[str]:
    words = text.split()
    if not words:
        return [text] if text else []
    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if metrics.text_width(candidate, font_family, font_size) <= width:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = truncate_to_width(word, width, metrics, font_family=font_family, font_size=font_size)
    if current:
        lines.append(current)
    return lines


def points_to_pixels(points: float) -> float:
    return points * 96.0 / 72.0


@lru_cache(maxsize=64)
def _load_font(font_family: str, font_size_px: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    size = max(1, int(round(font_size_px)))
    font_path = _resolve_font_path(font_family)
    if font_path is None:
        return ImageFont.load_default(size=size)
    try:
        return ImageFont.truetype(str(font_path), size=size)
    except OSError:
        return ImageFont.load_default(size=size)


@lru_cache(maxsize=32)
def _resolve_font_path(font_family: str) -> Path | None:
    wanted = font_family.strip().lower() if font_family.strip() else DEFAULT_FONT_FAMILY.lower()
    patterns = (wanted,) + SANS_FONT_FALLBACK_PATTERNS

    font_dirs = [
        Path.home() / "Library" / "Fonts",
        Path("/Library/Fonts"),
        Path("/System/Library/Fonts"),
        Path("/System/Library/Fonts/Supplemental"),
        Path("/usr/share/fonts"),
        Path("/usr/local/share/fonts"),
        Path("C:/Windows/Fonts"),
    ]

    candidates: list[Path] = []
    for base in font_dirs:
        if not base.exists():
            continue
        for ext in ("*.ttf", "*.otf", "*.ttc"):
            candidates.extend(base.rglob(ext))

    for pattern in patterns:
        p = pattern.replace(" ", "")
        for path in candidates:
            stem = path.stem.lower().replace(" ", "")
            name = path.name.lower().replace(" ", "")
            if p in stem or p in name:
                return path
    return None
