"""
屏幕相关值类型：截图帧、坐标点、矩形区域、RGB 颜色
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class ScreenCapture:
    """一次截图（PNG 字节 + 截图时间，UTC）"""

    png_bytes: bytes = field(repr=False)
    captured_at: datetime

    def __post_init__(self) -> None:
        if not self.png_bytes:
            raise ValueError("PNG bytes cannot be empty")

    @classmethod
    def now(cls, png_bytes: bytes) -> "ScreenCapture":
        return cls(png_bytes=png_bytes, captured_at=datetime.now(timezone.utc))


@dataclass(frozen=True)
class ScreenPoint:
    x: int
    y: int

    def offset(self, dx: int, dy: int) -> "ScreenPoint":
        return ScreenPoint(self.x + dx, self.y + dy)


@dataclass(frozen=True)
class ScreenRect:
    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @classmethod
    def from_ltrb(cls, left: int, top: int, right: int, bottom: int) -> "ScreenRect":
        return cls(left, top, max(0, right - left), max(0, bottom - top))

    def clamp(self, width: int, height: int) -> "ScreenRect":
        """裁剪到 width x height 的画面内，完全越界时返回空矩形。"""
        if self.is_empty or width <= 0 or height <= 0:
            return ScreenRect(0, 0, 0, 0)
        x = min(max(self.x, 0), width - 1)
        y = min(max(self.y, 0), height - 1)
        w = min(max(self.width, 0), width - x)
        h = min(max(self.height, 0), height - y)
        return ScreenRect(x, y, w, h)


@dataclass(frozen=True)
class RgbColor:
    r: int
    g: int
    b: int


__all__ = ["ScreenCapture", "ScreenPoint", "ScreenRect", "RgbColor"]
