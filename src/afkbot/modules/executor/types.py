"""执行层数据类型"""
from __future__ import annotations

from dataclasses import dataclass

from ..emu.types import ScreenPoint

DEFAULT_TEMPLATE_THRESHOLD = 0.92


@dataclass(frozen=True)
class TemplateQuery:
    """要查找的模板：相对模板目录的路径 + 结果标识 + 匹配阈值"""

    path: str
    key: str
    threshold: float = DEFAULT_TEMPLATE_THRESHOLD


@dataclass(frozen=True)
class TemplateMatch:
    key: str
    point: ScreenPoint


@dataclass(frozen=True)
class BattlePushResult:
    total_battles: int = 0
    victories: int = 0


__all__ = [
    "DEFAULT_TEMPLATE_THRESHOLD",
    "TemplateQuery",
    "TemplateMatch",
    "BattlePushResult",
]
