"""
弹窗定义与注册表

定义游戏中意外弹窗的检测方式。检测到弹窗后统一用返回键关闭，
并等待固定时间让 UI 完成过渡。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class PopupDef:
    """弹窗定义

    Attributes:
        id: 唯一标识，如 "daily_pack"
        label: 显示名称（日志用）
        template: 检测模板（相对模板目录的路径）
        threshold: 匹配阈值，None 时使用 settings.popup_threshold
        priority: 优先级，越小越先检查
        enabled: 是否启用
    """
    id: str
    label: str
    template: str
    threshold: Optional[float] = None
    priority: int = 50
    enabled: bool = True


class PopupRegistry:
    """弹窗注册表"""

    def __init__(self) -> None:
        self._popups: Dict[str, PopupDef] = {}

    def register(self, popup: PopupDef) -> None:
        self._popups[popup.id] = popup

    def unregister(self, popup_id: str) -> None:
        self._popups.pop(popup_id, None)

    def get(self, popup_id: str) -> Optional[PopupDef]:
        return self._popups.get(popup_id)

    def all_sorted(self) -> List[PopupDef]:
        """按优先级排序返回所有已启用的弹窗定义"""
        return sorted(
            (p for p in self._popups.values() if p.enabled),
            key=lambda p: p.priority,
        )

    def __len__(self) -> int:
        return len(self._popups)


# 全局默认弹窗注册表
popup_registry = PopupRegistry()
