"""
默认弹窗注册

模板文件放在 templates/popups/ 下；缺失的模板在首次扫描时告警并跳过。
"""
from __future__ import annotations

from .popups import PopupDef, PopupRegistry, popup_registry

DEFAULT_POPUPS = [
    PopupDef(
        id="limited_offer",
        label="限时礼包",
        template="popups/limited_offer.png",
        priority=10,
    ),
    PopupDef(
        id="daily_login",
        label="登录奖励",
        template="popups/daily_login.png",
        priority=20,
    ),
]


def register_default_popups(registry: PopupRegistry = popup_registry) -> PopupRegistry:
    for popup in DEFAULT_POPUPS:
        registry.register(popup)
    return registry


__all__ = ["DEFAULT_POPUPS", "register_default_popups"]
