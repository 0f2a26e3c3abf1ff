"""
任务脚本通用工具
"""
from __future__ import annotations

from typing import Optional

from ..emu.types import ScreenPoint
from .bot_api import BotApi
from .cancel import CancelToken
from .types import DEFAULT_TEMPLATE_THRESHOLD


class TemplateNotFoundError(RuntimeError):
    """必须出现的界面元素在超时内未出现（当前任务无法继续）"""

    def __init__(self, template: str) -> None:
        super().__init__(f"Template not found: {template}")
        self.template = template


async def click_template(
    api: BotApi,
    template: str,
    ct: CancelToken,
    *,
    threshold: float = DEFAULT_TEMPLATE_THRESHOLD,
    timeout: Optional[float] = None,
) -> ScreenPoint:
    """等待模板出现并点击其中心，超时抛出 TemplateNotFoundError。"""
    point = await api.wait_for_template(template, ct, threshold=threshold, timeout=timeout)
    if point is None:
        raise TemplateNotFoundError(template)
    await api.tap_point(point, ct)
    return point


__all__ = ["TemplateNotFoundError", "click_template"]
