"""
弹窗检测与关闭处理器

PopupHandler 对一张截图按优先级扫描已注册弹窗，命中第一个即执行关闭
（由调用方提供的 dismiss 协程，通常是带闸门检查的返回键）并固定等待，
让轮询循环重新开始本轮迭代。
"""
from __future__ import annotations

import os
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Set

from loguru import logger

from ...core.config import settings
from ..emu.types import ScreenCapture
from ..vision.assets import template_path
from ..vision.template import TemplateMatcher
from .popups import PopupDef, PopupRegistry, popup_registry

if TYPE_CHECKING:
    from ..executor.cancel import CancelToken

DismissFn = Callable[["CancelToken"], Awaitable[None]]


class PopupHandler:
    """弹窗处理器：检测并关闭游戏中的意外弹窗"""

    def __init__(
        self,
        matcher: TemplateMatcher,
        registry: Optional[PopupRegistry] = None,
        post_dismiss_delay: Optional[float] = None,
        template_root: Optional[str] = None,
    ) -> None:
        self.matcher = matcher
        self.registry = registry if registry is not None else popup_registry
        self.post_dismiss_delay = (
            settings.popup_post_dismiss_delay
            if post_dismiss_delay is None
            else post_dismiss_delay
        )
        self.template_root = template_root
        self._missing: Set[str] = set()
        self._log = logger.bind(module="PopupHandler")

    async def scan(self, capture: ScreenCapture) -> Optional[PopupDef]:
        """按优先级顺序匹配，找到第一个即返回（短路）。"""
        for popup in self.registry.all_sorted():
            path = template_path(popup.template, self.template_root)
            if not os.path.isfile(path):
                if path not in self._missing:
                    self._missing.add(path)
                    self._log.warning("Could not find template {}", path)
                continue
            threshold = popup.threshold or settings.popup_threshold
            found = await self.matcher.find_template(capture, path, threshold)
            if found is not None:
                _, score = found
                self._log.info("检测到弹窗: {} (score={:.3f})", popup.label, score)
                return popup
        return None

    async def check_and_dismiss(
        self, capture: ScreenCapture, ct: CancelToken, dismiss: DismissFn
    ) -> bool:
        """截图中有弹窗则关闭并等待，返回 True；否则 False。"""
        popup = await self.scan(capture)
        if popup is None:
            return False
        await dismiss(ct)
        await ct.sleep(self.post_dismiss_delay)
        return True


__all__ = ["PopupHandler"]
