"""
导航辅助：不断按返回键直到回到已知界面

回到主界面（大世界或家园，以 "战斗模式" 按钮为锚点）失败时只记录错误并返回 False，
由调用方决定是否继续。
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from ..emu.types import ScreenPoint

if TYPE_CHECKING:
    from ..executor.bot_api import BotApi
    from ..executor.cancel import CancelToken

MAIN_VIEW_ANCHOR = "battle_modes.png"
MAIN_VIEW_THRESHOLD = 0.95
WORLD_BUTTON = "world.png"
# 大世界 / 家园 切换按钮
SWAP_WORLD_HOMESTEAD = ScreenPoint(1010, 1620)

DEFAULT_MAX_BACKS = 10
DEFAULT_BACK_DELAY = 2.0

_log = logger.bind(module="Navigation")


async def back_until_visible(
    api: "BotApi",
    ct: "CancelToken",
    template: str,
    *,
    threshold: float = MAIN_VIEW_THRESHOLD,
    max_backs: int = DEFAULT_MAX_BACKS,
    delay: float = DEFAULT_BACK_DELAY,
) -> bool:
    """单次查找锚点模板，未找到则返回键 + 等待，最多 max_backs 次。"""
    for _ in range(max_backs):
        if await api.find_template(template, ct, threshold=threshold) is not None:
            return True
        await api.back(ct)
        await ct.sleep(delay)
    return False


async def back_until_out(
    api: "BotApi",
    ct: "CancelToken",
    max_backs: int = DEFAULT_MAX_BACKS,
    delay: float = DEFAULT_BACK_DELAY,
) -> bool:
    found = await back_until_visible(
        api, ct, MAIN_VIEW_ANCHOR, max_backs=max_backs, delay=delay
    )
    if not found:
        _log.error(
            "Main game view could not be found. The game may be unresponsive, "
            "or the UI changed in a recent update"
        )
    return found


async def ensure_main_view(api: "BotApi", ct: "CancelToken") -> bool:
    """回到主界面（大世界或家园均可）。"""
    _log.info("Navigating to World/Homestead game view")
    return await back_until_out(api, ct)


async def ensure_main_view_world(api: "BotApi", ct: "CancelToken") -> bool:
    _log.info("Navigating to World game view")
    found = await back_until_out(api, ct)
    # 能看到 "大世界" 按钮说明当前在家园
    if await api.find_template(WORLD_BUTTON, ct) is not None:
        await api.tap_point(SWAP_WORLD_HOMESTEAD, ct)
    return found


async def ensure_main_view_homestead(api: "BotApi", ct: "CancelToken") -> bool:
    _log.info("Navigating to Homestead game view")
    found = await back_until_out(api, ct)
    if await api.find_template(WORLD_BUTTON, ct) is None:
        await api.tap_point(SWAP_WORLD_HOMESTEAD, ct)
    return found


__all__ = [
    "MAIN_VIEW_ANCHOR",
    "SWAP_WORLD_HOMESTEAD",
    "back_until_visible",
    "back_until_out",
    "ensure_main_view",
    "ensure_main_view_world",
    "ensure_main_view_homestead",
]
