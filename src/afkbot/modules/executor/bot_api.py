"""
BotApi：任务脚本接触设备的唯一入口

- 探测：find_template / wait_for_template / wait_for_any_template
- 动作：tap / tap_point / swipe / input_text / back
- 采样：read_text / get_pixel（先截新图）

每个探测/动作在做设备 I/O 之前都先等待暂停闸门（同时观察取消）。
轮询循环中每张截图先做弹窗检查，命中则关闭后立即开始下一轮（不休眠，
但耗时计入超时）。
"""
from __future__ import annotations

import os
import time
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional, Protocol, Sequence

from loguru import logger

from ...core.config import settings
from ...core.thread_pool import run_in_io
from ..emu.types import RgbColor, ScreenCapture, ScreenPoint, ScreenRect
from ..ui.popup_handler import PopupHandler
from ..vision.assets import template_path
from .cancel import CancelToken
from .pause_gate import PauseGate
from .types import DEFAULT_TEMPLATE_THRESHOLD, TemplateMatch, TemplateQuery


class DeviceLike(Protocol):
    async def screenshot(self) -> ScreenCapture: ...

    async def tap(self, x: int, y: int) -> None: ...

    async def swipe(self, start: ScreenPoint, end: ScreenPoint, dur_ms: int = 300) -> None: ...

    async def input_text(self, text: str) -> None: ...

    async def back(self) -> None: ...


def debug_file_name(capture: ScreenCapture, base_name: str, index: int) -> str:
    ts = capture.captured_at
    return f"{ts.strftime('%Y%m%d_%H%M%S')}_{ts.microsecond // 1000:03d}_{base_name}_{index:02d}.png"


def _write_debug_screens(folder: str, screens: List[ScreenCapture], base_name: str) -> List[str]:
    os.makedirs(folder, exist_ok=True)
    saved = []
    for index, capture in enumerate(screens):
        full = os.path.join(folder, debug_file_name(capture, base_name, index))
        with open(full, "wb") as f:
            f.write(capture.png_bytes)
        saved.append(full)
    return saved


class BotApi:
    def __init__(
        self,
        device: DeviceLike,
        matcher,
        reader,
        gate: PauseGate,
        popups: Optional[PopupHandler] = None,
        *,
        template_root: Optional[str] = None,
        debug_dir: Optional[str] = None,
        recent_screenshots: Optional[int] = None,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.device = device
        self.matcher = matcher
        self.reader = reader
        self.gate = gate
        self.popups = popups
        self.template_root = template_root or settings.template_root
        self.debug_dir = debug_dir or settings.debug_screenshot_dir
        self.poll_interval = settings.default_poll_interval if poll_interval is None else poll_interval
        self.timeout = settings.default_timeout if timeout is None else timeout
        self._recent: Deque[ScreenCapture] = deque(
            maxlen=recent_screenshots or settings.recent_screenshots
        )
        self._log = logger.bind(module="BotApi")

    # ── 基础 ──

    @property
    def latest_capture(self) -> Optional[ScreenCapture]:
        """最近一次截图（预览用）。"""
        return self._recent[-1] if self._recent else None

    @property
    def recent_captures(self) -> List[ScreenCapture]:
        return list(self._recent)

    def resolve(self, name: str) -> str:
        return template_path(name, self.template_root)

    async def _ensure_not_paused(self, ct: CancelToken) -> None:
        await self.gate.wait_until_open(ct)

    async def _capture(self) -> ScreenCapture:
        capture = await self.device.screenshot()
        self._recent.append(capture)
        return capture

    async def _handle_popup(self, capture: ScreenCapture, ct: CancelToken) -> bool:
        if self.popups is None:
            return False
        return await self.popups.check_and_dismiss(capture, ct, self.back)

    async def save_debug_screenshots(self, label: str) -> Optional[List[str]]:
        """把最近的截图写入调试目录。失败只记日志，不抛出。"""
        screens = list(self._recent)
        base_name = Path(label).stem or "capture"
        try:
            return await run_in_io(_write_debug_screens, self.debug_dir, screens, base_name)
        except Exception as e:
            self._log.error("Failed to save debug screenshots: {}", e)
            return None

    async def _on_timeout(self, label: str, error_on_fail: bool) -> None:
        if not error_on_fail:
            return
        saved = await self.save_debug_screenshots(label)
        self._log.error(
            "Timed out while searching for template {}. There may be an unhandled popup. "
            "Saved debug images to {}",
            label,
            os.path.dirname(saved[0]) if saved else "COULD_NOT_SAVE_IMAGES",
        )

    # ── 探测 ──

    async def find_template(
        self, name: str, ct: CancelToken, threshold: float = DEFAULT_TEMPLATE_THRESHOLD
    ) -> Optional[ScreenPoint]:
        """单次查找：闸门检查 + 一次截图 + 一次匹配，不重试。"""
        await self._ensure_not_paused(ct)
        capture = await self._capture()
        found = await self.matcher.find_template(capture, self.resolve(name), threshold)
        return found[0] if found else None

    async def wait_for_template(
        self,
        name: str,
        ct: CancelToken,
        threshold: float = DEFAULT_TEMPLATE_THRESHOLD,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        error_on_fail: bool = True,
    ) -> Optional[ScreenPoint]:
        match = await self.wait_for_any_template(
            [TemplateQuery(name, name, threshold)],
            ct,
            timeout=timeout,
            poll_interval=poll_interval,
            error_on_fail=error_on_fail,
        )
        return match.point if match else None

    async def wait_for_any_template(
        self,
        queries: Sequence[TemplateQuery],
        ct: CancelToken,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
        error_on_fail: bool = True,
    ) -> Optional[TemplateMatch]:
        """轮询直到任一模板出现，同一张截图上按列表顺序优先。

        超时（单调时钟）后返回 None；耗时不早于 timeout，不晚于 timeout + 一个轮询间隔。
        """
        if not queries:
            raise ValueError("queries must not be empty")
        interval = self.poll_interval if poll_interval is None else poll_interval
        limit = self.timeout if timeout is None else timeout
        label = "+".join(Path(q.path).stem for q in queries)
        start = time.monotonic()

        while True:
            await self._ensure_not_paused(ct)
            capture = await self._capture()
            if await self._handle_popup(capture, ct):
                if time.monotonic() - start >= limit:
                    await self._on_timeout(label, error_on_fail)
                    return None
                continue

            for q in queries:
                found = await self.matcher.find_template(capture, self.resolve(q.path), q.threshold)
                if found is not None:
                    return TemplateMatch(q.key, found[0])

            if time.monotonic() - start >= limit:
                await self._on_timeout(label, error_on_fail)
                return None

            await ct.sleep(interval)

    # ── 动作 ──

    async def tap(self, x: int, y: int, ct: CancelToken) -> None:
        await self._ensure_not_paused(ct)
        await self.device.tap(x, y)

    async def tap_point(self, point: ScreenPoint, ct: CancelToken) -> None:
        await self.tap(point.x, point.y, ct)

    async def swipe(
        self, start: ScreenPoint, end: ScreenPoint, duration_ms: int, ct: CancelToken
    ) -> None:
        await self._ensure_not_paused(ct)
        await self.device.swipe(start, end, duration_ms)

    async def input_text(self, text: str, ct: CancelToken) -> None:
        await self._ensure_not_paused(ct)
        await self.device.input_text(text)

    async def back(self, ct: CancelToken) -> None:
        await self._ensure_not_paused(ct)
        await self.device.back()

    # ── 采样 ──

    async def read_text(self, rect: ScreenRect, ct: CancelToken) -> str:
        await self._ensure_not_paused(ct)
        capture = await self._capture()
        return await self.reader.read_text(capture, rect)

    async def get_pixel(self, point: ScreenPoint, ct: CancelToken) -> RgbColor:
        await self._ensure_not_paused(ct)
        capture = await self._capture()
        return await self.matcher.get_pixel(capture, point.x, point.y)


__all__ = ["BotApi", "DeviceLike", "debug_file_name"]
