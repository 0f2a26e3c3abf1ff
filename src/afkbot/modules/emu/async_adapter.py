"""
异步 DeviceAdapter 包装器

将同步的 DeviceAdapter 方法通过设备专属单线程池转为异步方法，
使其在 asyncio 事件循环中不阻塞控制端，并保证同一设备上的命令串行。

使用方式：
    adapter = DeviceAdapter(cfg)
    async_adapter = AsyncDeviceAdapter(adapter)
    capture = await async_adapter.screenshot()  # 不阻塞事件循环
"""
from __future__ import annotations

import functools

from ...core.thread_pool import run_in_device_io
from .adapter import AdapterConfig, DeviceAdapter
from .types import ScreenCapture, ScreenPoint


class AsyncDeviceAdapter:
    """DeviceAdapter 的异步包装器（代理模式）。"""

    def __init__(self, adapter: DeviceAdapter) -> None:
        self._sync = adapter
        self._io_key = adapter.io_key

    @property
    def sync(self) -> DeviceAdapter:
        """获取底层同步适配器。"""
        return self._sync

    @property
    def cfg(self) -> AdapterConfig:
        return self._sync.cfg

    async def _run(self, func, *args):
        return await run_in_device_io(self._io_key, func, *args)

    async def screenshot(self) -> ScreenCapture:
        return await self._run(self._sync.screenshot)

    async def tap(self, x: int, y: int) -> None:
        return await self._run(self._sync.tap, x, y)

    async def swipe(self, start: ScreenPoint, end: ScreenPoint, dur_ms: int = 300) -> None:
        return await self._run(functools.partial(self._sync.swipe, start, end, dur_ms=dur_ms))

    async def input_text(self, text: str) -> None:
        return await self._run(self._sync.input_text, text)

    async def back(self) -> None:
        return await self._run(self._sync.back)
