"""
协作式取消

CancelToken 由 TaskRunner 为每次运行新建，作为显式参数 ct 沿调用链向下传递。
所有挂起点（暂停闸门、轮询间隔、固定等待）都观察它；一旦取消即抛出
OperationCancelled，整个流程逐层展开，不再执行任何设备动作。
"""
from __future__ import annotations

import asyncio


class OperationCancelled(asyncio.CancelledError):
    """运行被取消（非错误的终止结果）。

    继承 CancelledError，避免被 `except Exception` 当作普通失败吞掉。
    """


class CancelToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """幂等。"""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()

    async def wait(self) -> None:
        """挂起直到被取消。"""
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """可取消的等待：到时正常返回，期间被取消则立即抛出 OperationCancelled。"""
        self.raise_if_cancelled()
        if seconds <= 0:
            await asyncio.sleep(0)
            self.raise_if_cancelled()
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise OperationCancelled()


__all__ = ["CancelToken", "OperationCancelled"]
