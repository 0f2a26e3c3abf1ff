"""
暂停闸门：所有设备相关操作在执行前都要先通过它。

- 关闭 = 挂起，打开 = 放行
- open()/close() 同步、幂等，打开时一次性释放所有等待者（广播）
"""
from __future__ import annotations

import asyncio

from .cancel import CancelToken, OperationCancelled


class PauseGate:
    def __init__(self, is_open: bool = False) -> None:
        self._event = asyncio.Event()
        if is_open:
            self._event.set()

    @property
    def is_open(self) -> bool:
        return self._event.is_set()

    def open(self) -> None:
        self._event.set()

    def close(self) -> None:
        self._event.clear()

    async def wait_until_open(self, ct: CancelToken) -> None:
        """闸门打开时立即返回（不挂起）；否则等到打开或 ct 被取消。"""
        ct.raise_if_cancelled()
        if self._event.is_set():
            return

        gate_task = asyncio.ensure_future(self._event.wait())
        cancel_task = asyncio.ensure_future(ct.wait())
        try:
            await asyncio.wait(
                {gate_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for t in (gate_task, cancel_task):
                if not t.done():
                    t.cancel()
        if ct.cancelled:
            raise OperationCancelled()


__all__ = ["PauseGate"]
