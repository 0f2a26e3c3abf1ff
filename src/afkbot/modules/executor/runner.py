"""
任务运行器：同一时间只运行一个任务，管理停止 / 暂停状态

- run(task)：已有任务在运行时直接拒绝（不排队、不改状态）
- stop()：取消当前任务（协作式，任务在下一个挂起点退出）
- pause()/resume()/toggle_pause()：关闭/打开暂停闸门，下一次闸门检查时生效
- subscribe(callback)：状态变化通知，不带参数，观察者自行读取 is_running/is_paused
"""
from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Set

from loguru import logger

from .cancel import CancelToken, OperationCancelled
from .pause_gate import PauseGate
from .tasks.base_task import BotTask

Listener = Callable[[], None]


class TaskAlreadyRunningError(RuntimeError):
    pass


class TaskRunner:
    def __init__(self, gate: PauseGate) -> None:
        self.gate = gate
        self._ct: Optional[CancelToken] = None
        self._task: Optional[asyncio.Task] = None
        self._current: Optional[str] = None
        self._running = False
        self._listeners: List[Listener] = []
        self._background: Set["asyncio.Task[None]"] = set()
        self._log = logger.bind(module="TaskRunner")

    # ── 状态 ──

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return not self.gate.is_open

    @property
    def current_task(self) -> Optional[str]:
        return self._current

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册状态变化回调，返回取消订阅函数。"""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                self._log.exception("状态回调执行失败")

    # ── 运行 ──

    def _begin(self, task: BotTask) -> CancelToken:
        if self._running:
            raise TaskAlreadyRunningError("A task is already running.")
        self.gate.open()
        self._ct = CancelToken()
        self._current = task.name
        self._running = True
        self._notify()
        self._log.info("Starting task: {}", task.name)
        return self._ct

    async def _execute(self, task: BotTask, ct: CancelToken) -> None:
        try:
            self._task = asyncio.ensure_future(task.run(ct))
            await self._task
            self._log.info("Task completed: {}", task.name)
        except OperationCancelled:
            self._log.info("Task cancelled: {}", task.name)
        except asyncio.CancelledError:
            # 3.10 上等待被取消的 Task 只会得到普通 CancelledError
            self._log.info("Task cancelled: {}", task.name)
            if not ct.cancelled:
                raise
        except Exception:
            self._log.exception("Task failed: {}", task.name)
            raise
        finally:
            self._task = None
            self._ct = None
            self._current = None
            self._running = False
            self._notify()

    async def run(self, task: BotTask) -> None:
        """运行任务直到完成、取消或失败（失败时记录日志并重新抛出）。"""
        ct = self._begin(task)
        await self._execute(task, ct)

    def start(self, task: BotTask) -> "asyncio.Task[None]":
        """后台启动任务（控制端使用）。忙碌时同步抛出 TaskAlreadyRunningError。

        任务失败只记录日志，不影响控制端。
        """
        ct = self._begin(task)

        async def _background() -> None:
            try:
                await self._execute(task, ct)
            except Exception:
                # _execute 已记录异常
                pass

        background = asyncio.ensure_future(_background())
        self._background.add(background)
        background.add_done_callback(self._background.discard)
        return background

    async def join(self) -> None:
        """等待所有后台启动的任务结束（关闭时调用）。"""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def stop(self) -> None:
        if self._ct is None or self._ct.cancelled:
            return
        self._log.info("Stop requested")
        self._ct.cancel()
        self._notify()

    def pause(self) -> None:
        if self.is_paused:
            return
        self._log.info("Pause requested")
        self.gate.close()
        self._notify()

    def resume(self) -> None:
        if not self.is_paused:
            return
        self._log.info("Resume requested")
        self.gate.open()
        self._notify()

    def toggle_pause(self) -> None:
        if self.is_paused:
            self.resume()
        else:
            self.pause()


__all__ = ["TaskRunner", "TaskAlreadyRunningError"]
