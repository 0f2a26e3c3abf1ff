"""
内存日志通道

由 setup_logger(store=...) 注册为 loguru sink，供控制端（Web / 桌面壳）读取。
生命周期跟随应用会话，不做全局单例。
"""
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List

MAX_ENTRIES = 500

_LEVEL_TAGS = {
    "TRACE": "VERB",
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "SUCCESS": "INFO",
    "WARNING": "WARN",
    "ERROR": "ERROR",
    "CRITICAL": "FATAL",
}


@dataclass(frozen=True)
class LogEntry:
    seq: int
    level: str
    line: str


class LogStore:
    """有界日志存储 + 订阅通知"""

    def __init__(self, max_entries: int = MAX_ENTRIES) -> None:
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._seq = 0
        self._listeners: List[Callable[[LogEntry], None]] = []

    def sink(self, message) -> None:
        """loguru sink 入口，message.record 为 loguru 记录。"""
        record = message.record
        level = record["level"].name
        tag = _LEVEL_TAGS.get(level, level.upper())
        line = f"[{record['time']:HH:mm:ss}][{tag}] {record['message']}"
        exc = record["exception"]
        if exc is not None and exc.type is not None:
            line += f" | {exc.type.__name__}: {exc.value}"
        self.add(level, line)

    def add(self, level: str, line: str) -> LogEntry:
        with self._lock:
            self._seq += 1
            entry = LogEntry(seq=self._seq, level=level, line=line)
            self._entries.append(entry)
            listeners = list(self._listeners)
        for listener in listeners:
            listener(entry)
        return entry

    def entries(self, limit: int | None = None, after: int = 0) -> List[LogEntry]:
        """返回日志快照，可按序号增量拉取。"""
        with self._lock:
            items = [e for e in self._entries if e.seq > after]
        if limit is not None and limit >= 0:
            items = items[-limit:] if limit else []
        return items

    def subscribe(self, listener: Callable[[LogEntry], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
