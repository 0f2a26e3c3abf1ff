"""
任务基类

每个自动化任务只有一个显示名称和一个可取消的运行入口。
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from ..bot_api import BotApi
    from ..cancel import CancelToken


class BotTask(ABC):
    """任务执行基类"""

    name: str = ""

    def __init__(self, api: "BotApi") -> None:
        self.api = api

    @abstractmethod
    async def run(self, ct: "CancelToken") -> None:
        """执行任务主逻辑，直到完成或被取消。"""
        raise NotImplementedError


@dataclass(frozen=True)
class TaskDescriptor:
    """可运行任务条目：名称 + 每次运行新建任务实例的工厂"""

    name: str
    create: Callable[[], BotTask]


__all__ = ["BotTask", "TaskDescriptor"]
