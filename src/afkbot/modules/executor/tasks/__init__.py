"""
任务注册
"""
from __future__ import annotations

from typing import Dict

from ....core.config import AppConfig
from ..bot_api import BotApi
from .base_task import BotTask, TaskDescriptor
from .homestead_orders import HomesteadOrders
from .legend_trial import LegendTrial
from .push_afk_stages import PushAfkStages
from .push_routine import PushRoutine
from .push_season_afk_stages import PushSeasonAfkStages


def build_task_registry(api: BotApi, config: AppConfig) -> Dict[str, TaskDescriptor]:
    """名称 -> 任务条目（每次运行新建任务实例）。"""
    descriptors = [
        TaskDescriptor(PushRoutine.name, lambda: PushRoutine(api, config)),
        TaskDescriptor(LegendTrial.name, lambda: LegendTrial(api, config.legend_trial)),
        TaskDescriptor(PushAfkStages.name, lambda: PushAfkStages(api, config.push_afk_stages)),
        TaskDescriptor(
            PushSeasonAfkStages.name,
            lambda: PushSeasonAfkStages(api, config.push_season_afk_stages),
        ),
        TaskDescriptor(HomesteadOrders.name, lambda: HomesteadOrders(api)),
    ]
    return {d.name: d for d in descriptors}


__all__ = [
    "BotTask",
    "TaskDescriptor",
    "HomesteadOrders",
    "LegendTrial",
    "PushAfkStages",
    "PushRoutine",
    "PushSeasonAfkStages",
    "build_task_registry",
]
