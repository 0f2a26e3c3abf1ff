"""推图日常：传奇试炼 -> 赛季关卡 -> AFK 关卡，循环直到被停止"""
from __future__ import annotations

from ....core.config import AppConfig
from ..bot_api import BotApi
from ..cancel import CancelToken
from .base_task import BotTask
from .legend_trial import LegendTrial
from .push_afk_stages import PushAfkStages
from .push_season_afk_stages import PushSeasonAfkStages


class PushRoutine(BotTask):
    name = "Push Routine"

    def __init__(self, api: BotApi, config: AppConfig) -> None:
        super().__init__(api)
        self.steps = [
            LegendTrial(api, config.legend_trial),
            PushSeasonAfkStages(api, config.push_season_afk_stages),
            PushAfkStages(api, config.push_afk_stages),
        ]

    async def run(self, ct: CancelToken) -> None:
        while not ct.cancelled:
            for step in self.steps:
                await step.run(ct)
