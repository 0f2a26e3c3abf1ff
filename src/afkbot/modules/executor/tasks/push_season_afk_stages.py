"""赛季 AFK 关卡推图"""
from __future__ import annotations

from loguru import logger

from ....core.config import BattleTaskConfig
from ...emu.types import ScreenPoint
from ..battle import SEASON_STAGE_TEMPLATES, push_battle_stages
from ..bot_api import BotApi
from ..cancel import CancelToken
from .base_task import BotTask
from .push_afk_stages import AFK_STAGE_MENU

SEASON_STAGES = ScreenPoint(300, 1610)


class PushSeasonAfkStages(BotTask):
    name = "Push Season AFK Stages"

    def __init__(self, api: BotApi, config: BattleTaskConfig) -> None:
        super().__init__(api)
        self.config = config
        self._log = logger.bind(module="PushSeasonAfkStages")

    async def run(self, ct: CancelToken) -> None:
        # TODO: 支持从深层菜单启动（先导航回主界面）
        await self.api.tap_point(AFK_STAGE_MENU, ct)
        await ct.sleep(2.5)

        self._log.info("Pushing Season AFK Stages")
        await self.api.tap_point(SEASON_STAGES, ct)

        result = await push_battle_stages(
            self.api,
            ct,
            self.config.attempts_per_formation,
            self.config.formations_to_try,
            SEASON_STAGE_TEMPLATES,
        )
        self._log.info(
            "Defeat limit reached, moving on. Pushed {} stages in {} battles",
            result.victories,
            result.total_battles,
        )
