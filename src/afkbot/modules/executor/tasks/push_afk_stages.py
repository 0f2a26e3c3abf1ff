"""AFK 关卡推图"""
from __future__ import annotations

from loguru import logger

from ....core.config import BattleTaskConfig
from ...emu.types import ScreenPoint
from ...ui.navigation import ensure_main_view
from ..battle import AFK_STAGE_TEMPLATES, push_battle_stages
from ..bot_api import BotApi
from ..cancel import CancelToken
from .base_task import BotTask

AFK_STAGE_MENU = ScreenPoint(80, 1850)
REGULAR_STAGES = ScreenPoint(800, 1610)


class PushAfkStages(BotTask):
    name = "Push AFK Stages"

    def __init__(self, api: BotApi, config: BattleTaskConfig) -> None:
        super().__init__(api)
        self.config = config
        self._log = logger.bind(module="PushAfkStages")

    async def run(self, ct: CancelToken) -> None:
        await ensure_main_view(self.api, ct)

        # 进入 AFK 关卡菜单
        await self.api.tap_point(AFK_STAGE_MENU, ct)
        await ct.sleep(2.0)

        self._log.info("Pushing AFK Stages")
        await self.api.tap_point(REGULAR_STAGES, ct)

        result = await push_battle_stages(
            self.api,
            ct,
            self.config.attempts_per_formation,
            self.config.formations_to_try,
            AFK_STAGE_TEMPLATES,
        )
        self._log.info(
            "Finished pushing AFK Stages. Pushed {} stages in {} battles",
            result.victories,
            result.total_battles,
        )
