"""传奇试炼：依次挑战当前开放的阵营塔"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List

from loguru import logger

from ....core.config import BattleTaskConfig
from ...emu.types import RgbColor, ScreenPoint
from ...ui.navigation import back_until_visible, ensure_main_view
from ..battle import AFK_STAGE_TEMPLATES, push_battle_stages
from ..bot_api import BotApi
from ..cancel import CancelToken
from ..helpers import TemplateNotFoundError, click_template
from ..types import BattlePushResult, TemplateQuery
from .base_task import BotTask

HEADER = "legend_trial/header.png"
ENTRY = "legend_trial/legend_trial.png"
BATTLE_MODES = "battle_modes.png"
CHALLENGE_TEMPLATES = [f"legend_trial/challenge_{i}.png" for i in range(1, 5)]
HEADER_BACK_DELAY = 2.5


@dataclass(frozen=True)
class Tower:
    """阵营塔：试炼界面上 "Go" 按钮位置 + 按钮颜色判定（可进入时为真）"""

    name: str
    go_button: ScreenPoint
    available: Callable[[RgbColor], bool]


TOWERS: List[Tower] = [
    Tower("Lightbearer", ScreenPoint(896, 616), lambda c: c.r < 230),
    Tower("Wilder", ScreenPoint(882, 894), lambda c: c.r < 180),
    Tower("Graveborn", ScreenPoint(930, 1190), lambda c: c.r < 140),
    Tower("Mauler", ScreenPoint(890, 1450), lambda c: c.b < 230),
]


class LegendTrial(BotTask):
    name = "Legend Trial"

    def __init__(self, api: BotApi, config: BattleTaskConfig) -> None:
        super().__init__(api)
        self.config = config
        self._log = logger.bind(module="LegendTrial")

    async def run(self, ct: CancelToken) -> None:
        await ensure_main_view(self.api, ct)

        await click_template(self.api, BATTLE_MODES, ct)
        await click_template(self.api, ENTRY, ct)
        await ct.sleep(3.0)

        for tower in TOWERS:
            color = await self.api.get_pixel(tower.go_button, ct)
            if not tower.available(color):
                continue
            self._log.info("Entering {} tower", tower.name)
            await self.api.tap_point(tower.go_button, ct)
            await self.do_tower(tower.name, ct)

        self._log.info("Finished all available legend trials")

    async def do_tower(self, tower_name: str, ct: CancelToken) -> BattlePushResult:
        challenge = await self.api.wait_for_any_template(
            [TemplateQuery(path, "challenge") for path in CHALLENGE_TEMPLATES], ct
        )
        if challenge is None:
            raise TemplateNotFoundError("legend_trial/challenge_*.png")
        await self.api.tap_point(challenge.point, ct)

        result = await push_battle_stages(
            self.api,
            ct,
            self.config.attempts_per_formation,
            self.config.formations_to_try,
            AFK_STAGE_TEMPLATES,
        )
        self._log.info(
            "Finished pushing {} tower. Pushed {} stages in {} battles",
            tower_name,
            result.victories,
            result.total_battles,
        )

        # 返回试炼塔列表
        if not await back_until_visible(
            self.api, ct, HEADER, threshold=0.92, delay=HEADER_BACK_DELAY
        ):
            raise TemplateNotFoundError(HEADER)
        return result
