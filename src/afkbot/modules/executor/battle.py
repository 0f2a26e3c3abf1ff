"""
推图战斗循环

选阵容（战斗记录中按序号复制，跳过含未拥有英雄/神器的阵容）-> 开战 ->
等待胜负 -> 决定继续、重试还是换阵容。可被 AFK 关卡、赛季关卡、传奇试炼复用。

终止条件：当前关卡失败次数达到 每阵容次数 x (可用阵容数 - 跳过数)；
最后一个阵容也未拥有时直接结束；连续无法识别的结果达到上限时结束。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from ...core.config import MAX_FORMATIONS, settings
from ..emu.types import ScreenPoint
from .bot_api import BotApi
from .cancel import CancelToken
from .types import BattlePushResult, TemplateQuery

# 战斗结果常量
VICTORY = "victory"
DEFEAT = "defeat"

# 结算界面 "下一步" 固定坐标
GO_TO_NEXT = ScreenPoint(750, 1810)
# 每次点击 "下一个阵容" 后等待 UI 过渡
FORMATION_SETTLE_DELAY = 0.5
NOT_OWNED_THRESHOLD = 0.9
START_BATTLE_THRESHOLD = 0.95


@dataclass(frozen=True)
class BattleTemplates:
    """一套推图界面模板（不同玩法的资源目录不同）"""

    records: str
    next_formation: str
    not_owned: str
    copy_formation: str
    start_battle: str
    victory_next: str
    victory_rewards: str
    defeat_retry: str

    @classmethod
    def under(cls, prefix: str) -> "BattleTemplates":
        return cls(
            records=f"{prefix}records.png",
            next_formation=f"{prefix}next_formation.png",
            not_owned=f"{prefix}not_owned.png",
            copy_formation=f"{prefix}copy_formation.png",
            start_battle=f"{prefix}start_battle.png",
            victory_next=f"{prefix}next.png",
            victory_rewards=f"{prefix}rewards_increased.png",
            defeat_retry=f"{prefix}retry.png",
        )

    def outcomes(self):
        return [
            TemplateQuery(self.victory_next, VICTORY),
            TemplateQuery(self.victory_rewards, VICTORY),
            TemplateQuery(self.defeat_retry, DEFEAT),
        ]


AFK_STAGE_TEMPLATES = BattleTemplates.under("afk_stages/")
SEASON_STAGE_TEMPLATES = BattleTemplates.under("")


def validate_push_args(attempts_per_formation: int, formations_to_try: int) -> None:
    if attempts_per_formation <= 0:
        raise ValueError("attempts_per_formation must be greater than 0")
    if formations_to_try <= 0 or formations_to_try > MAX_FORMATIONS:
        raise ValueError(f"formations_to_try must be between 1 and {MAX_FORMATIONS}")


async def push_battle_stages(
    api: BotApi,
    ct: CancelToken,
    attempts_per_formation: int,
    formations_to_try: int,
    templates: BattleTemplates = AFK_STAGE_TEMPLATES,
    *,
    max_unknown_outcomes: Optional[int] = None,
    result_timeout: Optional[float] = None,
) -> BattlePushResult:
    """循环推图直到失败次数用尽，返回 (总战斗数, 胜利数)。"""
    validate_push_args(attempts_per_formation, formations_to_try)
    unknown_limit = settings.max_unknown_outcomes if max_unknown_outcomes is None else max_unknown_outcomes
    outcome_timeout = settings.battle_result_timeout if result_timeout is None else result_timeout
    log = logger.bind(module="BattlePush")

    total_battles = 0
    victories = 0
    defeats_on_current_stage = 0
    previous_formation_index: Optional[int] = None
    skipped_formations = 0
    unknown_outcomes = 0

    def _unknown(reason: str) -> bool:
        """记录一次无法识别的界面状态，达到上限时返回 True。"""
        nonlocal unknown_outcomes
        unknown_outcomes += 1
        log.warning("{} ({}/{})", reason, unknown_outcomes, unknown_limit)
        if unknown_outcomes >= unknown_limit:
            log.error("Too many unrecognised battle states, stopping push")
            return True
        return False

    while True:
        max_attempts = attempts_per_formation * (formations_to_try - skipped_formations)
        if defeats_on_current_stage >= max_attempts:
            break

        formation_index = defeats_on_current_stage // attempts_per_formation + skipped_formations
        records = await api.wait_for_template(templates.records, ct)
        if records is None:
            if _unknown("Records button not found"):
                break
            continue

        if formation_index != previous_formation_index:
            await api.tap_point(records, ct)

            # 点击 "下一个" 直到目标阵容
            next_formation = await api.wait_for_template(templates.next_formation, ct)
            if next_formation is None:
                if _unknown("Next formation button not found"):
                    break
                continue
            for _ in range(formation_index):
                await api.tap_point(next_formation, ct)
                await ct.sleep(FORMATION_SETTLE_DELAY)

            # 阵容中有未拥有的英雄/神器时继续往后翻
            while formation_index < formations_to_try and await api.find_template(
                templates.not_owned, ct, threshold=NOT_OWNED_THRESHOLD
            ) is not None:
                log.debug("Hero/Artifact not owned, skipping")
                skipped_formations += 1
                formation_index += 1
                await api.tap_point(next_formation, ct)
                await ct.sleep(FORMATION_SETTLE_DELAY)

            if formation_index + 1 > formations_to_try:
                # 最后一个阵容也未拥有
                log.info("No usable formation left, stopping push")
                break

            copy_formation = await api.wait_for_template(templates.copy_formation, ct)
            if copy_formation is None:
                if _unknown("Copy formation button not found"):
                    break
                continue
            await api.tap_point(copy_formation, ct)
            log.info("Copied formation #{}", formation_index + 1)
            previous_formation_index = formation_index

        start_battle = await api.wait_for_template(
            templates.start_battle, ct, threshold=START_BATTLE_THRESHOLD
        )
        if start_battle is None:
            if _unknown("Start battle button not found"):
                break
            continue
        await api.tap_point(start_battle, ct)
        log.info("Started battle #{}/{}", defeats_on_current_stage + 1, max_attempts)

        match = await api.wait_for_any_template(
            templates.outcomes(), ct, timeout=outcome_timeout
        )
        if match is None or match.key not in (VICTORY, DEFEAT):
            if _unknown(f"Unknown battle result: {match.key if match else 'timeout'}"):
                break
            continue

        unknown_outcomes = 0
        if match.key == VICTORY:
            victories += 1
            log.info("Victory count: {}", victories)
            defeats_on_current_stage = 0
            previous_formation_index = None
            skipped_formations = 0
        else:
            defeats_on_current_stage += 1

        total_battles += 1
        await api.tap_point(GO_TO_NEXT, ct)

    return BattlePushResult(total_battles=total_battles, victories=victories)


__all__ = [
    "VICTORY",
    "DEFEAT",
    "GO_TO_NEXT",
    "BattleTemplates",
    "AFK_STAGE_TEMPLATES",
    "SEASON_STAGE_TEMPLATES",
    "validate_push_args",
    "push_battle_stages",
]
