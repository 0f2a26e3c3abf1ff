"""
家园订单：在各生产建筑里制作被请求的物品，体力耗尽后统一交付请求

流程：
1. 依次进入 厨房 / 锻造坊 / 炼金工坊
2. 有可升级的工艺卡先升级；逐个点开 "已请求" 物品，切到 x5、开启自动，循环制作
3. 出现 "前往请求" 提示说明该物品已满足，换下一个；体力耗尽（制作按钮变灰）则停止制作
4. 打开请求列表，逐个交付
"""
from __future__ import annotations

import time
from dataclasses import dataclass

from loguru import logger

from ...emu.types import RgbColor, ScreenPoint
from ...ui.navigation import SWAP_WORLD_HOMESTEAD, ensure_main_view
from ..bot_api import BotApi
from ..cancel import CancelToken
from ..helpers import click_template
from .base_task import BotTask


@dataclass(frozen=True)
class ProductionBuilding:
    name: str
    overview_button: str
    enter_button: str


PRODUCTION_BUILDINGS = [
    ProductionBuilding("Kitchen", "homestead/kitchen.png", "homestead/enter_kitchen.png"),
    ProductionBuilding("Forge", "homestead/forge.png", "homestead/enter_forge.png"),
    ProductionBuilding(
        "Alchemy Workshop",
        "homestead/alchemy_workshop.png",
        "homestead/enter_alchemy_workshop.png",
    ),
]

# 像素探针
STAMINA_PROBE = ScreenPoint(623, 1737)
STAMINA_EMPTY = RgbColor(107, 107, 107)
CRAFT_BUTTON_PROBE = ScreenPoint(600, 1670)
CRAFTING_ACTIVE = RgbColor(249, 245, 238)
AUTO_TOGGLE = ScreenPoint(335, 1725)
AUTO_OFF_MAX_GREEN = 175

# 固定按钮
MULTIPLIER_BUTTON = ScreenPoint(785, 1690)
CRAFT_BUTTON = ScreenPoint(540, 1715)
TAP_TO_CLOSE = ScreenPoint(1000, 1820)
# 请求卡片上的交付按钮相对 "可交付" 标记的偏移
DELIVER_OFFSET = (-50, 70)

MAX_MULTIPLIER_TAPS = 10
CRAFT_WAIT_TIMEOUT = 120.0
CRAFT_POLL_INTERVAL = 0.5
DELIVERABLE_TIMEOUT = 5.0


class HomesteadOrders(BotTask):
    name = "Homestead Orders"

    def __init__(self, api: BotApi, craft_x5: bool = True) -> None:
        super().__init__(api)
        self.craft_x5 = craft_x5
        self.items_crafted = 0
        self.requests_delivered = 0
        self._log = logger.bind(module="HomesteadOrders")

    async def run(self, ct: CancelToken) -> None:
        self.items_crafted = 0
        self.requests_delivered = 0
        await ensure_main_view(self.api, ct)

        self._log.info("Entering Homestead")
        await self.api.tap_point(SWAP_WORLD_HOMESTEAD, ct)

        out_of_stamina = False
        while not out_of_stamina:
            ct.raise_if_cancelled()
            for building in PRODUCTION_BUILDINGS:
                out_of_stamina = await self._craft_in(building, ct)
                if out_of_stamina:
                    await self.api.back(ct)
                    await ct.sleep(1.0)
                    await self.api.back(ct)
                    break

            await self._deliver_requests(ct)
            if out_of_stamina:
                self._log.info("Out of stamina and deliveries, stopping task")
                break
            await self.api.back(ct)

        self._log.info(
            "Crafted {} items and delivered {} requests",
            self.items_crafted,
            self.requests_delivered,
        )

    async def _open_building(self, building: ProductionBuilding, ct: CancelToken) -> None:
        self._log.info("Navigating to {}", building.name)
        for template in (
            "homestead/overview.png",
            "homestead/buildings.png",
            "homestead/production.png",
            building.overview_button,
            "homestead/go.png",
            building.enter_button,
        ):
            await click_template(self.api, template, ct)

    async def _craft_in(self, building: ProductionBuilding, ct: CancelToken) -> bool:
        """在一个建筑内制作全部被请求的物品。返回是否体力耗尽。"""
        await self._open_building(building, ct)
        while True:
            await ct.sleep(2.0)
            await self._upgrade_card_if_ready(ct)

            item = await self.api.find_template("homestead/requested_item.png", ct)
            if item is None:
                self._log.info("No requested items found in {}", building.name)
                await self.api.back(ct)
                return False
            await self.api.tap_point(item, ct)
            await ct.sleep(0.5)

            if self.craft_x5:
                await self._select_x5(ct)

            auto = await self.api.get_pixel(AUTO_TOGGLE, ct)
            if auto.g < AUTO_OFF_MAX_GREEN:
                await self.api.tap_point(AUTO_TOGGLE, ct)

            if await self._craft_item(ct):
                return True

    async def _upgrade_card_if_ready(self, ct: CancelToken) -> None:
        card = await self.api.find_template("homestead/card_upgrade_yes.png", ct)
        if card is None:
            return
        self._log.info("Upgrading a Process Card")
        await self.api.tap_point(card, ct)
        await click_template(self.api, "homestead/upgrade.png", ct)
        await ct.sleep(3.0)
        await self.api.back(ct)
        await ct.sleep(0.5)
        await self.api.back(ct)

    async def _select_x5(self, ct: CancelToken) -> None:
        for _ in range(MAX_MULTIPLIER_TAPS):
            if await self.api.find_template("homestead/x5.png", ct) is not None:
                return
            await self.api.tap_point(MULTIPLIER_BUTTON, ct)
            await ct.sleep(0.5)
        self._log.warning("x5 multiplier could not be selected")

    async def _craft_item(self, ct: CancelToken) -> bool:
        """循环制作当前物品，直到请求满足（返回 False）或体力耗尽（返回 True）。"""
        while True:
            if await self.api.get_pixel(STAMINA_PROBE, ct) == STAMINA_EMPTY:
                self._log.info("Out of stamina")
                return True
            await self.api.tap_point(CRAFT_BUTTON, ct)
            await ct.sleep(1.5)
            if await self.api.find_template("homestead/go_to_requests.png", ct) is not None:
                self._log.info("Moving on to the next item")
                await self.api.back(ct)
                await ct.sleep(0.5)
                await self.api.back(ct)
                return False
            await self._wait_for_crafting(ct)
            self._log.info("Crafted item")
            self.items_crafted += 5 if self.craft_x5 else 1

    async def _wait_for_crafting(self, ct: CancelToken) -> None:
        # 制作开始时大按钮变白，结束后恢复
        await self._wait_pixel(lambda c: c == CRAFTING_ACTIVE, ct)
        await self._wait_pixel(lambda c: c != CRAFTING_ACTIVE, ct)

    async def _wait_pixel(self, predicate, ct: CancelToken) -> None:
        start = time.monotonic()
        while not predicate(await self.api.get_pixel(CRAFT_BUTTON_PROBE, ct)):
            if time.monotonic() - start >= CRAFT_WAIT_TIMEOUT:
                self._log.warning("Crafting state did not change in {}s", CRAFT_WAIT_TIMEOUT)
                return
            await ct.sleep(CRAFT_POLL_INTERVAL)

    async def _deliver_requests(self, ct: CancelToken) -> None:
        self._log.info("Delivering Requests")
        await click_template(self.api, "homestead/requests.png", ct)
        while True:
            request = await self.api.wait_for_template(
                "homestead/deliverable_request.png",
                ct,
                timeout=DELIVERABLE_TIMEOUT,
                error_on_fail=False,
            )
            if request is None:
                self._log.info("No more deliverable requests")
                return
            await self.api.tap_point(request.offset(*DELIVER_OFFSET), ct)
            await click_template(self.api, "homestead/quick_select.png", ct)
            await click_template(self.api, "homestead/deliver.png", ct)
            await ct.sleep(1.0)
            await self.api.tap_point(TAP_TO_CLOSE, ct)
            await ct.sleep(1.0)
            self._log.info("Delivered a request")
            self.requests_delivered += 1
