import pytest

from afkbot.core.config import AppConfig, BattleTaskConfig
from afkbot.modules.emu.types import RgbColor, ScreenPoint
from afkbot.modules.executor.cancel import CancelToken, OperationCancelled
from afkbot.modules.executor.tasks import build_task_registry
from afkbot.modules.executor.tasks import homestead_orders as homestead_mod
from afkbot.modules.executor.tasks import legend_trial as legend_mod
from afkbot.modules.executor.tasks import push_afk_stages as afk_mod
from afkbot.modules.executor.tasks import push_season_afk_stages as season_mod
from afkbot.modules.executor.tasks.homestead_orders import HomesteadOrders
from afkbot.modules.executor.tasks.legend_trial import TOWERS, LegendTrial
from afkbot.modules.executor.tasks.push_afk_stages import PushAfkStages
from afkbot.modules.executor.tasks.push_routine import PushRoutine
from afkbot.modules.executor.tasks.push_season_afk_stages import PushSeasonAfkStages
from afkbot.modules.executor.types import BattlePushResult, TemplateMatch


class FakeApi:
    """templates: name -> 点 / None / 按顺序消费的结果列表；未配置的模板总能找到。"""

    def __init__(self, templates=None, pixels=None) -> None:
        self.templates = templates or {}
        self.pixels = pixels or {}
        self.actions = []

    def _next(self, name):
        value = self.templates.get(name, ScreenPoint(1, 1))
        if isinstance(value, list):
            return value.pop(0) if value else None
        return value

    async def find_template(self, name, ct, threshold=0.92):
        return self._next(name)

    async def wait_for_template(self, name, ct, threshold=0.92, timeout=None,
                                poll_interval=None, error_on_fail=True):
        return self._next(name)

    async def wait_for_any_template(self, queries, ct, timeout=None,
                                    poll_interval=None, error_on_fail=True):
        return TemplateMatch(queries[0].key, ScreenPoint(5, 5))

    async def tap_point(self, point, ct):
        self.actions.append(point)

    async def get_pixel(self, point, ct):
        return self.pixels.get(point, RgbColor(255, 255, 255))

    async def back(self, ct):
        self.actions.append("back")


@pytest.fixture(autouse=True)
def _instant_sleep(monkeypatch):
    async def _sleep(self, seconds):
        self.raise_if_cancelled()

    monkeypatch.setattr(CancelToken, "sleep", _sleep)


def _fake_push(calls, result=BattlePushResult(3, 1)):
    async def _push(api, ct, attempts, formations, templates=None, **kwargs):
        calls.append((attempts, formations, templates))
        return result

    return _push


def test_registry_lists_every_task():
    tasks = build_task_registry(FakeApi(), AppConfig())

    assert list(tasks) == [
        "Push Routine",
        "Legend Trial",
        "Push AFK Stages",
        "Push Season AFK Stages",
        "Homestead Orders",
    ]
    first = tasks["Push AFK Stages"].create()
    second = tasks["Push AFK Stages"].create()
    assert isinstance(first, PushAfkStages)
    assert first is not second


def test_registry_passes_per_task_config():
    config = AppConfig(
        legend_trial=BattleTaskConfig(attempts_per_formation=3, formations_to_try=10),
        push_season_afk_stages=BattleTaskConfig(attempts_per_formation=1, formations_to_try=5),
    )
    tasks = build_task_registry(FakeApi(), config)

    assert tasks["Legend Trial"].create().config.attempts_per_formation == 3
    assert tasks["Push Season AFK Stages"].create().config.formations_to_try == 5


@pytest.mark.asyncio
async def test_push_afk_stages_opens_menu_then_pushes(monkeypatch):
    calls = []
    monkeypatch.setattr(afk_mod, "push_battle_stages", _fake_push(calls))
    api = FakeApi({"battle_modes.png": ScreenPoint(2, 2)})

    await PushAfkStages(api, BattleTaskConfig(attempts_per_formation=2, formations_to_try=4)).run(
        CancelToken()
    )

    assert api.actions == [afk_mod.AFK_STAGE_MENU, afk_mod.REGULAR_STAGES]
    assert calls == [(2, 4, afk_mod.AFK_STAGE_TEMPLATES)]


@pytest.mark.asyncio
async def test_push_season_uses_season_templates(monkeypatch):
    calls = []
    monkeypatch.setattr(season_mod, "push_battle_stages", _fake_push(calls))
    api = FakeApi()

    await PushSeasonAfkStages(api, BattleTaskConfig(formations_to_try=5)).run(CancelToken())

    assert api.actions == [afk_mod.AFK_STAGE_MENU, season_mod.SEASON_STAGES]
    assert calls[0][2] is season_mod.SEASON_STAGE_TEMPLATES


@pytest.mark.asyncio
async def test_legend_trial_enters_only_available_towers(monkeypatch):
    lightbearer, wilder, graveborn, mauler = (t.go_button for t in TOWERS)
    api = FakeApi(
        pixels={
            lightbearer: RgbColor(200, 200, 200),
            wilder: RgbColor(250, 100, 100),
            graveborn: RgbColor(100, 255, 255),
            mauler: RgbColor(10, 10, 240),
        }
    )
    entered = []

    async def _do_tower(self, tower_name, ct):
        entered.append(tower_name)
        return BattlePushResult()

    monkeypatch.setattr(LegendTrial, "do_tower", _do_tower)

    await LegendTrial(api, BattleTaskConfig()).run(CancelToken())

    assert entered == ["Lightbearer", "Graveborn"]
    assert lightbearer in api.actions and graveborn in api.actions
    assert wilder not in api.actions


@pytest.mark.asyncio
async def test_legend_trial_tower_returns_to_header(monkeypatch):
    calls = []
    monkeypatch.setattr(legend_mod, "push_battle_stages", _fake_push(calls))
    api = FakeApi({legend_mod.HEADER: [None, None, ScreenPoint(3, 3)]})

    result = await LegendTrial(api, BattleTaskConfig(attempts_per_formation=1)).do_tower(
        "Wilder", CancelToken()
    )

    assert result == BattlePushResult(3, 1)
    assert api.actions == [ScreenPoint(5, 5), "back", "back"]
    assert calls[0][:2] == (1, 10)


@pytest.mark.asyncio
async def test_legend_trial_raises_when_header_never_returns(monkeypatch):
    monkeypatch.setattr(legend_mod, "push_battle_stages", _fake_push([]))
    api = FakeApi({legend_mod.HEADER: None})

    with pytest.raises(legend_mod.TemplateNotFoundError):
        await LegendTrial(api, BattleTaskConfig()).do_tower("Mauler", CancelToken())
    assert api.actions.count("back") == 10


@pytest.mark.asyncio
async def test_push_routine_cycles_until_cancelled():
    order = []
    ct = CancelToken()

    class Step:
        def __init__(self, name):
            self.name = name

        async def run(self, ct):
            ct.raise_if_cancelled()
            order.append(self.name)
            if len(order) == 5:
                ct.cancel()

    routine = PushRoutine(FakeApi(), AppConfig())
    assert [type(s) for s in routine.steps] == [LegendTrial, PushSeasonAfkStages, PushAfkStages]
    routine.steps = [Step("trial"), Step("season"), Step("afk")]

    with pytest.raises(OperationCancelled):
        await routine.run(ct)

    assert order == ["trial", "season", "afk", "trial", "season"]


@pytest.mark.asyncio
async def test_homestead_delivers_until_none_left():
    api = FakeApi(
        {"homestead/deliverable_request.png": [ScreenPoint(100, 100), ScreenPoint(200, 200)]}
    )
    task = HomesteadOrders(api)

    await task._deliver_requests(CancelToken())

    assert task.requests_delivered == 2
    assert ScreenPoint(50, 170) in api.actions
    assert ScreenPoint(150, 270) in api.actions
    assert api.actions.count(homestead_mod.TAP_TO_CLOSE) == 2


@pytest.mark.asyncio
async def test_homestead_stops_crafting_when_out_of_stamina():
    api = FakeApi(pixels={homestead_mod.STAMINA_PROBE: homestead_mod.STAMINA_EMPTY})

    assert await HomesteadOrders(api)._craft_item(CancelToken()) is True
    assert homestead_mod.CRAFT_BUTTON not in api.actions


@pytest.mark.asyncio
async def test_homestead_moves_on_when_request_satisfied():
    api = FakeApi()
    task = HomesteadOrders(api)

    assert await task._craft_item(CancelToken()) is False
    assert api.actions == [homestead_mod.CRAFT_BUTTON, "back", "back"]
    assert task.items_crafted == 0
