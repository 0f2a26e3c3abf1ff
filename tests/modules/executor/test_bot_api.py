import asyncio
import re
import time

import pytest

from afkbot.modules.emu.types import RgbColor, ScreenCapture, ScreenPoint, ScreenRect
from afkbot.modules.executor.bot_api import BotApi
from afkbot.modules.executor.cancel import CancelToken, OperationCancelled
from afkbot.modules.executor.pause_gate import PauseGate
from afkbot.modules.executor.types import TemplateQuery
from afkbot.modules.ui.popup_handler import PopupHandler
from afkbot.modules.ui.popups import PopupDef, PopupRegistry


class DummyDevice:
    """每次截图返回 frame-N，记录所有动作。"""

    def __init__(self) -> None:
        self.frames = 0
        self.actions = []

    async def screenshot(self) -> ScreenCapture:
        self.frames += 1
        return ScreenCapture.now(f"frame-{self.frames}".encode())

    async def tap(self, x, y):
        self.actions.append(("tap", x, y))

    async def swipe(self, start, end, dur_ms=300):
        self.actions.append(("swipe", start, end, dur_ms))

    async def input_text(self, text):
        self.actions.append(("text", text))

    async def back(self):
        self.actions.append(("back",))


def _frame_no(capture: ScreenCapture) -> int:
    return int(capture.png_bytes.decode().split("-")[1])


class DummyMatcher:
    """visible(template_name, frame_no) -> bool"""

    def __init__(self, visible=None, pixel=RgbColor(1, 2, 3)) -> None:
        self.visible = visible or (lambda name, frame: False)
        self.pixel = pixel
        self.calls = []

    async def find_template(self, capture, path, threshold=0.92):
        name = path.rsplit("/", 1)[-1]
        frame = _frame_no(capture)
        self.calls.append((name, frame))
        if self.visible(name, frame):
            return ScreenPoint(frame, len(name)), 0.99
        return None

    async def get_pixel(self, capture, x, y):
        return self.pixel


class DummyReader:
    def __init__(self) -> None:
        self.captures = []

    async def read_text(self, capture, rect):
        self.captures.append((capture, rect))
        return "42"


def _api(matcher=None, gate=None, popups=None, **kwargs) -> BotApi:
    return BotApi(
        DummyDevice(),
        matcher or DummyMatcher(),
        DummyReader(),
        gate or PauseGate(is_open=True),
        popups,
        template_root="tpl",
        **kwargs,
    )


@pytest.mark.asyncio
async def test_find_template_is_single_shot():
    api = _api(DummyMatcher(lambda name, frame: name == "a.png"))
    ct = CancelToken()

    assert await api.find_template("a.png", ct) == ScreenPoint(1, 5)
    assert await api.find_template("b.png", ct) is None
    assert api.device.frames == 2
    assert api.latest_capture.png_bytes == b"frame-2"


@pytest.mark.asyncio
async def test_wait_for_template_polls_until_visible():
    api = _api(DummyMatcher(lambda name, frame: frame >= 3))
    point = await api.wait_for_template("a.png", CancelToken(), poll_interval=0.001)
    assert point == ScreenPoint(3, 5)
    assert api.device.frames == 3


@pytest.mark.asyncio
async def test_wait_for_times_out_within_one_poll_interval():
    api = _api()
    timeout, poll = 0.3, 0.05

    started = time.monotonic()
    result = await api.wait_for_template(
        "never.png", CancelToken(), timeout=timeout, poll_interval=poll, error_on_fail=False
    )
    elapsed = time.monotonic() - started

    assert result is None
    assert elapsed >= timeout
    # 留出调度抖动
    assert elapsed <= timeout + poll + 0.15


@pytest.mark.asyncio
async def test_wait_for_any_prefers_earlier_candidate_on_same_capture():
    api = _api(DummyMatcher(lambda name, frame: True))
    ct = CancelToken()

    first = await api.wait_for_any_template(
        [TemplateQuery("q1.png", "one"), TemplateQuery("q2.png", "two")], ct
    )
    second = await api.wait_for_any_template(
        [TemplateQuery("q2.png", "two"), TemplateQuery("q1.png", "one")], ct
    )

    assert first.key == "one"
    assert second.key == "two"


@pytest.mark.asyncio
async def test_wait_for_any_rejects_empty_queries():
    api = _api()
    with pytest.raises(ValueError):
        await api.wait_for_any_template([], CancelToken())


@pytest.mark.asyncio
async def test_popup_is_dismissed_and_iteration_restarts(tmp_path):
    (tmp_path / "popups").mkdir()
    (tmp_path / "popups" / "offer.png").write_bytes(b"x")
    registry = PopupRegistry()
    registry.register(PopupDef(id="offer", label="offer", template="popups/offer.png"))

    matcher = DummyMatcher(
        lambda name, frame: (name == "offer.png" and frame == 1)
        or (name == "target.png" and frame >= 1)
    )
    popups = PopupHandler(
        matcher, registry, post_dismiss_delay=0, template_root=str(tmp_path)
    )
    api = _api(matcher, popups=popups)

    point = await api.wait_for_template("target.png", CancelToken(), poll_interval=0.001)

    assert point == ScreenPoint(2, 10)
    assert api.device.actions == [("back",)]
    # 弹窗所在截图上不做目标匹配
    assert ("target.png", 1) not in matcher.calls


@pytest.mark.asyncio
async def test_missing_popup_template_is_skipped(tmp_path):
    registry = PopupRegistry()
    registry.register(PopupDef(id="gone", label="gone", template="popups/gone.png"))
    matcher = DummyMatcher(lambda name, frame: name == "target.png" and frame >= 2)
    popups = PopupHandler(matcher, registry, post_dismiss_delay=0, template_root=str(tmp_path))
    api = _api(matcher, popups=popups)

    point = await api.wait_for_template("target.png", CancelToken(), poll_interval=0.001)

    assert point is not None
    assert api.device.actions == []
    assert all(name != "gone.png" for name, _ in matcher.calls)


@pytest.mark.asyncio
async def test_timeout_saves_recent_captures(tmp_path):
    api = _api(debug_dir=str(tmp_path / "debug"), recent_screenshots=3)

    result = await api.wait_for_template(
        "afk_stages/records.png", CancelToken(), timeout=0.05, poll_interval=0.01
    )

    assert result is None
    files = sorted(p.name for p in (tmp_path / "debug").iterdir())
    assert len(files) == 3
    assert all(re.fullmatch(r"\d{8}_\d{6}_\d{3}_records_\d{2}\.png", f) for f in files)
    assert {f[-6:-4] for f in files} == {"00", "01", "02"}


@pytest.mark.asyncio
async def test_debug_save_failure_is_swallowed(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file")
    api = _api(debug_dir=str(blocker))

    result = await api.wait_for_template("x.png", CancelToken(), timeout=0.02, poll_interval=0.01)

    assert result is None


@pytest.mark.asyncio
async def test_actions_wait_for_gate():
    gate = PauseGate()
    api = _api(gate=gate)
    ct = CancelToken()

    pending = asyncio.create_task(api.tap(10, 20, ct))
    await asyncio.sleep(0.02)
    assert api.device.actions == []

    gate.open()
    await asyncio.wait_for(pending, timeout=1)
    assert api.device.actions == [("tap", 10, 20)]


@pytest.mark.asyncio
async def test_cancel_while_paused_performs_no_device_call():
    api = _api(gate=PauseGate())
    ct = CancelToken()

    pending = asyncio.create_task(api.find_template("a.png", ct))
    await asyncio.sleep(0.01)
    ct.cancel()

    with pytest.raises(OperationCancelled):
        await asyncio.wait_for(pending, timeout=1)
    assert api.device.frames == 0


@pytest.mark.asyncio
async def test_primitives_forward_to_device():
    api = _api()
    ct = CancelToken()

    await api.tap_point(ScreenPoint(1, 2), ct)
    await api.swipe(ScreenPoint(0, 0), ScreenPoint(5, 5), 200, ct)
    await api.input_text("hello world", ct)
    await api.back(ct)

    assert api.device.actions == [
        ("tap", 1, 2),
        ("swipe", ScreenPoint(0, 0), ScreenPoint(5, 5), 200),
        ("text", "hello world"),
        ("back",),
    ]


@pytest.mark.asyncio
async def test_sampling_takes_fresh_capture():
    api = _api(DummyMatcher(pixel=RgbColor(107, 107, 107)))
    ct = CancelToken()

    assert await api.get_pixel(ScreenPoint(1, 1), ct) == RgbColor(107, 107, 107)
    assert await api.read_text(ScreenRect(0, 0, 10, 10), ct) == "42"
    assert api.device.frames == 2
    assert api.reader.captures[0][0].png_bytes == b"frame-2"
