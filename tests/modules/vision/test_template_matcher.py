import cv2
import numpy as np
import pytest

from afkbot.modules.emu.types import RgbColor, ScreenCapture, ScreenPoint
from afkbot.modules.vision.assets import template_path
from afkbot.modules.vision.template import TemplateMatcher, match_template
from afkbot.modules.vision.utils import clear_image_cache


@pytest.fixture(autouse=True)
def _clear_cache():
    clear_image_cache()
    yield
    clear_image_cache()


def _screen():
    rng = np.random.default_rng(0)
    return rng.integers(0, 255, size=(200, 300, 3), dtype=np.uint8)


def _capture(img) -> ScreenCapture:
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return ScreenCapture.now(buf.tobytes())


def _write_template(tmp_path, img, name="button.png"):
    path = tmp_path / name
    cv2.imwrite(str(path), img)
    return str(path)


def test_match_returns_center_of_best_match(tmp_path):
    screen = _screen()
    tpl = _write_template(tmp_path, screen[40:60, 50:80].copy())

    found = TemplateMatcher().match(_capture(screen), tpl, 0.92)

    assert found is not None
    point, score = found
    assert point == ScreenPoint(65, 50)
    assert score >= 0.99


def test_match_below_threshold_is_none(tmp_path):
    screen = _screen()
    other = np.random.default_rng(1).integers(0, 255, size=(20, 30, 3), dtype=np.uint8)
    tpl = _write_template(tmp_path, other)

    assert TemplateMatcher().match(_capture(screen), tpl, 0.92) is None


def test_missing_template_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        TemplateMatcher().match(_capture(_screen()), str(tmp_path / "missing.png"))


def test_template_larger_than_screen_raises():
    small = np.zeros((10, 10, 3), dtype=np.uint8)
    big = np.zeros((20, 20, 3), dtype=np.uint8)
    with pytest.raises(ValueError):
        match_template(small, big)


def test_pixel_is_returned_as_rgb():
    screen = np.zeros((10, 10, 3), dtype=np.uint8)
    screen[3, 4] = (238, 245, 249)  # BGR
    matcher = TemplateMatcher()

    assert matcher.pixel(_capture(screen), 4, 3) == RgbColor(249, 245, 238)
    with pytest.raises(IndexError):
        matcher.pixel(_capture(screen), 10, 0)


@pytest.mark.asyncio
async def test_async_find_template_offloads(tmp_path):
    screen = _screen()
    tpl = _write_template(tmp_path, screen[100:130, 200:240].copy())

    found = await TemplateMatcher().find_template(_capture(screen), tpl, 0.95)

    assert found[0] == ScreenPoint(220, 115)


def test_template_path_joins_root():
    assert template_path("afk_stages/records.png", "assets/templates") == (
        "assets/templates/afk_stages/records.png"
    )
