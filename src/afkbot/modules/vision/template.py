"""
Template matching utilities.

Features:
- Single best match (TM_CCOEFF_NORMED), accepted when score >= threshold
- Return the clickable center of the matched template in screen coordinates
- TemplateMatcher: async facade used by the probe layer, offloads OpenCV work
  to the compute pool and decodes each capture only once
"""
from __future__ import annotations

import functools
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2  # type: ignore
import numpy as np

from ...core.thread_pool import run_in_compute
from ..emu.types import RgbColor, ScreenCapture, ScreenPoint
from .utils import ImageLike, load_image, pixel_at


DEFAULT_THRESHOLD = 0.92


@dataclass
class Match:
    x: int
    y: int
    w: int
    h: int
    score: float

    @property
    def center(self) -> Tuple[int, int]:
        return (self.x + self.w // 2, self.y + self.h // 2)


def _ensure_sizes(big: np.ndarray, small: np.ndarray) -> None:
    hb, wb = big.shape[:2]
    hs, ws = small.shape[:2]
    if hs > hb or ws > wb:
        raise ValueError(f"Template larger than image: template {ws}x{hs}, image {wb}x{hb}")


def match_template(
    image: ImageLike,
    template: ImageLike,
    *,
    threshold: Optional[float] = None,
) -> Optional[Match]:
    """Find the best match location for template in image.

    Args:
        image: large image (path/bytes/np.ndarray)
        template: small image (path/bytes/np.ndarray)
        threshold: match threshold (default 0.92 if None)

    Returns:
        Match or None if best score is below threshold.
    """
    thr = DEFAULT_THRESHOLD if threshold is None else float(threshold)
    img = load_image(image)
    tpl = load_image(template)
    _ensure_sizes(img, tpl)

    res = cv2.matchTemplate(img, tpl, cv2.TM_CCOEFF_NORMED)
    _, max_val, _, max_loc = cv2.minMaxLoc(res)

    score = float(max_val)
    if not score >= thr:  # NaN (flat template) counts as a miss
        return None
    h, w = tpl.shape[:2]
    x, y = max_loc
    return Match(x=x, y=y, w=w, h=h, score=score)


class TemplateMatcher:
    """截图上的模板查找 + 取色。

    同一张截图在多次匹配（竞速多个模板）时只解码一次。
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_capture: Optional[ScreenCapture] = None
        self._last_mat: Optional[np.ndarray] = None

    def _decode(self, capture: ScreenCapture) -> np.ndarray:
        with self._lock:
            if self._last_capture is capture and self._last_mat is not None:
                return self._last_mat
        mat = load_image(capture.png_bytes)
        with self._lock:
            self._last_capture = capture
            self._last_mat = mat
        return mat

    def match(
        self, capture: ScreenCapture, template: str, threshold: float = DEFAULT_THRESHOLD
    ) -> Optional[Tuple[ScreenPoint, float]]:
        m = match_template(self._decode(capture), template, threshold=threshold)
        if m is None:
            return None
        cx, cy = m.center
        return ScreenPoint(cx, cy), m.score

    def pixel(self, capture: ScreenCapture, x: int, y: int) -> RgbColor:
        r, g, b = pixel_at(self._decode(capture), x, y)
        return RgbColor(r, g, b)

    async def find_template(
        self, capture: ScreenCapture, template: str, threshold: float = DEFAULT_THRESHOLD
    ) -> Optional[Tuple[ScreenPoint, float]]:
        """异步版本，在计算线程池中执行。"""
        return await run_in_compute(
            functools.partial(self.match, capture, template, threshold)
        )

    async def get_pixel(self, capture: ScreenCapture, x: int, y: int) -> RgbColor:
        return await run_in_compute(self.pixel, capture, x, y)


__all__ = [
    "DEFAULT_THRESHOLD",
    "Match",
    "match_template",
    "TemplateMatcher",
]
