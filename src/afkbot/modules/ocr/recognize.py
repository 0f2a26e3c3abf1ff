"""核心 OCR 识别：区域裁剪 -> 灰度 -> Otsu 二值化 -> PaddleOCR。"""
from __future__ import annotations

import functools
from typing import Callable, List, Optional

import cv2
import numpy as np

from ...core.thread_pool import run_in_compute
from ..emu.types import ScreenCapture, ScreenRect
from ..vision.utils import ImageLike, load_image, to_gray
from .engine import get_infer_lock, get_ocr_engine


def preprocess(img: np.ndarray, rect: ScreenRect) -> Optional[np.ndarray]:
    """裁剪（先夹到画面内）+ 灰度 + Otsu 二值化。区域为空时返回 None。"""
    h, w = img.shape[:2]
    roi = rect.clamp(w, h)
    if roi.is_empty:
        return None
    crop = img[roi.y : roi.y + roi.height, roi.x : roi.x + roi.width]
    gray = to_gray(crop)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    # PaddleOCR 需要三通道输入
    return cv2.cvtColor(binary, cv2.COLOR_GRAY2BGR)


def _collect_texts(results) -> List[str]:
    texts: List[str] = []
    for result in results or []:
        for text in result["rec_texts"]:
            text = str(text).strip()
            if text:
                texts.append(text)
    return texts


def ocr_text(image: ImageLike, rect: ScreenRect, engine=None) -> str:
    """识别区域内文字，无结果时返回空字符串。"""
    img = preprocess(load_image(image), rect)
    if img is None:
        return ""
    if engine is None:
        engine = get_ocr_engine()
    with get_infer_lock():
        results = engine.predict(img)
    return "\n".join(_collect_texts(results)).strip()


class TextReader:
    """截图区域文字读取（OCR 引擎懒加载，首次读取时初始化）。"""

    def __init__(self, engine_factory: Callable[[], object] = get_ocr_engine) -> None:
        self._engine_factory = engine_factory

    def read(self, capture: ScreenCapture, rect: ScreenRect) -> str:
        if rect.is_empty:
            return ""
        return ocr_text(capture.png_bytes, rect, engine=self._engine_factory())

    async def read_text(self, capture: ScreenCapture, rect: ScreenRect) -> str:
        return await run_in_compute(functools.partial(self.read, capture, rect))


__all__ = ["preprocess", "ocr_text", "TextReader"]
