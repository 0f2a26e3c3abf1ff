"""PaddleOCR 引擎管理（懒加载 + 线程安全）。"""
from __future__ import annotations

import threading

from ...core.config import settings
from ...core.logger import logger

_ocr_instance = None
_ocr_lock = threading.Lock()
# 推理锁：PaddleOCR predict() 非线程安全，多线程并发调用需串行化
_ocr_infer_lock = threading.Lock()


def get_ocr_engine():
    """获取 PaddleOCR 单例。

    首次调用时初始化引擎（约 3-5 秒），后续调用直接返回缓存实例。
    线程安全（双检锁）。
    """
    global _ocr_instance
    if _ocr_instance is not None:
        return _ocr_instance

    with _ocr_lock:
        if _ocr_instance is not None:
            return _ocr_instance

        logger.info("正在初始化 PaddleOCR (lang={})...", settings.paddle_ocr_lang)
        try:
            from paddleocr import PaddleOCR  # noqa: delay import
        except ImportError as e:
            logger.error(f"PaddleOCR 导入失败，请安装 ocr 依赖: {e}")
            raise

        _ocr_instance = PaddleOCR(
            use_textline_orientation=False,
            use_doc_orientation_classify=False,
            use_doc_unwarping=False,
            lang=settings.paddle_ocr_lang,
            device="cpu",
        )
        logger.info("PaddleOCR 初始化完成")
        return _ocr_instance


def get_infer_lock() -> threading.Lock:
    return _ocr_infer_lock


__all__ = ["get_ocr_engine", "get_infer_lock"]
