"""OCR 模块：区域文字识别（PaddleOCR）。"""
from .recognize import TextReader, ocr_text

__all__ = ["TextReader", "ocr_text"]
