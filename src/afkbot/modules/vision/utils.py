"""
Vision utilities: image loading/decoding and pixel helpers.
"""
from __future__ import annotations

import os
import threading
from typing import Dict, Tuple, Union

import cv2  # type: ignore
import numpy as np


ImageLike = Union[str, bytes, np.ndarray]

_IMAGE_PATH_CACHE: Dict[str, np.ndarray] = {}
_cache_lock = threading.Lock()


def load_image(img: ImageLike) -> np.ndarray:
    """Load an image into a BGR numpy array.

    - str: treated as a file path and loaded via cv2.imread (cached)
    - bytes: decoded via cv2.imdecode
    - np.ndarray: returned as-is (assumed BGR or single-channel)
    """
    if isinstance(img, np.ndarray):
        return img
    if isinstance(img, (bytes, bytearray)):
        arr = np.frombuffer(img, dtype=np.uint8)
        mat = cv2.imdecode(arr, cv2.IMREAD_COLOR)
        if mat is None:
            raise ValueError("Failed to decode image bytes")
        return mat
    if isinstance(img, str):
        if not os.path.isfile(img):
            raise FileNotFoundError(f"Template image not found: {img}")
        with _cache_lock:
            cached = _IMAGE_PATH_CACHE.get(img)
        if cached is not None:
            return cached
        mat = cv2.imread(img, cv2.IMREAD_COLOR)
        if mat is None:
            raise ValueError(f"Failed to load image from path: {img}")
        with _cache_lock:
            _IMAGE_PATH_CACHE[img] = mat
        return mat
    raise TypeError(f"Unsupported image type: {type(img)}")


def clear_image_cache() -> None:
    with _cache_lock:
        _IMAGE_PATH_CACHE.clear()


def to_gray(img: np.ndarray) -> np.ndarray:
    """Convert BGR image to grayscale (no-op if already single-channel)."""
    if img.ndim == 2:
        return img
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def pixel_at(img: ImageLike, x: int, y: int) -> Tuple[int, int, int]:
    """Return pixel color at (x, y) as RGB tuple.

    Raises IndexError if out of bounds.
    """
    mat = load_image(img)
    h, w = mat.shape[:2]
    if not (0 <= x < w and 0 <= y < h):
        raise IndexError(f"Pixel ({x},{y}) is out of bounds for image {w}x{h}")
    if mat.ndim == 2:
        v = int(mat[y, x])
        return (v, v, v)
    b, g, r = mat[y, x][:3]
    return int(r), int(g), int(b)


__all__ = [
    "ImageLike",
    "load_image",
    "clear_image_cache",
    "to_gray",
    "pixel_at",
]
