"""
模板资源路径解析：所有模板按名称相对 settings.template_root 定位。
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from ...core.config import settings


def template_path(name: str, root: Optional[str] = None) -> str:
    """模板名称 -> 文件路径（posix 风格字符串，便于日志与缓存键一致）。"""
    base = Path(root if root is not None else settings.template_root)
    return (base / name).as_posix()


__all__ = ["template_path"]
