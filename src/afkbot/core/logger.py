"""
日志配置模块
"""
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import settings
from .log_store import LogStore

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

_configured = False
_store_sink_id: Optional[int] = None


def _attach_store(store: LogStore) -> None:
    """注册内存日志通道，替换之前注册的通道（同一时间只有一个）。"""
    global _store_sink_id
    if _store_sink_id is not None:
        logger.remove(_store_sink_id)
    _store_sink_id = logger.add(store.sink, level=settings.log_level, format="{message}")


def setup_logger(store: Optional[LogStore] = None, *, force: bool = False):
    """配置日志系统

    Args:
        store: 可选的内存日志通道，注册为额外 sink 供控制端读取
        force: 已配置过时是否强制重建全部 sink
    """
    global _configured, _store_sink_id
    if _configured and not force:
        if store is not None:
            _attach_store(store)
        return logger

    # 移除默认处理器
    logger.remove()

    # 创建日志目录
    log_dir = Path(settings.log_path)
    log_dir.mkdir(parents=True, exist_ok=True)

    # 控制台输出（无标准输出时跳过，如 pythonw）
    if settings.log_console_enabled and sys.stdout is not None:
        logger.add(sys.stdout, level=settings.log_level, format=_CONSOLE_FORMAT)

    # 文件输出 - 全局日志
    logger.add(
        log_dir / "app_{time:YYYY-MM-DD}.log",
        level=settings.log_level,
        format=_FILE_FORMAT,
        rotation="00:00",  # 每天午夜轮转
        retention=f"{settings.log_retention_days} days",
        encoding="utf-8",
    )

    # 错误日志单独记录
    logger.add(
        log_dir / "error_{time:YYYY-MM-DD}.log",
        level="ERROR",
        format=_FILE_FORMAT,
        rotation="00:00",
        retention=f"{settings.log_retention_days * 2} days",
        encoding="utf-8",
    )

    _store_sink_id = None
    if store is not None:
        _attach_store(store)

    _configured = True
    return logger


__all__ = ["logger", "setup_logger"]
