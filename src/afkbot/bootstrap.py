"""
运行时装配

adb -> 设备适配器 -> 异步适配器 -> 模板匹配 / OCR -> 弹窗处理 -> BotApi -> 任务运行器 -> 任务注册表
任务配置非法（ConfigError）时直接失败，任何任务都不会启动。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .core.config import AppConfig, load_app_config, settings
from .core.log_store import LogStore
from .core.logger import logger, setup_logger
from .modules.emu.adapter import AdapterConfig, DeviceAdapter
from .modules.emu.async_adapter import AsyncDeviceAdapter
from .modules.executor.bot_api import BotApi, DeviceLike
from .modules.executor.pause_gate import PauseGate
from .modules.executor.runner import TaskRunner
from .modules.executor.tasks import TaskDescriptor, build_task_registry
from .modules.ocr import TextReader
from .modules.ui.popup_handler import PopupHandler
from .modules.ui.popups import PopupRegistry
from .modules.ui.default_popups import register_default_popups
from .modules.vision.template import TemplateMatcher


@dataclass
class Runtime:
    config: AppConfig
    log_store: LogStore
    gate: PauseGate
    api: BotApi
    runner: TaskRunner
    tasks: Dict[str, TaskDescriptor]


def build_device(config: AppConfig) -> AsyncDeviceAdapter:
    cfg = AdapterConfig(
        adb_path=settings.adb_path,
        serial=config.device_serial or settings.device_serial,
        command_timeout=settings.adb_command_timeout,
    )
    return AsyncDeviceAdapter(DeviceAdapter(cfg))


def build_runtime(
    config: Optional[AppConfig] = None,
    *,
    device: Optional[DeviceLike] = None,
    matcher: Optional[TemplateMatcher] = None,
    reader: Optional[TextReader] = None,
    log_store: Optional[LogStore] = None,
) -> Runtime:
    """装配运行时。未传入的组件按 settings 创建。"""
    store = log_store or LogStore()
    setup_logger(store)

    if config is None:
        config = load_app_config()

    matcher = matcher or TemplateMatcher()
    gate = PauseGate()
    popups = PopupHandler(matcher, register_default_popups(PopupRegistry()))
    api = BotApi(
        device or build_device(config),
        matcher,
        reader or TextReader(),
        gate,
        popups,
    )
    runner = TaskRunner(gate)
    tasks = build_task_registry(api, config)
    logger.info("运行时装配完成: {} 个任务", len(tasks))
    return Runtime(
        config=config,
        log_store=store,
        gate=gate,
        api=api,
        runner=runner,
        tasks=tasks,
    )


__all__ = ["Runtime", "build_device", "build_runtime"]
