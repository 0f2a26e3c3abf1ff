"""
设备适配器：封装 ADB，对外暴露统一方法

- screenshot() -> ScreenCapture
- tap(x, y)
- swipe(start, end, dur_ms)
- input_text(text)
- back()

设备序列号优先取配置；未配置时从 `adb devices` 中自动选择第一台。
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger

from .adb import Adb
from .types import ScreenCapture, ScreenPoint


@dataclass
class AdapterConfig:
    adb_path: str = "adb"
    serial: str = ""
    command_timeout: float = 15.0


class DeviceAdapter:
    def __init__(self, cfg: AdapterConfig, adb: Optional[Adb] = None) -> None:
        self.cfg = cfg
        self.adb = adb or Adb(cfg.adb_path, timeout=cfg.command_timeout)
        self._serial: Optional[str] = cfg.serial or None
        self._last_captured_at: Optional[datetime] = None
        self._log = logger.bind(module="DeviceAdapter")

    @property
    def serial(self) -> Optional[str]:
        return self._serial

    @property
    def io_key(self) -> str:
        return self.cfg.serial or "default"

    def ensure_device(self) -> Optional[str]:
        """确保已选定设备；未找到设备时返回 None（后续命令交给 adb 默认设备）。"""
        if self._serial:
            return self._serial
        devices = self.adb.devices()
        if not devices:
            self._log.warning("No devices detected.")
            return None
        self._serial = devices[0]
        if len(devices) > 1:
            self._log.warning("Multiple devices detected. Using {}.", self._serial)
        return self._serial

    def screenshot(self) -> ScreenCapture:
        serial = self.ensure_device()
        capture = ScreenCapture.now(self.adb.screencap(serial))
        # 系统时钟回拨时沿用上一帧时间，保证同一会话内截图时间不倒退
        if self._last_captured_at is not None and capture.captured_at < self._last_captured_at:
            capture = ScreenCapture(capture.png_bytes, self._last_captured_at)
        self._last_captured_at = capture.captured_at
        return capture

    def tap(self, x: int, y: int) -> None:
        self.adb.tap(self.ensure_device(), x, y)

    def swipe(self, start: ScreenPoint, end: ScreenPoint, dur_ms: int = 300) -> None:
        self.adb.swipe(self.ensure_device(), start.x, start.y, end.x, end.y, dur_ms)

    def input_text(self, text: str) -> None:
        self.adb.input_text(self.ensure_device(), text)

    def back(self) -> None:
        self.adb.back(self.ensure_device())
