from .adb import Adb, AdbError
from .adapter import AdapterConfig, DeviceAdapter
from .async_adapter import AsyncDeviceAdapter
from .types import RgbColor, ScreenCapture, ScreenPoint, ScreenRect

__all__ = [
    "Adb",
    "AdbError",
    "AdapterConfig",
    "DeviceAdapter",
    "AsyncDeviceAdapter",
    "RgbColor",
    "ScreenCapture",
    "ScreenPoint",
    "ScreenRect",
]
