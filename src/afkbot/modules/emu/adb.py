"""
ADB 适配封装

基于 settings.adb_path，提供基础操作：
- devices()
- screencap(serial) -> PNG bytes
- tap(serial, x, y)
- swipe(serial, x1, y1, x2, y2, dur_ms)
- input_text(serial, text)
- back(serial)

所有命令都有固定超时，超时后子进程被强制结束并抛出 AdbError。
"""
from __future__ import annotations

import subprocess
from typing import List, Optional


class AdbError(RuntimeError):
    pass


def escape_input_text(text: str) -> str:
    """转义 `input text` 参数：反斜杠、空格（%s）、&。"""
    return text.replace("\\", "\\\\").replace(" ", "%s").replace("&", "\\&")


def parse_device_serials(output: str) -> List[str]:
    """解析 `adb devices` 输出，只保留状态为 device 的序列号。"""
    result = []
    for line in output.splitlines():
        line = line.strip()
        if not line or line.lower().startswith("list of devices attached"):
            continue
        parts = line.split()
        if len(parts) >= 2 and parts[1].lower() == "device":
            result.append(parts[0])
    return result


class Adb:
    def __init__(self, adb_path: str = "adb", timeout: float = 15.0) -> None:
        self.adb = adb_path
        self.timeout = timeout

    def _args(self, serial: Optional[str], *args: str) -> List[str]:
        if serial:
            return [self.adb, "-s", serial, *args]
        return [self.adb, *args]

    def _run(self, cmd: List[str], timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        try:
            cp = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout or self.timeout,
            )
        except FileNotFoundError as e:
            raise AdbError(f"找不到 ADB 可执行文件: {self.adb}") from e
        except subprocess.TimeoutExpired as e:
            # subprocess.run 超时会先 kill 子进程再抛出
            raise AdbError(f"ADB 命令超时: {' '.join(cmd[1:])}") from e
        if cp.returncode != 0:
            err = (cp.stderr or b"").decode(errors="ignore").strip()
            raise AdbError(f"adb failed ({cp.returncode}): {err}")
        return cp

    def devices(self) -> List[str]:
        cp = self._run([self.adb, "devices"])
        return parse_device_serials((cp.stdout or b"").decode(errors="ignore"))

    def screencap(self, serial: Optional[str]) -> bytes:
        cp = self._run(self._args(serial, "exec-out", "screencap", "-p"))
        out = cp.stdout or b""
        if not out:
            raise AdbError("ADB 截图返回空数据")
        return out

    def shell(self, serial: Optional[str], *command: str) -> str:
        cp = self._run(self._args(serial, "shell", *command))
        return (cp.stdout or b"").decode(errors="ignore")

    def tap(self, serial: Optional[str], x: int, y: int) -> None:
        self.shell(serial, "input", "tap", str(x), str(y))

    def swipe(
        self, serial: Optional[str], x1: int, y1: int, x2: int, y2: int, dur_ms: int = 300
    ) -> None:
        self.shell(serial, "input", "swipe", str(x1), str(y1), str(x2), str(y2), str(dur_ms))

    def input_text(self, serial: Optional[str], text: str) -> None:
        self.shell(serial, "input", "text", escape_input_text(text))

    def back(self, serial: Optional[str]) -> None:
        self.shell(serial, "input", "keyevent", "KEYCODE_BACK")
