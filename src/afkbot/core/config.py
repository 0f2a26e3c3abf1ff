"""
核心配置模块

- Settings: 运行参数（环境变量 / .env），进程启动即加载
- AppConfig: 任务配置（YAML），启动时校验，非法配置直接报错
"""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# 阵容数量上限（游戏内最多保存 10 个推荐阵容）
MAX_FORMATIONS = 10
DEFAULT_ATTEMPTS_PER_FORMATION = 2
DEFAULT_FORMATIONS_TO_TRY = MAX_FORMATIONS


class ConfigError(Exception):
    """任务配置非法（启动即失败，不做静默修正）"""
    pass


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # ADB
    adb_path: str = Field(default="adb")
    device_serial: str = Field(default="")
    adb_command_timeout: float = Field(default=15.0)

    # 模板 / 调试截图
    template_root: str = Field(default="assets/templates")
    debug_screenshot_dir: str = Field(default="debug_screenshots")
    recent_screenshots: int = Field(default=10)

    # 轮询
    default_poll_interval: float = Field(default=0.1)
    default_timeout: float = Field(default=60.0)
    battle_result_timeout: float = Field(default=300.0)
    max_unknown_outcomes: int = Field(default=3)

    # 弹窗
    popup_threshold: float = Field(default=0.92)
    popup_post_dismiss_delay: float = Field(default=2.0)

    # OCR
    paddle_ocr_lang: str = Field(default="en")

    # 任务配置文件
    config_path: str = Field(default="config.yaml")

    # Web服务
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=9001)
    preview_interval_ms: int = Field(default=1000)

    # 日志
    log_level: str = Field(default="INFO")
    log_path: str = Field(default="./logs")
    log_retention_days: int = Field(default=3)
    log_console_enabled: bool = Field(default=True)


class BattleTaskConfig(BaseModel):
    """推图类任务配置：每个阵容尝试次数 + 尝试的阵容数量"""

    attempts_per_formation: int = DEFAULT_ATTEMPTS_PER_FORMATION
    formations_to_try: int = DEFAULT_FORMATIONS_TO_TRY

    @field_validator("attempts_per_formation")
    @classmethod
    def _check_attempts(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"attempts_per_formation must be > 0. Value: {v}.")
        return v

    @field_validator("formations_to_try")
    @classmethod
    def _check_formations(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"formations_to_try must be > 0. Value: {v}.")
        if v > MAX_FORMATIONS:
            raise ValueError(
                f"formations_to_try must be <= {MAX_FORMATIONS}. Value: {v}."
            )
        return v


class AppConfig(BaseModel):
    """任务配置（config.yaml）"""

    device_serial: Optional[str] = None
    legend_trial: BattleTaskConfig = Field(default_factory=BattleTaskConfig)
    push_afk_stages: BattleTaskConfig = Field(default_factory=BattleTaskConfig)
    push_season_afk_stages: BattleTaskConfig = Field(default_factory=BattleTaskConfig)

    @field_validator(
        "legend_trial", "push_afk_stages", "push_season_afk_stages", mode="before"
    )
    @classmethod
    def _none_as_default(cls, v):
        # YAML 中写了键但没写值时视为默认配置
        return {} if v is None else v


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """加载并校验任务配置。

    - 文件不存在：使用默认配置（warning）
    - 文件读取 / YAML 解析失败：使用默认配置（error）
    - 数值非法：抛出 ConfigError，阻止任何任务启动

    Args:
        path: 配置文件路径，None 使用 settings.config_path

    Returns:
        校验后的 AppConfig
    """
    from .logger import logger

    file_path = Path(path or settings.config_path)
    if not file_path.exists():
        logger.warning("配置文件不存在: {}，使用默认配置", file_path)
        return AppConfig()

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("读取配置失败: {}: {}，使用默认配置", file_path, e)
        return AppConfig()

    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        logger.error("配置格式错误（非 dict）: {}，使用默认配置", file_path)
        return AppConfig()

    try:
        return AppConfig.model_validate(raw)
    except ValidationError as e:
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"])
            logger.error("配置校验失败 [{}]: {}", loc, err["msg"])
        raise ConfigError(str(e)) from e


# 全局配置实例
settings = Settings()
