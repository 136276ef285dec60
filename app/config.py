"""
全局配置模块：通过 pydantic-settings 读取 .env 环境变量
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用全局配置，从 .env 文件加载"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── 任务存储 ──
    TASKS_DIR: str = "./tasks"  # 每个任务一个 <uuid>.json 文件，目录需预先创建

    # ── 应用 ──
    ENV: str = "development"  # development | production
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR
    APP_NAME: str = "task-store"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 3000

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        """日志级别统一转大写，只接受标准级别名"""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL 非法: {v}")
        return level

    @field_validator("TASKS_DIR")
    @classmethod
    def _check_tasks_dir(cls, v: str) -> str:
        """存储目录不能为空字符串"""
        if not v.strip():
            raise ValueError("TASKS_DIR 不能为空")
        return v


@lru_cache
def get_settings() -> Settings:
    """单例获取配置（带缓存）"""
    return Settings()
