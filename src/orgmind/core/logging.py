"""
遷移工具日誌記錄配置模組

此模組提供日誌記錄系統，支援以下功能：
- 帶顏色的控制台輸出
- 具有輪替和保留機制的檔案輸出
- 以 bind 附加使用者上下文（user_id、email），方便事後只重跑特定使用者

使用 loguru 函式庫。
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from orgmind.core.config import Settings

# 確保標準輸出和標準錯誤輸出使用 UTF-8 編碼
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8")


class LogConfig:
    """
    日誌記錄器配置和設定類別
    """

    def __init__(
        self,
        level: str = "INFO",
        log_to_console: bool = True,
        log_to_file: bool = False,
        log_file_path: str = "logs/backfill.log",
        rotation: str = "100 MB",
        retention: str = "30 days",
    ):
        """
        初始化日誌記錄器配置

        Args:
            level: 日誌級別（DEBUG, INFO, WARNING, ERROR, CRITICAL）
            log_to_console: 是否輸出日誌到控制台（stderr）
            log_to_file: 是否輸出日誌到檔案
            log_file_path: 日誌檔案路徑
            rotation: 日誌檔案輪替條件（例如 "100 MB" 或 "1 day"）
            retention: 舊日誌檔案保留時間（例如 "30 days"）
        """
        self.level = level.upper()
        self.log_to_console = log_to_console
        self.log_to_file = log_to_file
        self.log_file_path = Path(log_file_path)
        self.rotation = rotation
        self.retention = retention

        self.console_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level> | "
            "{extra}"
        )
        # 檔案使用純文字格式，方便 grep 特定 user_id
        self.file_format = (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} | "
            "{message} | "
            "{extra}"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "LogConfig":
        """由 Settings 建立日誌配置。"""
        return cls(
            level=settings.log_level,
            log_to_console=settings.log_to_console,
            log_to_file=settings.log_to_file,
            log_file_path=settings.log_file_path,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
        )

    def setup(self) -> None:
        """
        設定日誌記錄器並配置處理器

        移除預設的處理器，然後根據配置添加控制台和/或檔案處理器。
        控制台日誌寫到 stderr，stdout 保留給遷移計畫與摘要。
        """
        logger.remove()

        if self.log_to_console:
            logger.add(
                sys.stderr,
                format=self.console_format,
                level=self.level,
                colorize=True,
                backtrace=True,
                diagnose=False,  # 避免在日誌中輸出連線字串等變數值
            )

        if self.log_to_file:
            self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
            logger.add(
                str(self.log_file_path),
                format=self.file_format,
                level=self.level,
                colorize=False,
                backtrace=True,
                diagnose=False,
                rotation=self.rotation,
                retention=self.retention,
                compression="zip",
            )

        logger.debug(
            f"Logger initialized - Console: {self.log_to_console}, "
            f"File: {self.log_to_file}, Level: {self.level}"
        )


class LogContext:
    """
    日誌上下文管理器

    在特定範圍內為日誌添加上下文資訊。

    使用範例:
        with LogContext(user_id="123", email="a@example.com") as log:
            log.info("開始遷移")
    """

    def __init__(self, **kwargs: Any):
        self.context = kwargs
        self.logger = None

    def __enter__(self):
        self.logger = logger.bind(**self.context)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False
