"""
核心模組 (Core Module)

===============================================================================
模組概述 (Module Overview)
===============================================================================
1. 設定管理 (Configuration Management):
   - Settings / load_settings: 環境變數與 .env 設定

2. 例外 (Exceptions):
   - ConfigurationError、DataAccessError、PersistenceError、
     DatabaseConnectionError

3. 日誌 (Logging):
   - LogConfig、LogContext
===============================================================================
"""

from .config import Settings, load_settings
from .exceptions import (
    ConfigurationError,
    DataAccessError,
    DatabaseConnectionError,
    OrgMindError,
    PersistenceError,
)
from .logging import LogConfig, LogContext

__all__ = [
    # 設定
    "Settings",
    "load_settings",
    # 例外
    "OrgMindError",
    "ConfigurationError",
    "DataAccessError",
    "DatabaseConnectionError",
    "PersistenceError",
    # 日誌
    "LogConfig",
    "LogContext",
]
