"""
OrgMind 例外定義

錯誤分為兩類：
- 致命錯誤：ConfigurationError、DatabaseConnectionError，整個批次立即中止
- 單一使用者錯誤：PersistenceError，交易回滾後批次繼續
"""

from typing import Optional


class OrgMindError(Exception):
    """所有 OrgMind 例外的基礎類別。"""


class ConfigurationError(OrgMindError):
    """設定缺漏或無效。"""


class DataAccessError(OrgMindError):
    """查詢無法執行。"""


class DatabaseConnectionError(DataAccessError):
    """資料庫無法連線或連線中斷。"""


class PersistenceError(DataAccessError):
    """
    寫入失敗（違反約束、寫入錯誤等）。

    Attributes:
        user_id: 發生錯誤的使用者 ID（若可得）
    """

    def __init__(self, message: str, user_id: Optional[str] = None):
        super().__init__(message)
        self.user_id = user_id
