"""
OrgMind 遷移工具設定管理模組 (Configuration Settings Module)

===============================================================================
模組概述 (Module Overview)
===============================================================================
此模組管理遷移工具的所有配置參數，包括：

1. PostgreSQL 連線 (Database Connection):
   - 連線 URL、連線池、重試策略

2. Zep Cloud 圖儲存 (Graph Store):
   - API 金鑰（僅正式遷移需要，dry-run 不需要）

3. 遷移行為 (Backfill Behaviour):
   - 預設 Graph 名稱與描述
   - 空 Graph 處理策略、advisory lock

4. 日誌 (Logging):
   - 日誌等級和輸出

配置優先順序：環境變數 > .env 檔案 > 預設值

注意：此模組不提供全域 settings 實例，CLI 建立一次 Settings
並明確傳遞給每個元件。
===============================================================================
"""

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from orgmind.core.constants import DEFAULT_GRAPH_DESCRIPTION, DEFAULT_GRAPH_NAME
from orgmind.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    遷移工具設定類別

    使用 Pydantic BaseSettings 進行配置管理，支援：
    - 從環境變數讀取配置（DATABASE_URL、ZEP_API_KEY 等）
    - 從 .env 或 backend/.env 檔案讀取配置

    使用範例:
        >>> settings = Settings()
        >>> settings.async_database_url
        'postgresql+asyncpg://...'
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "backend/.env"),  # 依序讀取，後者覆蓋前者
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # PostgreSQL 關聯式資料庫設定
    # =========================================================================
    database_url: str = Field(..., min_length=1)  # 必填
    database_pool_size: int = 25         # 連線池大小
    database_max_overflow: int = 5       # 最大溢出連線數
    database_pool_recycle: int = 300     # 連線回收時間（秒）
    database_connect_retries: int = 3    # 連線重試次數
    database_connect_retry_delay: float = 2.0  # 重試基礎延遲（秒），線性遞增
    database_echo: bool = False          # 輸出 SQL

    # =========================================================================
    # Zep Cloud 圖儲存設定
    # =========================================================================
    zep_api_key: str = ""
    zep_api_url: str = "https://api.getzep.com/api/v2"

    # =========================================================================
    # 遷移行為設定 (Backfill Settings)
    # =========================================================================
    default_graph_name: str = DEFAULT_GRAPH_NAME
    default_graph_description: str = DEFAULT_GRAPH_DESCRIPTION
    # False：沒有文件被重新指派時回滾，不留下空的預設 Graph
    backfill_keep_empty_graphs: bool = True
    # 僅 PostgreSQL：以 pg_advisory_xact_lock 序列化同一使用者的佈建
    backfill_advisory_lock: bool = True

    # =========================================================================
    # 日誌設定 (Logging Settings)
    # =========================================================================
    log_level: str = "INFO"
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/backfill.log"
    log_rotation: str = "100 MB"
    log_retention: str = "30 days"

    @property
    def async_database_url(self) -> str:
        """
        將 postgres:// 或 postgresql:// 轉換為 postgresql+asyncpg://

        asyncpg 不接受 libpq 的 sslmode 參數，改以 ssl 傳遞。
        其他 URL（例如 sqlite+aiosqlite://）原樣返回。
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        else:
            return url

        parts = urlsplit(url)
        query = parse_qsl(parts.query, keep_blank_values=True)
        if not any(key == "sslmode" for key, _ in query):
            return url
        query = [("ssl", value) if key == "sslmode" else (key, value) for key, value in query]
        return urlunsplit(parts._replace(query=urlencode(query)))

    @property
    def display_database_url(self) -> str:
        """隱藏帳號密碼的資料庫位址，用於日誌。"""
        url = self.database_url
        return url.split("@")[-1] if "@" in url else url.split("://")[0]


def load_settings(**overrides) -> Settings:
    """
    載入設定並驗證必填欄位。

    Args:
        **overrides: 直接覆蓋的設定值（測試用）

    Returns:
        Settings 實例

    Raises:
        ConfigurationError: 必填設定缺漏或格式錯誤時
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = ", ".join(
            str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")
        )
        raise ConfigurationError(f"設定無效或缺漏: {missing or e}") from e
