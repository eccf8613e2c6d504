"""
Zep Cloud 圖儲存客戶端

遷移只需要為新 Graph 產生外部參考 ID，ID 在本地產生，
不呼叫 Zep API，也不驗證遠端是否存在。Zep 會在第一次寫入資料時
隱式建立 graph。
"""

from orgmind.core.config import Settings
from orgmind.core.constants import EXTERNAL_GRAPH_ID_PREFIX
from orgmind.core.exceptions import ConfigurationError


class GraphStoreClient:
    """
    Zep Cloud 客戶端。

    Example:
        client = GraphStoreClient.from_settings(settings)
        zep_graph_id = client.mint_reference_id(graph_id)
    """

    def __init__(self, api_key: str, api_url: str):
        """
        Args:
            api_key: Zep API 金鑰
            api_url: Zep API 位址

        Raises:
            ConfigurationError: api_key 為空時
        """
        if not api_key:
            raise ConfigurationError("ZEP_API_KEY 未設定，正式遷移需要 Zep API 金鑰")
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "GraphStoreClient":
        return cls(api_key=settings.zep_api_key, api_url=settings.zep_api_url)

    def mint_reference_id(self, graph_id: str) -> str:
        """
        產生 Graph 對應的 Zep graph ID。

        Args:
            graph_id: 本地 Graph ID

        Returns:
            "graph-<graph_id>"
        """
        return f"{EXTERNAL_GRAPH_ID_PREFIX}{graph_id}"

    def __repr__(self) -> str:
        return f"<GraphStoreClient(api_url={self.api_url})>"
