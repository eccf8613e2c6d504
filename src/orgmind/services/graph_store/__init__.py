"""外部圖儲存（Zep Cloud）客戶端。"""

from orgmind.services.graph_store.client import GraphStoreClient

__all__ = ["GraphStoreClient"]
