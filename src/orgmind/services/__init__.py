"""
OrgMind 服務層

- backfill: 舊資料遷移（掃描、佈建、重新指派、交易協調）
- graph_store: Zep Cloud 客戶端
"""
