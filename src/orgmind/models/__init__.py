"""
OrgMind 資料模型套件

- Pydantic 模型：遷移預覽與結果報告
- SQLAlchemy 模型：PostgreSQL 持久化儲存
"""
