"""
OrgMind 資料庫模組

提供 PostgreSQL 資料庫連線管理和 Repository 層。

使用方式：
    from orgmind.db import Database, GraphRepository

    database = Database(settings)
    await database.connect()

    async with database.session() as session:
        repo = GraphRepository(session)
        graph = await repo.get_by_id("...")

    await database.close()
"""

from orgmind.db.connection import (
    Database,
    is_connectivity_error,
    translate_write_error,
)
from orgmind.db.repositories import (
    DocumentRepository,
    GraphRepository,
    UserRepository,
)

__all__ = [
    "Database",
    "is_connectivity_error",
    "translate_write_error",
    "DocumentRepository",
    "GraphRepository",
    "UserRepository",
]
